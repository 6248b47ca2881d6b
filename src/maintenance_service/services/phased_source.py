"""Several keyset sources scanned one after another under a single cursor."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from maintenance_service.application.ports.source import CandidateSource, Keyed

T = TypeVar("T", bound=Keyed)

PHASE_SPAN = 1 << 48


@dataclass(frozen=True, slots=True)
class PhasedItem(Generic[T]):
    phase: str
    item: T
    key: int


def compose_key(phase_index: int, row_key: int) -> int:
    if not 0 <= row_key < PHASE_SPAN:
        raise ValueError(f"row key {row_key} does not fit in a phase")
    return phase_index * PHASE_SPAN + row_key


def split_key(key: int) -> tuple[int, int]:
    """Composite cursor -> (phase index, row key inside that phase)."""
    return divmod(max(0, key), PHASE_SPAN)


class PhasedSource(Generic[T]):
    """Phase ``i`` owns keys ``[i * PHASE_SPAN, (i + 1) * PHASE_SPAN)``.

    One integer cursor therefore records both the phase and the position in
    it, and keys stay strictly increasing across the phase boundary. A batch
    that exhausts one phase is topped up from the next, so a short batch
    still means the whole chain is done.
    """

    def __init__(self, phases: Sequence[tuple[str, CandidateSource[T]]]) -> None:
        if not phases:
            raise ValueError("at least one phase is required")
        self._phases = list(phases)

    async def fetch_after(self, key: int, limit: int) -> list[PhasedItem[T]]:
        index, row_key = split_key(key)
        found: list[PhasedItem[T]] = []
        while index < len(self._phases) and len(found) < limit:
            name, source = self._phases[index]
            wanted = limit - len(found)
            batch = await source.fetch_after(row_key, wanted)
            found.extend(PhasedItem(name, item, compose_key(index, item.key)) for item in batch)
            if len(batch) == wanted:
                break
            index, row_key = index + 1, 0
        return found
