from __future__ import annotations

from typing import Protocol, TypeVar

T_co = TypeVar("T_co", covariant=True)


class Keyed(Protocol):
    @property
    def key(self) -> int: ...


class CandidateSource(Protocol[T_co]):
    async def fetch_after(self, key: int, limit: int) -> list[T_co]:
        """Up to ``limit`` items with key strictly greater than ``key``, ascending."""
        ...
