from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

from maintenance_service.domain.entities.recipient import Recipient

T = TypeVar("T")


def merge_recipients(*sources: Iterable[Recipient]) -> list[Recipient]:
    """Concatenate recipient lists, keeping the first occurrence of each address.

    Addresses compare case-insensitively, so one person listed by two
    independent sources gets exactly one delivery.
    """
    seen: set[str] = set()
    merged: list[Recipient] = []
    for source in sources:
        for recipient in source:
            key = recipient.dedupe_key
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(recipient)
    return merged


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
