from __future__ import annotations

from typing import Protocol


class StateStore(Protocol):
    """Flat key -> value persistence with optional per-key expiry."""

    async def get(self, key: str) -> str | None: ...

    async def set(
        self,
        key: str,
        value: str,
        *,
        ttl: int | None = None,
        nx: bool = False,
    ) -> bool:
        """Write ``value``. With ``nx`` the write only happens if no live entry exists."""
        ...

    async def delete(self, key: str) -> None: ...
