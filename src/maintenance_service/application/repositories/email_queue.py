from __future__ import annotations

from typing import Protocol

from maintenance_service.domain.entities.queue_entry import DeliveryLogEntry, QueueEntry


class EmailQueueRepository(Protocol):
    async def append(self, entry: QueueEntry) -> None: ...

    async def remove(self, entry: QueueEntry) -> bool:
        """Delete ``entry``. False when it is no longer queued."""
        ...

    async def replace(self, current: QueueEntry, updated: QueueEntry) -> bool:
        """Swap ``current`` for ``updated`` in place. False when ``current`` is gone."""
        ...

    async def list_entries(self) -> list[QueueEntry]: ...

    async def size(self) -> int: ...

    async def clear(self) -> int: ...


class DeliveryLogRepository(Protocol):
    async def record(self, entry: DeliveryLogEntry) -> None: ...

    async def recent(self, *, recipient: str | None = None, limit: int = 50) -> list[DeliveryLogEntry]: ...

    async def clear(self) -> None: ...
