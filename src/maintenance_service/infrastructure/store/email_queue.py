from __future__ import annotations

import redis.asyncio as aioredis

from maintenance_service.domain.entities.queue_entry import DeliveryLogEntry, QueueEntry
from maintenance_service.infrastructure.store import mappers

QUEUE_KEY = "email:queue"
LOG_KEY = "email:log"
DEFAULT_LOG_LIMIT = 1000


class RedisEmailQueueRepo:
    """FIFO list of serialized entries.

    Entries stay in the list while a sweep delivers them. ``remove`` and
    ``replace`` match an entry by its stored form, so an entry deleted by
    ``clear`` in the meantime is never written back.
    """

    def __init__(self, redis: aioredis.Redis, prefix: str = "") -> None:
        self._redis = redis
        self._key = f"{prefix}{QUEUE_KEY}"

    async def append(self, entry: QueueEntry) -> None:
        await self._redis.rpush(self._key, mappers.queue_entry_to_raw(entry))

    async def remove(self, entry: QueueEntry) -> bool:
        removed = await self._redis.lrem(self._key, 1, mappers.queue_entry_to_raw(entry))
        return int(removed) > 0

    async def replace(self, current: QueueEntry, updated: QueueEntry) -> bool:
        current_raw = mappers.queue_entry_to_raw(current)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.linsert(self._key, "BEFORE", current_raw, mappers.queue_entry_to_raw(updated))
            pipe.lrem(self._key, 1, current_raw)
            inserted, _removed = await pipe.execute()
        return int(inserted) > 0

    async def list_entries(self) -> list[QueueEntry]:
        raw_items = await self._redis.lrange(self._key, 0, -1)
        return [mappers.raw_to_queue_entry(raw) for raw in raw_items]

    async def size(self) -> int:
        return int(await self._redis.llen(self._key))

    async def clear(self) -> int:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.llen(self._key)
            pipe.delete(self._key)
            length, _deleted = await pipe.execute()
        return int(length)


class RedisDeliveryLogRepo:
    """Newest first, capped at ``limit`` entries."""

    def __init__(self, redis: aioredis.Redis, prefix: str = "", limit: int = DEFAULT_LOG_LIMIT) -> None:
        self._redis = redis
        self._key = f"{prefix}{LOG_KEY}"
        self._limit = limit

    async def record(self, entry: DeliveryLogEntry) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.lpush(self._key, mappers.log_entry_to_raw(entry))
            pipe.ltrim(self._key, 0, self._limit - 1)
            await pipe.execute()

    async def recent(self, *, recipient: str | None = None, limit: int = 50) -> list[DeliveryLogEntry]:
        raw_items = await self._redis.lrange(self._key, 0, -1)
        entries = [mappers.raw_to_log_entry(raw) for raw in raw_items]
        if recipient is not None:
            wanted = recipient.lower()
            entries = [e for e in entries if e.recipient.lower() == wanted]
        return entries[:limit] if limit > 0 else entries

    async def clear(self) -> None:
        await self._redis.delete(self._key)
