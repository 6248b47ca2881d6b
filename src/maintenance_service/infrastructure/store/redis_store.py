from __future__ import annotations

import redis.asyncio as aioredis


class RedisStateStore:
    """Implements application.ports.store.StateStore."""

    def __init__(self, redis: aioredis.Redis, prefix: str = "") -> None:
        self._redis = redis
        self._prefix = prefix

    async def get(self, key: str) -> str | None:
        return await self._redis.get(self._key(key))

    async def set(
        self,
        key: str,
        value: str,
        *,
        ttl: int | None = None,
        nx: bool = False,
    ) -> bool:
        result = await self._redis.set(self._key(key), value, ex=ttl, nx=nx)
        return bool(result)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"
