"""Wake-up scheduler on Redis sorted sets, scored by fire time."""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import redis.asyncio as aioredis

from maintenance_service.infrastructure.bus.serializer import dumps

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Wakeup:
    id: str
    job_name: str
    fire_at: datetime
    args: dict[str, Any] = field(default_factory=dict)
    cadence_seconds: int | None = None


class RedisScheduler:
    """Implements application.ports.scheduler.Scheduler.

    ``<prefix>due`` holds every pending wake-up, ``<prefix>job:<name>`` the
    ones for a single job, ``<prefix>entries`` their payloads.
    """

    def __init__(self, redis: aioredis.Redis, prefix: str = "sched:") -> None:
        self._redis = redis
        self._prefix = prefix

    async def schedule_recurring(
        self,
        job_name: str,
        cadence: timedelta,
        first_run: datetime,
    ) -> None:
        await self._add(job_name, first_run, {}, int(cadence.total_seconds()))

    async def schedule_once(
        self,
        job_name: str,
        fire_at: datetime,
        args: dict[str, Any] | None = None,
    ) -> None:
        await self._add(job_name, fire_at, args or {}, None)

    async def next_scheduled(self, job_name: str) -> datetime | None:
        first = await self._redis.zrange(self._job_key(job_name), 0, 0, withscores=True)
        if not first:
            return None
        _member, score = first[0]
        return datetime.fromtimestamp(score, tz=timezone.utc)

    async def cancel_all(self, job_name: str) -> int:
        job_key = self._job_key(job_name)
        ids = await self._redis.zrange(job_key, 0, -1)
        if not ids:
            return 0
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zrem(self._due_key, *ids)
            pipe.hdel(self._entries_key, *ids)
            pipe.delete(job_key)
            await pipe.execute()
        logger.debug("Cancelled %d pending wake-ups for %s", len(ids), job_name)
        return len(ids)

    async def pop_due(self, now: datetime, limit: int = 20) -> list[Wakeup]:
        """Claim up to ``limit`` due wake-ups. Recurring ones are re-armed before returning."""
        ids = await self._redis.zrangebyscore(
            self._due_key, "-inf", now.timestamp(), start=0, num=limit,
        )
        claimed: list[Wakeup] = []
        for wakeup_id in ids:
            # zrem is the claim: only one poller removes a given member.
            if not await self._redis.zrem(self._due_key, wakeup_id):
                continue
            raw = await self._redis.hget(self._entries_key, wakeup_id)
            await self._redis.hdel(self._entries_key, wakeup_id)
            if raw is None:
                continue
            wakeup = _load(raw)
            await self._redis.zrem(self._job_key(wakeup.job_name), wakeup_id)

            if wakeup.cadence_seconds:
                cadence = timedelta(seconds=wakeup.cadence_seconds)
                next_run = wakeup.fire_at + cadence
                while next_run <= now:
                    next_run += cadence
                await self._add(wakeup.job_name, next_run, wakeup.args, wakeup.cadence_seconds)

            claimed.append(wakeup)
        return claimed

    async def pending(self, job_name: str) -> list[Wakeup]:
        ids = await self._redis.zrange(self._job_key(job_name), 0, -1)
        if not ids:
            return []
        raws = await self._redis.hmget(self._entries_key, ids)
        return [_load(raw) for raw in raws if raw is not None]

    async def _add(
        self,
        job_name: str,
        fire_at: datetime,
        args: dict[str, Any],
        cadence_seconds: int | None,
    ) -> str:
        wakeup_id = uuid.uuid4().hex
        payload = dumps(
            {
                "id": wakeup_id,
                "job_name": job_name,
                "fire_at": fire_at,
                "args": args,
                "cadence_seconds": cadence_seconds,
            }
        )
        score = fire_at.timestamp()
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(self._entries_key, wakeup_id, payload)
            pipe.zadd(self._due_key, {wakeup_id: score})
            pipe.zadd(self._job_key(job_name), {wakeup_id: score})
            await pipe.execute()
        return wakeup_id

    @property
    def _due_key(self) -> str:
        return f"{self._prefix}due"

    @property
    def _entries_key(self) -> str:
        return f"{self._prefix}entries"

    def _job_key(self, job_name: str) -> str:
        return f"{self._prefix}job:{job_name}"


def _load(raw: str) -> Wakeup:
    data = json.loads(raw)
    return Wakeup(
        id=data["id"],
        job_name=data["job_name"],
        fire_at=datetime.fromisoformat(data["fire_at"]),
        args=data.get("args") or {},
        cadence_seconds=data.get("cadence_seconds"),
    )
