"""TTL-bound mutual exclusion on top of the state store."""
from __future__ import annotations

import json
import logging
from datetime import datetime

from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.store import StateStore
from maintenance_service.domain.entities.job_state import LockInfo

logger = logging.getLogger(__name__)

LOCK_PREFIX = "lock:"


class JobLock:
    """At most one live lock per job id.

    Entries carry their own TTL so a crashed holder stops blocking the job once
    the TTL runs out. There is no waiting: a failed ``acquire`` means "skip".
    """

    def __init__(self, store: StateStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def acquire(self, job_id: str, ttl: int) -> bool:
        info = {"job_id": job_id, "acquired_at": self._clock.now().isoformat(), "ttl": ttl}
        acquired = await self._store.set(_key(job_id), json.dumps(info), ttl=ttl, nx=True)
        if not acquired:
            logger.debug("Lock %s is held, skipping", job_id)
        return acquired

    async def release(self, job_id: str) -> None:
        await self._store.delete(_key(job_id))

    async def inspect(self, job_id: str) -> LockInfo | None:
        raw = await self._store.get(_key(job_id))
        if raw is None:
            return None
        data = json.loads(raw)
        return LockInfo(
            job_id=data["job_id"],
            acquired_at=datetime.fromisoformat(data["acquired_at"]),
            ttl_seconds=int(data["ttl"]),
        )


def _key(job_id: str) -> str:
    return f"{LOCK_PREFIX}{job_id}"
