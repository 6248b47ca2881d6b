from __future__ import annotations

from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.store import StateStore
from maintenance_service.domain.entities.job_state import JobState
from maintenance_service.infrastructure.store import mappers

STATE_PREFIX = "state:"


class KeyValueJobStateRepo:
    """Implements application.repositories.job_state.JobStateRepository over any StateStore."""

    def __init__(self, store: StateStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def load(self, job_id: str) -> JobState | None:
        raw = await self._store.get(_key(job_id))
        return mappers.raw_to_job_state(raw) if raw is not None else None

    async def save(self, job_id: str, cursor: int) -> JobState:
        state = JobState(job_id=job_id, cursor=cursor, updated_at=self._clock.now())
        await self._store.set(_key(job_id), mappers.job_state_to_raw(state))
        return state

    async def clear(self, job_id: str) -> None:
        await self._store.delete(_key(job_id))


def _key(job_id: str) -> str:
    return f"{STATE_PREFIX}{job_id}"
