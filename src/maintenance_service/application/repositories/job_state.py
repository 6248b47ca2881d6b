from __future__ import annotations

from typing import Protocol

from maintenance_service.domain.entities.job_state import JobState


class JobStateRepository(Protocol):
    async def load(self, job_id: str) -> JobState | None: ...

    async def save(self, job_id: str, cursor: int) -> JobState: ...

    async def clear(self, job_id: str) -> None: ...
