from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Protocol


class Scheduler(Protocol):
    async def schedule_recurring(
        self,
        job_name: str,
        cadence: timedelta,
        first_run: datetime,
    ) -> None: ...

    async def schedule_once(
        self,
        job_name: str,
        fire_at: datetime,
        args: dict[str, Any] | None = None,
    ) -> None: ...

    async def next_scheduled(self, job_name: str) -> datetime | None: ...

    async def cancel_all(self, job_name: str) -> int: ...
