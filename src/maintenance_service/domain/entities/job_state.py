from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

MIN_CURSOR = 0


@dataclass(frozen=True, slots=True)
class JobState:
    """Resumption record for one scan cycle of a job."""

    job_id: str
    cursor: int
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class LockInfo:
    job_id: str
    acquired_at: datetime
    ttl_seconds: int

    @property
    def expires_at(self) -> datetime:
        return self.acquired_at + timedelta(seconds=self.ttl_seconds)


@dataclass(frozen=True, slots=True)
class BatchWindow:
    """Wall-clock allowance for a single invocation. Never persisted."""

    start_time: datetime
    budget_seconds: float

    @property
    def deadline(self) -> datetime:
        return self.start_time + timedelta(seconds=self.budget_seconds)

    def expired(self, now: datetime) -> bool:
        return now >= self.deadline
