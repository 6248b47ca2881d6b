from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from maintenance_service.domain.entities.queue_entry import QueueEntry
from maintenance_service.domain.value_objects.enums import QueueEntryState


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Geometric backoff: the n-th failure waits ``base * 2**n``."""

    max_attempts: int = 3
    base_delay: timedelta = timedelta(minutes=30)
    max_delay: timedelta | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= timedelta(0):
            raise ValueError("base_delay must be positive")

    def delay_for(self, attempts: int) -> timedelta:
        delay = self.base_delay * (2 ** attempts)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def on_failure(self, entry: QueueEntry, now: datetime, error: str | None = None) -> QueueEntry:
        attempts = entry.attempts + 1
        if attempts >= self.max_attempts:
            return replace(
                entry,
                attempts=attempts,
                state=QueueEntryState.ABANDONED,
                last_error=error,
            )
        return replace(
            entry,
            attempts=attempts,
            state=QueueEntryState.QUEUED,
            next_attempt_at=now + self.delay_for(attempts),
            last_error=error,
        )
