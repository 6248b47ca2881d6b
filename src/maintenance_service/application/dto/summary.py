from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class BatchSummary:
    scanned: int = 0
    transitioned: int = 0
    errors: int = 0
    has_more: bool = False
    cursor: int | None = None
    acquired: bool = True

    @classmethod
    def skipped(cls) -> BatchSummary:
        return cls(acquired=False)


@dataclass(slots=True)
class SweepSummary:
    sent: int = 0
    retried: int = 0
    abandoned: int = 0
    deferred: int = 0


@dataclass(slots=True)
class SendSummary:
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ScheduledChunk:
    fire_at: datetime
    size: int
