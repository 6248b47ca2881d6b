from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class JobSettings:
    name: str
    batch_size: int
    max_runtime_seconds: int = 45
    cron_offset_minutes: int = 0
    continuation_delay_seconds: int = 60
    lock_grace_seconds: int = 120

    @property
    def continuation_name(self) -> str:
        return f"{self.name}.continue"

    @property
    def lock_ttl(self) -> int:
        return self.max_runtime_seconds + self.lock_grace_seconds
