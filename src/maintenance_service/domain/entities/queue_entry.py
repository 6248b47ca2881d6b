from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from maintenance_service.domain.value_objects.enums import DeliveryStatus, QueueEntryState


@dataclass(frozen=True, slots=True)
class QueueEntry:
    id: UUID
    recipient: str
    notification_type: str
    enqueued_at: datetime
    next_attempt_at: datetime
    display_name: str | None = None
    variables: dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    state: QueueEntryState = QueueEntryState.QUEUED
    last_error: str | None = None

    def is_due(self, now: datetime) -> bool:
        return self.state == QueueEntryState.QUEUED and self.next_attempt_at <= now


@dataclass(frozen=True, slots=True)
class DeliveryLogEntry:
    timestamp: datetime
    recipient: str
    notification_type: str
    status: DeliveryStatus
    error_message: str = ""
