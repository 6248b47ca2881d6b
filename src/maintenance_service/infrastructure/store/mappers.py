from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from maintenance_service.domain.entities.job_state import JobState
from maintenance_service.domain.entities.queue_entry import DeliveryLogEntry, QueueEntry
from maintenance_service.domain.value_objects.enums import DeliveryStatus, QueueEntryState
from maintenance_service.infrastructure.bus.serializer import dumps


def job_state_to_raw(state: JobState) -> str:
    return dumps({"job_id": state.job_id, "cursor": state.cursor, "updated_at": state.updated_at})


def raw_to_job_state(raw: str) -> JobState:
    data = json.loads(raw)
    return JobState(
        job_id=data["job_id"],
        cursor=max(0, int(data["cursor"])),
        updated_at=datetime.fromisoformat(data["updated_at"]),
    )


def queue_entry_to_raw(entry: QueueEntry) -> str:
    return dumps(
        {
            "id": entry.id,
            "recipient": entry.recipient,
            "display_name": entry.display_name,
            "notification_type": entry.notification_type,
            "variables": entry.variables,
            "attempts": entry.attempts,
            "enqueued_at": entry.enqueued_at,
            "next_attempt_at": entry.next_attempt_at,
            "state": entry.state,
            "last_error": entry.last_error,
        }
    )


def raw_to_queue_entry(raw: str) -> QueueEntry:
    data: dict[str, Any] = json.loads(raw)
    return QueueEntry(
        id=UUID(data["id"]),
        recipient=data["recipient"],
        display_name=data.get("display_name"),
        notification_type=data["notification_type"],
        variables=data.get("variables") or {},
        attempts=int(data.get("attempts", 0)),
        enqueued_at=datetime.fromisoformat(data["enqueued_at"]),
        next_attempt_at=datetime.fromisoformat(data["next_attempt_at"]),
        state=QueueEntryState(data.get("state", QueueEntryState.QUEUED)),
        last_error=data.get("last_error"),
    )


def log_entry_to_raw(entry: DeliveryLogEntry) -> str:
    return dumps(
        {
            "timestamp": entry.timestamp,
            "recipient": entry.recipient,
            "notification_type": entry.notification_type,
            "status": entry.status,
            "error_message": entry.error_message,
        }
    )


def raw_to_log_entry(raw: str) -> DeliveryLogEntry:
    data = json.loads(raw)
    return DeliveryLogEntry(
        timestamp=datetime.fromisoformat(data["timestamp"]),
        recipient=data["recipient"],
        notification_type=data["notification_type"],
        status=DeliveryStatus(data["status"]),
        error_message=data.get("error_message", ""),
    )
