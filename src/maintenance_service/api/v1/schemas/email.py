from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class QueueStatsResponse(BaseModel):
    size: int
    due: int
    oldest_enqueued_at: datetime | None = None


class SweepResponse(BaseModel):
    sent: int
    retried: int
    abandoned: int
    deferred: int


class ClearQueueResponse(BaseModel):
    removed: int


class DeliveryLogResponse(BaseModel):
    timestamp: datetime
    recipient: str
    notification_type: str
    status: str
    error_message: str = ""
