from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class JobStatusResponse(BaseModel):
    name: str
    cursor: int | None = None
    cursor_updated_at: datetime | None = None
    locked: bool = False
    lock_expires_at: datetime | None = None
    next_run_at: datetime | None = None
    next_continuation_at: datetime | None = None


class JobRunResponse(BaseModel):
    job: str
    result: dict[str, Any]
