from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


def dumps(payload: Any) -> str:
    return json.dumps(payload, cls=_Encoder)


def serialize_event(event_type: str, payload: dict[str, Any]) -> dict[str, str]:
    """Stream entry fields: the type stays top-level so consumers can route cheaply."""
    return {"event_type": event_type, "payload": dumps(payload)}


def deserialize_event(fields: dict[str, str]) -> tuple[str, dict[str, Any]]:
    event_type = fields.get("event_type", "unknown")
    raw = fields.get("payload")
    if raw is None:
        data = {k: v for k, v in fields.items() if k != "event_type"}
        return event_type, data
    return event_type, json.loads(raw)
