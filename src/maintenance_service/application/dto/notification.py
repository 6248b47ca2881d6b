from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Notification:
    """What a dispatched batch renders for every recipient in its chunk."""

    notification_type: str
    variables: dict[str, Any] = field(default_factory=dict)
