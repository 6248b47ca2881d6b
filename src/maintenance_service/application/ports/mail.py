from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


class MailTransport(Protocol):
    async def send(self, address: str, subject: str, body: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class RenderedEmail:
    subject: str
    body: str


class MessageRenderer(Protocol):
    def render(self, notification_type: str, variables: dict[str, Any]) -> RenderedEmail: ...
