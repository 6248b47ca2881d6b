"""Fan-out: split one event's recipients into delayed delivery batches."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from maintenance_service.application.dto.notification import Notification
from maintenance_service.application.dto.summary import ScheduledChunk, SendSummary
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.mail import MailTransport, MessageRenderer
from maintenance_service.application.ports.scheduler import Scheduler
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.value_objects.enums import RecipientKind
from maintenance_service.services.email_queue import EmailQueue
from maintenance_service.services.recipients import chunked

logger = logging.getLogger(__name__)

SEND_BATCH_JOB = "email.send_batch"


class BatchDispatcher:
    def __init__(
        self,
        scheduler: Scheduler,
        transport: MailTransport,
        renderer: MessageRenderer,
        queue: EmailQueue,
        *,
        clock: Clock,
        chunk_size: int = 50,
        chunk_delay_seconds: int = 60,
    ) -> None:
        self._scheduler = scheduler
        self._transport = transport
        self._renderer = renderer
        self._queue = queue
        self._clock = clock
        self._chunk_size = chunk_size
        self._chunk_delay = timedelta(seconds=chunk_delay_seconds)

    async def dispatch(
        self,
        recipients: list[Recipient],
        notification: Notification,
    ) -> list[ScheduledChunk]:
        """Schedule chunk ``i`` at ``now + i * chunk_delay``."""
        if not recipients:
            return []

        now = self._clock.now()
        scheduled: list[ScheduledChunk] = []
        for i, chunk in enumerate(chunked(recipients, self._chunk_size)):
            fire_at = now + i * self._chunk_delay
            await self._scheduler.schedule_once(
                SEND_BATCH_JOB,
                fire_at,
                {
                    "recipients": [_recipient_to_dict(r) for r in chunk],
                    "notification_type": notification.notification_type,
                    "variables": notification.variables,
                },
            )
            scheduled.append(ScheduledChunk(fire_at=fire_at, size=len(chunk)))

        logger.info(
            "Scheduled %d batches for %d recipients (%s)",
            len(scheduled),
            len(recipients),
            notification.notification_type,
        )
        return scheduled

    async def send_batch(self, args: dict[str, Any]) -> SendSummary:
        """Deliver one scheduled chunk. Each recipient is attempted independently."""
        recipients = [_recipient_from_dict(r) for r in args.get("recipients", [])]
        notification_type = args["notification_type"]
        variables: dict[str, Any] = args.get("variables") or {}
        summary = SendSummary()

        for recipient in recipients:
            error = await self._send_one(recipient, notification_type, variables)
            if error is None:
                summary.sent += 1
                continue
            summary.failed += 1
            summary.errors.append(f"Failed to send to {recipient.address}")
            await self._queue.enqueue_failed(recipient, notification_type, variables, error)

        logger.info(
            "Sent %d/%d %s emails (failed: %d)",
            summary.sent,
            len(recipients),
            notification_type,
            summary.failed,
        )
        return summary

    async def _send_one(
        self,
        recipient: Recipient,
        notification_type: str,
        variables: dict[str, Any],
    ) -> str | None:
        personal = {**variables, "user_name": recipient.display_name or "Reader"}
        try:
            rendered = self._renderer.render(notification_type, personal)
            ok = await self._transport.send(recipient.address, rendered.subject, rendered.body)
        except Exception as exc:
            logger.exception("Failed to send %s to %s", notification_type, recipient.address)
            return str(exc) or exc.__class__.__name__
        return None if ok else "transport rejected message"


def _recipient_to_dict(recipient: Recipient) -> dict[str, Any]:
    return {
        "address": recipient.address,
        "kind": recipient.kind.value,
        "display_name": recipient.display_name,
    }


def _recipient_from_dict(data: dict[str, Any]) -> Recipient:
    return Recipient(
        address=data["address"],
        kind=RecipientKind(data.get("kind", RecipientKind.USER)),
        display_name=data.get("display_name"),
    )
