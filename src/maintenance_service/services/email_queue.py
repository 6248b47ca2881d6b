"""Persistent delivery queue with time-scheduled retries."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from maintenance_service.application.dto.summary import SweepSummary
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.mail import MailTransport, MessageRenderer
from maintenance_service.application.repositories.email_queue import (
    DeliveryLogRepository,
    EmailQueueRepository,
)
from maintenance_service.domain.entities.queue_entry import DeliveryLogEntry, QueueEntry
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.value_objects.enums import DeliveryStatus, QueueEntryState
from maintenance_service.services.locks import JobLock
from maintenance_service.services.retry_policy import RetryPolicy

logger = logging.getLogger(__name__)

SWEEP_JOB = "email.sweep"
SWEEP_LOCK_TTL = 300


@dataclass(frozen=True, slots=True)
class QueueStats:
    size: int
    due: int
    oldest_enqueued_at: datetime | None


class EmailQueue:
    def __init__(
        self,
        repo: EmailQueueRepository,
        log: DeliveryLogRepository,
        transport: MailTransport,
        renderer: MessageRenderer,
        *,
        retry_policy: RetryPolicy,
        lock: JobLock,
        clock: Clock,
        batch_size: int = 50,
    ) -> None:
        self._repo = repo
        self._log = log
        self._transport = transport
        self._renderer = renderer
        self._policy = retry_policy
        self._lock = lock
        self._clock = clock
        self._batch_size = batch_size

    async def enqueue(
        self,
        recipient: Recipient,
        notification_type: str,
        variables: dict[str, Any] | None = None,
    ) -> QueueEntry:
        now = self._clock.now()
        entry = QueueEntry(
            id=uuid.uuid4(),
            recipient=recipient.address,
            display_name=recipient.display_name,
            notification_type=notification_type,
            variables=dict(variables or {}),
            enqueued_at=now,
            next_attempt_at=now,
        )
        await self._repo.append(entry)
        return entry

    async def enqueue_failed(
        self,
        recipient: Recipient,
        notification_type: str,
        variables: dict[str, Any],
        error: str,
    ) -> QueueEntry | None:
        """Hand a delivery that already failed once to the retry policy."""
        now = self._clock.now()
        entry = QueueEntry(
            id=uuid.uuid4(),
            recipient=recipient.address,
            display_name=recipient.display_name,
            notification_type=notification_type,
            variables=dict(variables),
            enqueued_at=now,
            next_attempt_at=now,
        )
        retried = self._policy.on_failure(entry, now, error)
        if retried.state == QueueEntryState.ABANDONED:
            await self._abandon(retried)
            return None
        await self._repo.append(retried)
        return retried

    async def sweep(self) -> SweepSummary:
        """Deliver due entries, FIFO, at most ``batch_size`` per sweep.

        An entry leaves storage only after it was sent or abandoned. A crash
        mid-sweep can resend an entry but never loses one.
        """
        summary = SweepSummary()
        if not await self._lock.acquire(SWEEP_JOB, SWEEP_LOCK_TTL):
            return summary

        try:
            now = self._clock.now()
            attempted = 0
            for entry in await self._repo.list_entries():
                if attempted >= self._batch_size or not entry.is_due(now):
                    summary.deferred += 1
                    continue

                attempted += 1
                error = await self._deliver(entry)
                if error is None:
                    summary.sent += 1
                    await self._repo.remove(entry)
                    continue

                updated = self._policy.on_failure(entry, now, error)
                if updated.state == QueueEntryState.ABANDONED:
                    summary.abandoned += 1
                    await self._repo.remove(entry)
                    await self._abandon(updated)
                else:
                    summary.retried += 1
                    await self._repo.replace(entry, updated)
        finally:
            await self._lock.release(SWEEP_JOB)

        if summary.sent or summary.retried or summary.abandoned:
            logger.info(
                "Email sweep: sent=%d retried=%d abandoned=%d deferred=%d",
                summary.sent,
                summary.retried,
                summary.abandoned,
                summary.deferred,
            )
        return summary

    async def stats(self) -> QueueStats:
        entries = await self._repo.list_entries()
        now = self._clock.now()
        return QueueStats(
            size=len(entries),
            due=sum(1 for e in entries if e.is_due(now)),
            oldest_enqueued_at=min((e.enqueued_at for e in entries), default=None),
        )

    async def clear(self) -> int:
        return await self._repo.clear()

    async def recent_log(self, *, recipient: str | None = None, limit: int = 50) -> list[DeliveryLogEntry]:
        return await self._log.recent(recipient=recipient, limit=limit)

    async def _deliver(self, entry: QueueEntry) -> str | None:
        """Attempt one delivery. Returns ``None`` on success, else an error message."""
        variables = {**entry.variables, "user_name": entry.display_name or "Reader"}
        try:
            rendered = self._renderer.render(entry.notification_type, variables)
            ok = await self._transport.send(entry.recipient, rendered.subject, rendered.body)
        except Exception as exc:
            logger.exception("Failed to deliver %s to %s", entry.notification_type, entry.recipient)
            error = str(exc) or exc.__class__.__name__
        else:
            error = None if ok else "transport rejected message"

        await self._log.record(
            DeliveryLogEntry(
                timestamp=self._clock.now(),
                recipient=entry.recipient,
                notification_type=entry.notification_type,
                status=DeliveryStatus.SENT if error is None else DeliveryStatus.FAILED,
                error_message=error or "",
            )
        )
        return error

    async def _abandon(self, entry: QueueEntry) -> None:
        logger.warning(
            "Dropping %s for %s after %d attempts: %s",
            entry.notification_type,
            entry.recipient,
            entry.attempts,
            entry.last_error,
        )
        await self._log.record(
            DeliveryLogEntry(
                timestamp=self._clock.now(),
                recipient=entry.recipient,
                notification_type=entry.notification_type,
                status=DeliveryStatus.FAILED,
                error_message="Max retry attempts reached",
            )
        )
