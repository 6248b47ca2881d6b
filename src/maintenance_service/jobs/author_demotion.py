"""Demote authors who have no published stories left."""
from __future__ import annotations

import logging
from typing import Any

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.scheduler import Scheduler
from maintenance_service.application.repositories.content import AuthorRepository
from maintenance_service.application.repositories.job_state import JobStateRepository
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.entities.story import AuthorRef
from maintenance_service.domain.value_objects.enums import ItemOutcome, NotificationType, RecipientKind
from maintenance_service.services.email_queue import EmailQueue
from maintenance_service.services.locks import JobLock
from maintenance_service.services.scan_job import ScanJob

logger = logging.getLogger(__name__)

JOB_NAME = "author_demotion"


class AuthorCandidates:
    def __init__(self, authors: AuthorRepository) -> None:
        self._authors = authors

    async def fetch_after(self, key: int, limit: int) -> list[AuthorRef]:
        return await self._authors.fetch_authors_after(key, limit)


class DemoteInactiveAuthor:
    """Safe to re-run: ``demote`` only changes users who still hold the author role."""

    def __init__(
        self,
        authors: AuthorRepository,
        queue: EmailQueue,
        clock: Clock,
        variables: dict[str, Any] | None = None,
    ) -> None:
        self._authors = authors
        self._queue = queue
        self._clock = clock
        self._variables = variables or {}

    async def __call__(self, author: AuthorRef) -> ItemOutcome:
        if await self._authors.count_published_stories(author.key) > 0:
            return ItemOutcome.UNCHANGED
        if not await self._authors.demote(author.key, self._clock.now()):
            return ItemOutcome.UNCHANGED

        logger.info("Auto-demoted author #%d (%s) to reader: 0 published stories", author.key, author.login)
        await self._queue.enqueue(
            Recipient(author.email, RecipientKind.USER, author.display_name),
            NotificationType.AUTHOR_DEMOTED,
            self._variables,
        )
        return ItemOutcome.CHANGED


def build_author_demotion_job(
    config: JobSettings,
    authors: AuthorRepository,
    queue: EmailQueue,
    *,
    lock: JobLock,
    state: JobStateRepository,
    scheduler: Scheduler,
    clock: Clock,
    host_ceiling_seconds: int = 0,
    variables: dict[str, Any] | None = None,
) -> ScanJob[AuthorRef]:
    return ScanJob(
        config,
        AuthorCandidates(authors),
        DemoteInactiveAuthor(authors, queue, clock, variables),
        lock=lock,
        state=state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=host_ceiling_seconds,
    )
