"""Move stale stories ongoing -> on-hiatus -> abandoned."""
from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.scheduler import Scheduler
from maintenance_service.application.repositories.content import StoryRepository
from maintenance_service.application.repositories.job_state import JobStateRepository
from maintenance_service.domain.entities.story import StatusCandidate
from maintenance_service.domain.value_objects.enums import ItemOutcome, StoryStatus, ThresholdUnit
from maintenance_service.services.locks import JobLock
from maintenance_service.services.scan_job import ScanJob

logger = logging.getLogger(__name__)

JOB_NAME = "story_status"

TRANSITION_TARGETS = frozenset({StoryStatus.ON_HIATUS, StoryStatus.ABANDONED})


@dataclass(frozen=True, slots=True)
class Threshold:
    value: int
    unit: ThresholdUnit = ThresholdUnit.MONTHS

    def cutoff(self, now: datetime) -> datetime:
        value = max(1, self.value)
        if self.unit == ThresholdUnit.DAYS:
            return now - timedelta(days=value)
        if self.unit == ThresholdUnit.WEEKS:
            return now - timedelta(weeks=value)
        return months_before(now, value)


def months_before(moment: datetime, months: int) -> datetime:
    years, month_index = divmod(moment.month - 1 - months, 12)
    year = moment.year + years
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class StatusCandidates:
    """Cutoffs are recomputed per fetch so a resumed cycle sees current time."""

    def __init__(
        self,
        stories: StoryRepository,
        clock: Clock,
        *,
        hiatus: Threshold,
        abandoned: Threshold,
    ) -> None:
        self._stories = stories
        self._clock = clock
        self._hiatus = hiatus
        self._abandoned = abandoned

    async def fetch_after(self, key: int, limit: int) -> list[StatusCandidate]:
        now = self._clock.now()
        return await self._stories.fetch_transition_candidates(
            key,
            limit,
            hiatus_cutoff=self._hiatus.cutoff(now),
            abandoned_cutoff=self._abandoned.cutoff(now),
        )


class TransitionStoryStatus:
    def __init__(self, stories: StoryRepository) -> None:
        self._stories = stories

    async def __call__(self, candidate: StatusCandidate) -> ItemOutcome:
        if candidate.target_status not in TRANSITION_TARGETS:
            logger.warning(
                "Story %d: no transition from %r", candidate.key, candidate.current_status,
            )
            return ItemOutcome.FAILED

        changed = await self._stories.set_status_if(
            candidate.key,
            expected=candidate.current_status,
            target=candidate.target_status,
        )
        return ItemOutcome.CHANGED if changed else ItemOutcome.UNCHANGED


def build_story_status_job(
    config: JobSettings,
    stories: StoryRepository,
    *,
    hiatus: Threshold,
    abandoned: Threshold,
    lock: JobLock,
    state: JobStateRepository,
    scheduler: Scheduler,
    clock: Clock,
    host_ceiling_seconds: int = 0,
) -> ScanJob[StatusCandidate]:
    return ScanJob(
        config,
        StatusCandidates(stories, clock, hiatus=hiatus, abandoned=abandoned),
        TransitionStoryStatus(stories),
        lock=lock,
        state=state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=host_ceiling_seconds,
    )
