from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.domain.entities.story import StatusCandidate
from maintenance_service.domain.value_objects.enums import ItemOutcome, StoryStatus, ThresholdUnit
from maintenance_service.jobs.story_status import (
    JOB_NAME,
    Threshold,
    TransitionStoryStatus,
    build_story_status_job,
    months_before,
)
from tests.conftest import FakeStoryRepo, T0


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_months_before_clamps_day():
    assert months_before(_utc(2026, 3, 31, 8, 0), 1) == _utc(2026, 2, 28, 8, 0)
    assert months_before(_utc(2026, 1, 15), 4) == _utc(2025, 9, 15)
    assert months_before(_utc(2026, 3, 2), 14) == _utc(2025, 1, 2)


@pytest.mark.parametrize(
    ("threshold", "expected"),
    [
        (Threshold(10, ThresholdUnit.DAYS), T0 - timedelta(days=10)),
        (Threshold(2, ThresholdUnit.WEEKS), T0 - timedelta(weeks=2)),
        (Threshold(4, ThresholdUnit.MONTHS), _utc(2025, 11, 2, 12, 0)),
        (Threshold(0, ThresholdUnit.DAYS), T0 - timedelta(days=1)),
    ],
)
def test_threshold_cutoff(threshold, expected):
    assert threshold.cutoff(T0) == expected


@pytest.fixture
def stories():
    repo = FakeStoryRepo()
    repo.add(1, StoryStatus.ONGOING, _utc(2025, 10, 1))      # idle 5 months
    repo.add(2, StoryStatus.ONGOING, _utc(2026, 2, 1))       # recent
    repo.add(3, StoryStatus.ON_HIATUS, _utc(2025, 4, 1))     # idle 11 months
    repo.add(4, StoryStatus.ON_HIATUS, _utc(2025, 10, 1))    # hiatus, not long enough
    repo.add(5, StoryStatus.COMPLETED, _utc(2024, 1, 1))
    repo.add(6, StoryStatus.ONGOING, _utc(2024, 1, 1), published=False)
    return repo


@pytest.mark.asyncio
async def test_cycle_moves_idle_stories_one_step(stories, lock, job_state, scheduler, clock):
    job = build_story_status_job(
        JobSettings(name=JOB_NAME, batch_size=200), stories,
        hiatus=Threshold(4), abandoned=Threshold(10),
        lock=lock, state=job_state, scheduler=scheduler, clock=clock,
    )

    summary = await job.start_cycle()

    assert summary.scanned == 2
    assert summary.transitioned == 2
    assert {k: s.status for k, s in stories.stories.items()} == {
        1: StoryStatus.ON_HIATUS,
        2: StoryStatus.ONGOING,
        3: StoryStatus.ABANDONED,
        4: StoryStatus.ON_HIATUS,
        5: StoryStatus.COMPLETED,
        6: StoryStatus.ONGOING,
    }


@pytest.mark.asyncio
async def test_transition_is_conditional_on_current_status(stories):
    process = TransitionStoryStatus(stories)
    candidate = StatusCandidate(key=1, current_status=StoryStatus.ONGOING, target_status=StoryStatus.ON_HIATUS)

    assert await process(candidate) == ItemOutcome.CHANGED
    assert await process(candidate) == ItemOutcome.UNCHANGED


@pytest.mark.asyncio
async def test_unknown_target_fails(stories):
    process = TransitionStoryStatus(stories)
    candidate = StatusCandidate(key=5, current_status=StoryStatus.COMPLETED, target_status="archived")

    assert await process(candidate) == ItemOutcome.FAILED
    assert stories.stories[5].status == StoryStatus.COMPLETED
