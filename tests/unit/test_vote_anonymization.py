from __future__ import annotations

from datetime import timedelta

import pytest

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.domain.value_objects.enums import EngagementTable
from maintenance_service.jobs.vote_anonymization import JOB_NAME, build_vote_anonymization_job
from maintenance_service.services.phased_source import compose_key
from tests.conftest import FakeEngagementRepo

RATINGS = EngagementTable.RATINGS
LIKES = EngagementTable.LIKES


def _job(engagement, config, *, lock, job_state, scheduler, clock, **kwargs):
    return build_vote_anonymization_job(
        config, engagement, lock=lock, state=job_state, scheduler=scheduler, clock=clock, **kwargs,
    )


@pytest.mark.asyncio
async def test_strips_hashes_of_old_anonymous_votes(lock, job_state, scheduler, clock):
    old = clock.now() - timedelta(days=45)
    engagement = FakeEngagementRepo()
    engagement.add(RATINGS, 1, old)
    engagement.add(RATINGS, 2, clock.now() - timedelta(days=5))
    engagement.add(RATINGS, 3, old, user_id=8)
    engagement.add(LIKES, 1, old)
    engagement.add(LIKES, 2, old, identifier_hash=None)

    summary = await _job(
        engagement, JobSettings(name=JOB_NAME, batch_size=400),
        lock=lock, job_state=job_state, scheduler=scheduler, clock=clock,
    ).start_cycle()

    assert summary.scanned == 2
    assert summary.transitioned == 2
    assert summary.has_more is False
    assert engagement.rows[RATINGS][1].identifier_hash is None
    assert engagement.rows[RATINGS][2].identifier_hash == "hash"
    assert engagement.rows[RATINGS][3].identifier_hash == "hash"
    assert engagement.rows[LIKES][1].identifier_hash is None


@pytest.mark.asyncio
async def test_ratings_then_likes_across_continuations(lock, job_state, scheduler, clock):
    old = clock.now() - timedelta(days=45)
    engagement = FakeEngagementRepo()
    for row_id in (1, 2, 3):
        engagement.add(RATINGS, row_id, old)
    for row_id in (1, 2):
        engagement.add(LIKES, row_id, old)
    # No runtime allowance: every invocation stops after one batch.
    job = _job(
        engagement, JobSettings(name=JOB_NAME, batch_size=2, max_runtime_seconds=0),
        lock=lock, job_state=job_state, scheduler=scheduler, clock=clock,
    )

    first = await job.start_cycle()
    assert first.has_more is True
    assert (await job_state.load(JOB_NAME)).cursor == compose_key(0, 2)

    second = await job.run_batch()
    assert second.scanned == 2
    assert (await job_state.load(JOB_NAME)).cursor == compose_key(1, 1)

    third = await job.run_batch()
    assert third.scanned == 1
    assert third.has_more is False
    assert await job_state.load(JOB_NAME) is None
    assert scheduler.pending(f"{JOB_NAME}.continue") == []
    assert all(v.identifier_hash is None for rows in engagement.rows.values() for v in rows.values())


@pytest.mark.asyncio
async def test_retention_window_is_configurable(lock, job_state, scheduler, clock):
    engagement = FakeEngagementRepo()
    engagement.add(LIKES, 1, clock.now() - timedelta(days=10))

    summary = await _job(
        engagement, JobSettings(name=JOB_NAME, batch_size=400),
        lock=lock, job_state=job_state, scheduler=scheduler, clock=clock, retention_days=7,
    ).start_cycle()

    assert summary.transitioned == 1


@pytest.mark.asyncio
async def test_rerun_is_a_no_op(lock, job_state, scheduler, clock):
    engagement = FakeEngagementRepo()
    engagement.add(RATINGS, 1, clock.now() - timedelta(days=45))
    job = _job(
        engagement, JobSettings(name=JOB_NAME, batch_size=400),
        lock=lock, job_state=job_state, scheduler=scheduler, clock=clock,
    )

    await job.start_cycle()
    again = await job.start_cycle()

    assert again.scanned == 0
    assert again.transitioned == 0
