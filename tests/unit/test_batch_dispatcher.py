from __future__ import annotations

from datetime import timedelta

import pytest

from maintenance_service.application.dto.notification import Notification
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.value_objects.enums import RecipientKind
from maintenance_service.services.batch_dispatcher import SEND_BATCH_JOB, BatchDispatcher


@pytest.fixture
def dispatcher(scheduler, transport, renderer, email_queue, clock):
    return BatchDispatcher(
        scheduler, transport, renderer, email_queue,
        clock=clock, chunk_size=50, chunk_delay_seconds=60,
    )


def _recipients(n):
    return [Recipient(f"r{i}@example.com", RecipientKind.USER, f"R{i}") for i in range(n)]


@pytest.mark.asyncio
async def test_dispatch_spreads_chunks_over_time(dispatcher, scheduler, clock):
    chunks = await dispatcher.dispatch(_recipients(130), Notification("new_chapter", {"story_id": 7}))

    assert [c.size for c in chunks] == [50, 50, 30]
    assert [c.fire_at - clock.now() for c in chunks] == [
        timedelta(0), timedelta(seconds=60), timedelta(seconds=120),
    ]
    calls = scheduler.pending(SEND_BATCH_JOB)
    assert [len(c.args["recipients"]) for c in calls] == [50, 50, 30]
    assert calls[0].args["notification_type"] == "new_chapter"
    assert calls[0].args["variables"] == {"story_id": 7}


@pytest.mark.asyncio
async def test_dispatch_without_recipients_schedules_nothing(dispatcher, scheduler):
    assert await dispatcher.dispatch([], Notification("new_chapter", {})) == []
    assert scheduler.calls == []


@pytest.mark.asyncio
async def test_send_batch_delivers_each_recipient(dispatcher, scheduler, transport, renderer):
    await dispatcher.dispatch(_recipients(3), Notification("new_chapter", {"story_title": "Tide"}))
    args = scheduler.pending(SEND_BATCH_JOB)[0].args

    summary = await dispatcher.send_batch(args)

    assert summary.sent == 3
    assert summary.failed == 0
    assert transport.addresses == ["r0@example.com", "r1@example.com", "r2@example.com"]
    assert renderer.rendered[0][1]["user_name"] == "R0"


@pytest.mark.asyncio
async def test_failed_recipient_goes_to_retry_queue(dispatcher, scheduler, transport, queue_repo, clock):
    transport.rejecting.add("r1@example.com")
    await dispatcher.dispatch(_recipients(3), Notification("new_chapter", {}))

    summary = await dispatcher.send_batch(scheduler.pending(SEND_BATCH_JOB)[0].args)

    assert summary.sent == 2
    assert summary.failed == 1
    assert summary.errors == ["Failed to send to r1@example.com"]
    [entry] = queue_repo.entries
    assert entry.recipient == "r1@example.com"
    assert entry.display_name == "R1"
    assert entry.attempts == 1
    assert entry.next_attempt_at == clock.now() + timedelta(minutes=60)


@pytest.mark.asyncio
async def test_raising_transport_does_not_stop_the_chunk(dispatcher, scheduler, transport):
    transport.raising.add("r0@example.com")
    await dispatcher.dispatch(_recipients(2), Notification("new_chapter", {}))

    summary = await dispatcher.send_batch(scheduler.pending(SEND_BATCH_JOB)[0].args)

    assert summary.sent == 1
    assert summary.failed == 1
