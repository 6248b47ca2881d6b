from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from maintenance_service.domain.entities.queue_entry import QueueEntry
from maintenance_service.domain.value_objects.enums import QueueEntryState
from maintenance_service.services.retry_policy import RetryPolicy
from tests.conftest import T0


def _entry() -> QueueEntry:
    return QueueEntry(
        id=uuid.uuid4(),
        recipient="reader@example.com",
        notification_type="new_chapter",
        enqueued_at=T0,
        next_attempt_at=T0,
    )


def test_failures_back_off_then_abandon():
    policy = RetryPolicy(max_attempts=3, base_delay=timedelta(minutes=30))

    first = policy.on_failure(_entry(), T0, "timeout")
    assert first.attempts == 1
    assert first.state == QueueEntryState.QUEUED
    assert first.next_attempt_at == T0 + timedelta(minutes=60)
    assert first.last_error == "timeout"

    second = policy.on_failure(first, first.next_attempt_at, "timeout")
    assert second.attempts == 2
    assert second.next_attempt_at == first.next_attempt_at + timedelta(minutes=120)

    third = policy.on_failure(second, second.next_attempt_at, "timeout")
    assert third.attempts == 3
    assert third.state == QueueEntryState.ABANDONED


def test_delays_double():
    policy = RetryPolicy(max_attempts=10, base_delay=timedelta(minutes=30))

    assert [policy.delay_for(n) for n in (1, 2, 3)] == [
        timedelta(minutes=60),
        timedelta(minutes=120),
        timedelta(minutes=240),
    ]


def test_max_delay_caps_backoff():
    policy = RetryPolicy(max_attempts=10, base_delay=timedelta(minutes=30), max_delay=timedelta(hours=1))

    assert policy.delay_for(5) == timedelta(hours=1)


def test_single_attempt_abandons_immediately():
    policy = RetryPolicy(max_attempts=1)

    assert policy.on_failure(_entry(), T0).state == QueueEntryState.ABANDONED


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"base_delay": timedelta(0)}],
)
def test_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
