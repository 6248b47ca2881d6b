"""Integration smoke tests for the admin API (in-memory container via dependency override)."""
from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from maintenance_service.api.deps import get_container
from maintenance_service.app import create_app
from maintenance_service.application.dto.job import JobSettings
from maintenance_service.bootstrap import Container
from maintenance_service.config import settings
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.value_objects.enums import RecipientKind
from maintenance_service.jobs.author_demotion import build_author_demotion_job
from maintenance_service.jobs.featured_stories import FeaturedStoriesJob
from maintenance_service.jobs.media_cleanup import build_media_cleanup_job
from maintenance_service.jobs.story_status import Threshold, build_story_status_job
from maintenance_service.jobs.vote_anonymization import build_vote_anonymization_job
from maintenance_service.services.batch_dispatcher import BatchDispatcher
from maintenance_service.services.job_registry import JobRegistry
from maintenance_service.services.notification_service import NotificationService
from tests.conftest import (
    FakeAudienceDirectory,
    FakeAuthorRepo,
    FakeEngagementRepo,
    FakeFeaturedRepo,
    FakeMediaRepo,
    FakeStoryRepo,
)


@pytest.fixture
def container(clock, store, lock, job_state, scheduler, transport, renderer, email_queue):
    authors = FakeAuthorRepo()
    authors.add(1, published=1)
    authors.add(2)
    dispatcher = BatchDispatcher(scheduler, transport, renderer, email_queue, clock=clock)
    demotion = build_author_demotion_job(
        JobSettings(name="author_demotion", batch_size=100), authors, email_queue,
        lock=lock, state=job_state, scheduler=scheduler, clock=clock,
    )
    status = build_story_status_job(
        JobSettings(name="story_status", batch_size=200), FakeStoryRepo(),
        hiatus=Threshold(4), abandoned=Threshold(10),
        lock=lock, state=job_state, scheduler=scheduler, clock=clock,
    )
    featured = FeaturedStoriesJob(FakeFeaturedRepo(), lock=lock, clock=clock)
    anonymization = build_vote_anonymization_job(
        JobSettings(name="vote_anonymization", batch_size=400), FakeEngagementRepo(),
        lock=lock, state=job_state, scheduler=scheduler, clock=clock,
    )
    media = build_media_cleanup_job(
        JobSettings(name="media_cleanup", batch_size=200), FakeMediaRepo(),
        lock=lock, state=job_state, scheduler=scheduler, clock=clock,
    )
    registry = JobRegistry()
    for job in (demotion, status, featured, anonymization, media):
        registry.register_job(job)
    return Container(
        settings=settings,
        clock=clock,
        store=store,
        lock=lock,
        job_state=job_state,
        scheduler=scheduler,
        email_queue=email_queue,
        dispatcher=dispatcher,
        notifications=NotificationService(FakeAudienceDirectory(), dispatcher),
        registry=registry,
        author_demotion=demotion,
        story_status=status,
        featured=featured,
        vote_anonymization=anonymization,
        media_cleanup=media,
    )


@pytest.fixture
def client(container):
    app = create_app()
    app.dependency_overrides[get_container] = lambda: container
    return TestClient(app, raise_server_exceptions=False)


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_correlation_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"


def test_list_jobs(client):
    resp = client.get("/api/v1/jobs")
    assert resp.status_code == 200
    assert [j["name"] for j in resp.json()] == [
        "author_demotion", "story_status", "featured_stories", "vote_anonymization", "media_cleanup",
    ]
    assert resp.json()[0]["locked"] is False


def test_unknown_job_is_404(client):
    resp = client.get("/api/v1/jobs/nope")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Unknown job: nope"


def test_start_cycle_runs_job(client, container):
    resp = client.post("/api/v1/jobs/author_demotion/cycles")
    assert resp.status_code == 200
    body = resp.json()
    assert body["job"] == "author_demotion"
    assert body["result"]["scanned"] == 2
    assert body["result"]["transitioned"] == 1


def test_run_batch_while_locked_is_409(client, container):
    asyncio.run(container.lock.acquire("story_status", 165))

    resp = client.post("/api/v1/jobs/story_status/batches")
    assert resp.status_code == 409

    status = client.get("/api/v1/jobs/story_status").json()
    assert status["locked"] is True
    assert status["lock_expires_at"] is not None


def test_email_queue_endpoints(client, container, transport):
    asyncio.run(container.email_queue.enqueue(Recipient("a@example.com", RecipientKind.USER), "new_chapter"))
    asyncio.run(container.email_queue.enqueue(Recipient("b@example.com", RecipientKind.USER), "new_chapter"))

    stats = client.get("/api/v1/email/queue").json()
    assert stats["size"] == 2
    assert stats["due"] == 2

    transport.rejecting.add("b@example.com")
    sweep = client.post("/api/v1/email/queue/sweep").json()
    assert sweep == {"sent": 1, "retried": 1, "abandoned": 0, "deferred": 0}

    log = client.get("/api/v1/email/log", params={"recipient": "b@example.com"}).json()
    assert [e["status"] for e in log] == ["failed"]

    assert client.delete("/api/v1/email/queue").json() == {"removed": 1}
