"""Composition root shared by the scheduler worker, the events consumer and the admin API."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.application.ports.clock import Clock, SystemClock
from maintenance_service.application.ports.mail import MailTransport
from maintenance_service.config import Settings
from maintenance_service.domain.value_objects.enums import FeaturedMode, ThresholdUnit
from maintenance_service.infrastructure.db.repositories.audience import SqlAudienceDirectory
from maintenance_service.infrastructure.db.repositories.author import SqlAuthorRepo
from maintenance_service.infrastructure.db.repositories.cleanup import SqlEngagementRepo, SqlMediaRepo
from maintenance_service.infrastructure.db.repositories.story import SqlFeaturedRepo, SqlStoryRepo
from maintenance_service.infrastructure.mail.smtp_transport import SmtpMailTransport
from maintenance_service.infrastructure.mail.templates import TemplateRenderer
from maintenance_service.infrastructure.scheduler.redis_scheduler import RedisScheduler
from maintenance_service.infrastructure.store.email_queue import (
    RedisDeliveryLogRepo,
    RedisEmailQueueRepo,
)
from maintenance_service.infrastructure.store.job_state import KeyValueJobStateRepo
from maintenance_service.infrastructure.store.redis_store import RedisStateStore
from maintenance_service.jobs import author_demotion, media_cleanup, story_status, vote_anonymization
from maintenance_service.jobs.featured_stories import FeaturedStoriesJob, active_weights
from maintenance_service.jobs.story_status import Threshold
from maintenance_service.services.batch_dispatcher import SEND_BATCH_JOB, BatchDispatcher
from maintenance_service.services.email_queue import SWEEP_JOB, EmailQueue
from maintenance_service.services.job_registry import JobRegistry
from maintenance_service.services.locks import JobLock
from maintenance_service.services.notification_service import NotificationService
from maintenance_service.services.retry_policy import RetryPolicy
from maintenance_service.services.scan_job import ScanJob
from maintenance_service.services.scheduling import install_daily, reschedule_daily

logger = logging.getLogger(__name__)

SCHEDULE_FINGERPRINT_PREFIX = "schedule:daily:"


@dataclass
class Container:
    settings: Settings
    clock: Clock
    store: RedisStateStore
    lock: JobLock
    job_state: KeyValueJobStateRepo
    scheduler: RedisScheduler
    email_queue: EmailQueue
    dispatcher: BatchDispatcher
    notifications: NotificationService
    registry: JobRegistry
    author_demotion: ScanJob[Any]
    story_status: ScanJob[Any]
    featured: FeaturedStoriesJob
    vote_anonymization: ScanJob[Any]
    media_cleanup: ScanJob[Any]


def build_container(
    redis: aioredis.Redis,
    session_factory: async_sessionmaker[AsyncSession],
    cfg: Settings,
    *,
    clock: Clock | None = None,
    transport: MailTransport | None = None,
) -> Container:
    clock = clock or SystemClock()
    store = RedisStateStore(redis, prefix=cfg.KEY_PREFIX)
    lock = JobLock(store, clock)
    job_state = KeyValueJobStateRepo(store, clock)
    scheduler = RedisScheduler(redis, prefix=f"{cfg.KEY_PREFIX}sched:")

    transport = transport or SmtpMailTransport(
        host=cfg.SMTP_HOST,
        port=cfg.SMTP_PORT,
        sender=cfg.MAIL_FROM,
        sender_name=cfg.SITE_NAME,
        username=cfg.SMTP_USERNAME,
        password=cfg.SMTP_PASSWORD,
        start_tls=cfg.SMTP_START_TLS,
        timeout=cfg.SMTP_TIMEOUT_SECONDS,
    )
    renderer = TemplateRenderer(site_name=cfg.SITE_NAME, site_url=cfg.SITE_URL)

    email_queue = EmailQueue(
        RedisEmailQueueRepo(redis, prefix=cfg.KEY_PREFIX),
        RedisDeliveryLogRepo(redis, prefix=cfg.KEY_PREFIX, limit=cfg.EMAIL_LOG_LIMIT),
        transport,
        renderer,
        retry_policy=RetryPolicy(
            max_attempts=cfg.EMAIL_MAX_ATTEMPTS,
            base_delay=timedelta(seconds=cfg.EMAIL_BACKOFF_BASE_SECONDS),
        ),
        lock=lock,
        clock=clock,
        batch_size=cfg.EMAIL_BATCH_SIZE,
    )
    dispatcher = BatchDispatcher(
        scheduler,
        transport,
        renderer,
        email_queue,
        clock=clock,
        chunk_size=cfg.DISPATCH_CHUNK_SIZE,
        chunk_delay_seconds=cfg.DISPATCH_CHUNK_DELAY_SECONDS,
    )
    notifications = NotificationService(SqlAudienceDirectory(session_factory), dispatcher)

    demotion_job = author_demotion.build_author_demotion_job(
        _job_settings(
            cfg,
            author_demotion.JOB_NAME,
            cfg.AUTHOR_DEMOTION_BATCH_SIZE,
            cfg.AUTHOR_DEMOTION_MAX_RUNTIME_SECONDS,
            cfg.AUTHOR_DEMOTION_OFFSET_MINUTES,
        ),
        SqlAuthorRepo(session_factory),
        email_queue,
        lock=lock,
        state=job_state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=cfg.HOST_EXECUTION_CEILING_SECONDS,
    )
    status_job = story_status.build_story_status_job(
        _job_settings(
            cfg,
            story_status.JOB_NAME,
            cfg.STORY_STATUS_BATCH_SIZE,
            cfg.STORY_STATUS_MAX_RUNTIME_SECONDS,
            cfg.STORY_STATUS_OFFSET_MINUTES,
        ),
        SqlStoryRepo(session_factory),
        hiatus=Threshold(cfg.STORY_HIATUS_THRESHOLD_VALUE, ThresholdUnit(cfg.STORY_HIATUS_THRESHOLD_UNIT)),
        abandoned=Threshold(
            cfg.STORY_ABANDONED_THRESHOLD_VALUE, ThresholdUnit(cfg.STORY_ABANDONED_THRESHOLD_UNIT),
        ),
        lock=lock,
        state=job_state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=cfg.HOST_EXECUTION_CEILING_SECONDS,
    )
    anonymization_job = vote_anonymization.build_vote_anonymization_job(
        _job_settings(
            cfg,
            vote_anonymization.JOB_NAME,
            cfg.VOTE_ANONYMIZATION_BATCH_SIZE,
            cfg.VOTE_ANONYMIZATION_MAX_RUNTIME_SECONDS,
            cfg.VOTE_ANONYMIZATION_OFFSET_MINUTES,
        ),
        SqlEngagementRepo(session_factory),
        lock=lock,
        state=job_state,
        scheduler=scheduler,
        clock=clock,
        retention_days=cfg.VOTE_ANONYMIZATION_RETENTION_DAYS,
        host_ceiling_seconds=cfg.HOST_EXECUTION_CEILING_SECONDS,
    )
    media_job = media_cleanup.build_media_cleanup_job(
        _job_settings(
            cfg,
            media_cleanup.JOB_NAME,
            cfg.MEDIA_CLEANUP_BATCH_SIZE,
            cfg.MEDIA_CLEANUP_MAX_RUNTIME_SECONDS,
            cfg.MEDIA_CLEANUP_OFFSET_MINUTES,
        ),
        SqlMediaRepo(session_factory),
        lock=lock,
        state=job_state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=cfg.HOST_EXECUTION_CEILING_SECONDS,
    )
    featured_job = FeaturedStoriesJob(
        SqlFeaturedRepo(session_factory),
        lock=lock,
        clock=clock,
        mode=FeaturedMode(cfg.FEATURED_MODE),
        max_count=cfg.FEATURED_MAX_COUNT,
        weights=active_weights(
            comments_enabled=cfg.FEATURED_COMMENTS_ENABLED,
            likes_enabled=cfg.FEATURED_LIKES_ENABLED,
        ),
    )

    registry = JobRegistry()
    registry.register_job(demotion_job)
    registry.register_job(status_job)
    registry.register_job(featured_job)
    registry.register_job(anonymization_job)
    registry.register_job(media_job)

    async def _sweep(_args: dict[str, Any]) -> Any:
        return await email_queue.sweep()

    registry.register(SWEEP_JOB, _sweep)
    registry.register(SEND_BATCH_JOB, dispatcher.send_batch)

    return Container(
        settings=cfg,
        clock=clock,
        store=store,
        lock=lock,
        job_state=job_state,
        scheduler=scheduler,
        email_queue=email_queue,
        dispatcher=dispatcher,
        notifications=notifications,
        registry=registry,
        author_demotion=demotion_job,
        story_status=status_job,
        featured=featured_job,
        vote_anonymization=anonymization_job,
        media_cleanup=media_job,
    )


def _job_settings(cfg: Settings, name: str, batch_size: int, max_runtime: int, offset: int) -> JobSettings:
    return JobSettings(
        name=name,
        batch_size=batch_size,
        max_runtime_seconds=max_runtime,
        cron_offset_minutes=offset,
        continuation_delay_seconds=cfg.CONTINUATION_DELAY_SECONDS,
        lock_grace_seconds=cfg.LOCK_GRACE_SECONDS,
    )


async def install_schedules(container: Container) -> dict[str, datetime | None]:
    """Register daily wake-ups and the recurring email sweep.

    Each daily job remembers the hour, timezone and offset it was installed
    with. When any of them changed since the last install, that job is
    rescheduled and its pending continuations dropped.
    """
    cfg = container.settings
    scheduler = container.scheduler
    now = container.clock.now()

    daily = [
        (container.author_demotion.name, cfg.AUTHOR_DEMOTION_ENABLED, cfg.AUTHOR_DEMOTION_OFFSET_MINUTES),
        (container.story_status.name, cfg.STORY_STATUS_ENABLED, cfg.STORY_STATUS_OFFSET_MINUTES),
        (container.featured.name, container.featured.enabled, cfg.FEATURED_OFFSET_MINUTES),
        (
            container.vote_anonymization.name,
            cfg.VOTE_ANONYMIZATION_ENABLED,
            cfg.VOTE_ANONYMIZATION_OFFSET_MINUTES,
        ),
        (container.media_cleanup.name, cfg.MEDIA_CLEANUP_ENABLED, cfg.MEDIA_CLEANUP_OFFSET_MINUTES),
    ]

    installed: dict[str, datetime | None] = {}
    for name, enabled, offset in daily:
        continuation = f"{name}.continue"
        fingerprint_key = f"{SCHEDULE_FINGERPRINT_PREFIX}{name}"
        if not enabled:
            await scheduler.cancel_all(name)
            await scheduler.cancel_all(continuation)
            await container.store.delete(fingerprint_key)
            installed[name] = None
            continue

        fingerprint = f"{cfg.CRON_HOUR}|{cfg.CRON_TIMEZONE}|{offset}"
        previous = await container.store.get(fingerprint_key)
        if previous is not None and previous != fingerprint:
            logger.info("Daily schedule of %s changed (%s -> %s), rescheduling", name, previous, fingerprint)
            installed[name] = await reschedule_daily(
                scheduler, name, now=now, hour=cfg.CRON_HOUR, offset_minutes=offset,
                tz=cfg.CRON_TIMEZONE, continuation_name=continuation,
            )
        else:
            await install_daily(
                scheduler, name, now=now, hour=cfg.CRON_HOUR, offset_minutes=offset, tz=cfg.CRON_TIMEZONE,
            )
            installed[name] = await scheduler.next_scheduled(name)
        await container.store.set(fingerprint_key, fingerprint)

    if await scheduler.next_scheduled(SWEEP_JOB) is None:
        interval = timedelta(seconds=cfg.EMAIL_SWEEP_INTERVAL_SECONDS)
        await scheduler.schedule_recurring(SWEEP_JOB, interval, now + interval)
    installed[SWEEP_JOB] = await scheduler.next_scheduled(SWEEP_JOB)

    return installed
