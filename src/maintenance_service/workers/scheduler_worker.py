"""Scheduler worker: installs daily wake-ups, then polls for due ones and runs their handlers."""
from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis

from maintenance_service.application.ports.clock import Clock
from maintenance_service.bootstrap import build_container, install_schedules
from maintenance_service.config import settings
from maintenance_service.infrastructure.db.session import AsyncSessionLocal
from maintenance_service.infrastructure.scheduler.redis_scheduler import RedisScheduler
from maintenance_service.log_config import configure_logging
from maintenance_service.services.job_registry import JobRegistry

logger = logging.getLogger(__name__)


async def run_scheduler_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    container = build_container(redis, AsyncSessionLocal, settings)

    installed = await install_schedules(container)
    for name, first_run in installed.items():
        logger.info("Wake-up %s next at %s", name, first_run.isoformat() if first_run else "disabled")

    logger.info(
        "Scheduler worker started (poll=%.1fs, batch=%d, handlers=%s)",
        settings.SCHEDULER_POLL_INTERVAL,
        settings.SCHEDULER_BATCH_SIZE,
        ", ".join(container.registry.handler_names),
    )

    try:
        while True:
            try:
                await process_due(
                    container.scheduler,
                    container.registry,
                    container.clock,
                    settings.SCHEDULER_BATCH_SIZE,
                )
            except Exception:
                logger.exception("Scheduler worker loop error")
            await asyncio.sleep(settings.SCHEDULER_POLL_INTERVAL)
    finally:
        await redis.aclose()


async def process_due(
    scheduler: RedisScheduler,
    registry: JobRegistry,
    clock: Clock,
    batch_size: int,
) -> int:
    """Run every claimed wake-up; one failing handler does not stop the rest."""
    wakeups = await scheduler.pop_due(clock.now(), batch_size)
    for wakeup in wakeups:
        try:
            await registry.dispatch(wakeup.job_name, wakeup.args)
        except Exception:
            logger.exception("Wake-up %s (%s) failed", wakeup.job_name, wakeup.id)
    return len(wakeups)


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(run_scheduler_worker())


if __name__ == "__main__":
    main()
