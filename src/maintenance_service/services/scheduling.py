"""Daily wake-up registration, staggered by per-job minute offsets."""
from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from maintenance_service.application.ports.scheduler import Scheduler

logger = logging.getLogger(__name__)

DAILY = timedelta(days=1)


def next_daily_run(
    now: datetime,
    hour: int,
    offset_minutes: int = 0,
    tz: str = "UTC",
) -> datetime:
    """Next instant strictly after ``now`` at ``hour:00`` plus the offset, local to ``tz``."""
    hour = min(23, max(0, int(hour)))
    offset_minutes = max(0, int(offset_minutes))
    zone = ZoneInfo(tz)

    local_now = now.astimezone(zone)
    scheduled = datetime.combine(local_now.date(), time(hour=hour), tzinfo=zone)
    scheduled += timedelta(minutes=offset_minutes)
    if scheduled <= local_now:
        scheduled += DAILY
    return scheduled.astimezone(now.tzinfo)


async def install_daily(
    scheduler: Scheduler,
    job_name: str,
    *,
    now: datetime,
    hour: int,
    offset_minutes: int = 0,
    tz: str = "UTC",
) -> datetime | None:
    """Register the recurring wake-up unless one is already pending."""
    if await scheduler.next_scheduled(job_name) is not None:
        return None
    return await _schedule_daily(scheduler, job_name, now, hour, offset_minutes, tz)


async def reschedule_daily(
    scheduler: Scheduler,
    job_name: str,
    *,
    now: datetime,
    hour: int,
    offset_minutes: int = 0,
    tz: str = "UTC",
    continuation_name: str | None = None,
) -> datetime:
    """Drop pending wake-ups (and continuations) and register the job again."""
    await scheduler.cancel_all(job_name)
    if continuation_name:
        await scheduler.cancel_all(continuation_name)
    return await _schedule_daily(scheduler, job_name, now, hour, offset_minutes, tz)


async def _schedule_daily(
    scheduler: Scheduler,
    job_name: str,
    now: datetime,
    hour: int,
    offset_minutes: int,
    tz: str,
) -> datetime:
    first_run = next_daily_run(now, hour, offset_minutes, tz)
    await scheduler.schedule_recurring(job_name, DAILY, first_run)
    logger.info("Scheduled %s daily, first run %s", job_name, first_run.isoformat())
    return first_run
