"""Consumer for upstream content events via Redis Streams."""
from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any

import redis.asyncio as aioredis

from maintenance_service.bootstrap import build_container
from maintenance_service.config import settings
from maintenance_service.domain.events.content import (
    ChapterPublished,
    ChapterUpdated,
    StoryStatusChanged,
)
from maintenance_service.infrastructure.bus.redis_streams import RedisStreamConsumer
from maintenance_service.infrastructure.db.session import AsyncSessionLocal
from maintenance_service.log_config import configure_logging
from maintenance_service.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


async def handle_event(service: NotificationService, event_type: str, fields: dict[str, Any]) -> None:
    """Route a stream event to the notification service."""
    if event_type == "chapter.published":
        count = await service.on_chapter_published(
            ChapterPublished(story_id=int(fields["story_id"]), chapter_id=int(fields["chapter_id"])),
        )
    elif event_type == "chapter.updated":
        count = await service.on_chapter_updated(
            ChapterUpdated(story_id=int(fields["story_id"]), chapter_id=int(fields["chapter_id"])),
        )
    elif event_type == "story.status_changed":
        count = await service.on_story_status_changed(
            StoryStatusChanged(
                story_id=int(fields["story_id"]),
                new_status=str(fields["new_status"]),
                old_status=fields.get("old_status"),
            ),
        )
    else:
        logger.debug("Ignoring unknown event: %s", event_type)
        return
    logger.info("%s for story %s: %d recipients", event_type, fields.get("story_id"), count)


async def run_consumer() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    container = build_container(redis, AsyncSessionLocal, settings)
    # A stable name lets a restarted consumer pick up its own pending entries.
    consumer_name = settings.CONTENT_EVENTS_CONSUMER or socket.gethostname()

    async def _callback(event_type: str, fields: dict[str, Any]) -> None:
        await handle_event(container.notifications, event_type, fields)

    consumer = RedisStreamConsumer(
        redis=redis,
        stream=settings.CONTENT_EVENTS_STREAM,
        group=settings.CONTENT_EVENTS_GROUP,
        consumer=consumer_name,
        callback=_callback,
        max_deliveries=settings.CONTENT_EVENTS_MAX_DELIVERIES,
    )
    await consumer.start()
    logger.info("Content events consumer started (%s)", consumer_name)

    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await consumer.stop()
        await redis.aclose()


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(run_consumer())


if __name__ == "__main__":
    main()
