"""One-time script: create the Redis Streams consumer group for content events."""
from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis

from maintenance_service.config import settings
from maintenance_service.log_config import configure_logging

logger = logging.getLogger(__name__)


async def create_group() -> None:
    r = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await r.xgroup_create(
            settings.CONTENT_EVENTS_STREAM,
            settings.CONTENT_EVENTS_GROUP,
            id="$",
            mkstream=True,
        )
        logger.info(
            "Created consumer group '%s' on stream '%s'",
            settings.CONTENT_EVENTS_GROUP,
            settings.CONTENT_EVENTS_STREAM,
        )
    except aioredis.ResponseError as e:
        if "BUSYGROUP" in str(e):
            logger.info("Consumer group '%s' already exists", settings.CONTENT_EVENTS_GROUP)
        else:
            raise
    finally:
        await r.aclose()


def main() -> None:
    configure_logging(logging.INFO)
    asyncio.run(create_group())


if __name__ == "__main__":
    main()
