"""Redis Streams consumer for upstream content events."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from maintenance_service.infrastructure.bus.serializer import deserialize_event

logger = logging.getLogger(__name__)

PENDING_ID = "0"
NEW_ID = ">"

OnStreamEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisStreamConsumer:
    """XREADGROUP-based consumer for a single stream + consumer group."""

    def __init__(
        self,
        redis: aioredis.Redis,
        stream: str,
        group: str,
        consumer: str,
        callback: OnStreamEventCallback,
        *,
        batch_size: int = 10,
        block_ms: int | None = 5000,
        max_deliveries: int = 5,
    ) -> None:
        self._redis = redis
        self._stream = stream
        self._group = group
        self._consumer = consumer
        self._callback = callback
        self._batch_size = batch_size
        self._block_ms = block_ms
        self._max_deliveries = max_deliveries
        self._failures: dict[str, int] = {}
        self._task: asyncio.Task[None] | None = None

    async def ensure_group(self) -> None:
        try:
            await self._redis.xgroup_create(
                self._stream, self._group, id="$", mkstream=True
            )
            logger.info("Created consumer group %s on %s", self._group, self._stream)
        except aioredis.ResponseError as e:
            if "BUSYGROUP" in str(e):
                logger.debug("Consumer group %s already exists", self._group)
            else:
                raise

    async def start(self) -> None:
        await self.ensure_group()
        self._task = asyncio.create_task(self._consume(), name="content-events-consumer")
        logger.info("Stream consumer started: stream=%s group=%s", self._stream, self._group)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Stream consumer stopped")

    async def read_once(self) -> int:
        """Retry this consumer's pending entries, then read new ones.

        Returns the number of acknowledged entries. An entry whose callback
        raises stays pending and is handed back on the next pass, until it
        has failed ``max_deliveries`` times and is dropped.
        """
        acked = await self._handle(await self._read(PENDING_ID, block=None))
        acked += await self._handle(await self._read(NEW_ID, block=self._block_ms))
        return acked

    async def _read(self, stream_id: str, *, block: int | None) -> list[Any]:
        entries = await self._redis.xreadgroup(
            groupname=self._group,
            consumername=self._consumer,
            streams={self._stream: stream_id},
            count=self._batch_size,
            block=block,
        )
        return entries or []

    async def _handle(self, entries: list[Any]) -> int:
        acked = 0
        for _stream_name, messages in entries:
            for msg_id, fields in messages:
                if not fields:
                    # Trimmed from the stream while pending.
                    await self._ack(msg_id)
                    continue
                event_type, payload = deserialize_event(fields)
                try:
                    await self._callback(event_type, payload)
                except Exception:
                    failures = self._failures.get(msg_id, 0) + 1
                    logger.exception(
                        "Error processing stream message %s (%s), attempt %d",
                        msg_id, event_type, failures,
                    )
                    if failures < self._max_deliveries:
                        self._failures[msg_id] = failures
                        continue
                    logger.error("Dropping stream message %s after %d attempts", msg_id, failures)
                await self._ack(msg_id)
                acked += 1
        return acked

    async def _ack(self, msg_id: str) -> None:
        await self._redis.xack(self._stream, self._group, msg_id)
        self._failures.pop(msg_id, None)

    async def _consume(self) -> None:
        while True:
            try:
                await self.read_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Stream consumer error, retrying in 5s")
                await asyncio.sleep(5)
