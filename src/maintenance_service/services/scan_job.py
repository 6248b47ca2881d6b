"""Resumable, lock-protected scan job: one engine, many thin configurations."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Generic, TypeVar

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.application.dto.summary import BatchSummary
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.scheduler import Scheduler
from maintenance_service.application.ports.source import CandidateSource, Keyed
from maintenance_service.application.repositories.job_state import JobStateRepository
from maintenance_service.domain.entities.job_state import MIN_CURSOR, BatchWindow
from maintenance_service.services.batch_scanner import BatchScanner, ProcessFn
from maintenance_service.services.locks import JobLock
from maintenance_service.services.time_budget import compute_time_budget

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Keyed)


class ScanJob(Generic[T]):
    """Entry points ``start_cycle`` (daily wake-up) and ``run_batch`` (continuation)."""

    def __init__(
        self,
        config: JobSettings,
        source: CandidateSource[T],
        process: ProcessFn[T],
        *,
        lock: JobLock,
        state: JobStateRepository,
        scheduler: Scheduler,
        clock: Clock,
        host_ceiling_seconds: int = 0,
    ) -> None:
        self.config = config
        self._lock = lock
        self._state = state
        self._scheduler = scheduler
        self._clock = clock
        self._host_ceiling_seconds = host_ceiling_seconds
        self._scanner: BatchScanner[T] = BatchScanner(
            source.fetch_after,
            process,
            batch_size=config.batch_size,
            clock=clock,
            name=config.name,
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def time_budget(self) -> int:
        return compute_time_budget(self.config.max_runtime_seconds, self._host_ceiling_seconds)

    async def start_cycle(self) -> BatchSummary:
        """Begin a fresh cycle from the minimum key."""
        return await self._run(fresh=True)

    async def run_batch(self) -> BatchSummary:
        """Resume from the persisted cursor."""
        return await self._run(fresh=False)

    async def _run(self, *, fresh: bool) -> BatchSummary:
        if not await self._lock.acquire(self.name, self.config.lock_ttl):
            return BatchSummary.skipped()

        try:
            if fresh:
                await self._scheduler.cancel_all(self.config.continuation_name)
                await self._state.save(self.name, MIN_CURSOR)
                cursor = MIN_CURSOR
            else:
                state = await self._state.load(self.name)
                cursor = state.cursor if state is not None else MIN_CURSOR

            window = BatchWindow(start_time=self._clock.now(), budget_seconds=self.time_budget)
            result = await self._scanner.scan(cursor, window)

            if result.has_more:
                await self._state.save(self.name, result.last_key)
                await self._schedule_continuation()
            else:
                await self._state.clear(self.name)
                await self._scheduler.cancel_all(self.config.continuation_name)
        finally:
            await self._lock.release(self.name)

        summary = result.summary
        logger.info(
            "%s: scanned=%d transitioned=%d errors=%d has_more=%s cursor=%s",
            self.name,
            summary.scanned,
            summary.transitioned,
            summary.errors,
            summary.has_more,
            summary.cursor,
        )
        return summary

    async def _schedule_continuation(self) -> None:
        name = self.config.continuation_name
        if await self._scheduler.next_scheduled(name) is not None:
            return
        fire_at = self._clock.now() + timedelta(seconds=self.config.continuation_delay_seconds)
        await self._scheduler.schedule_once(name, fire_at)
        logger.debug("%s: continuation scheduled at %s", self.name, fire_at.isoformat())
