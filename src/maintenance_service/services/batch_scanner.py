"""Keyset-paginated, time-budgeted scan over a mutating dataset."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from maintenance_service.application.dto.summary import BatchSummary
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.source import Keyed
from maintenance_service.domain.entities.job_state import BatchWindow
from maintenance_service.domain.value_objects.enums import ItemOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Keyed)

FetchFn = Callable[[int, int], Awaitable[list[T]]]
ProcessFn = Callable[[T], Awaitable[ItemOutcome]]


@dataclass(slots=True)
class ScanResult:
    summary: BatchSummary
    last_key: int
    has_more: bool


class BatchScanner(Generic[T]):
    """Runs ``fetch`` -> ``process`` batches until the data or the budget runs out.

    Paging is by strictly increasing key, never by offset: items leave the
    candidate set while the scan runs, which would make offsets skip rows.
    The budget is only checked between batches.
    """

    def __init__(
        self,
        fetch: FetchFn[T],
        process: ProcessFn[T],
        *,
        batch_size: int,
        clock: Clock,
        name: str = "scan",
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._fetch = fetch
        self._process = process
        self._batch_size = batch_size
        self._clock = clock
        self._name = name

    async def scan(self, after_key: int, window: BatchWindow) -> ScanResult:
        summary = BatchSummary()
        cursor = after_key
        has_more = False

        while True:
            batch = await self._fetch(cursor, self._batch_size)
            if not batch:
                has_more = False
                break

            for item in batch:
                summary.scanned += 1
                cursor = max(cursor, item.key)
                outcome = await self._apply(item)
                if outcome == ItemOutcome.CHANGED:
                    summary.transitioned += 1
                elif outcome == ItemOutcome.FAILED:
                    summary.errors += 1

            has_more = len(batch) == self._batch_size
            if not has_more or window.expired(self._clock.now()):
                break

        summary.has_more = has_more
        summary.cursor = cursor
        return ScanResult(summary=summary, last_key=cursor, has_more=has_more)

    async def _apply(self, item: T) -> ItemOutcome:
        try:
            return await self._process(item)
        except Exception:
            logger.exception("%s: failed to process item %s", self._name, item.key)
            return ItemOutcome.FAILED
