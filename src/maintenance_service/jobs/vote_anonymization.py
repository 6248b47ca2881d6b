"""Strip identifier hashes from old anonymous ratings, then likes."""
from __future__ import annotations

from datetime import timedelta

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.scheduler import Scheduler
from maintenance_service.application.repositories.content import EngagementRepository
from maintenance_service.application.repositories.job_state import JobStateRepository
from maintenance_service.domain.entities.cleanup import EngagementRow
from maintenance_service.domain.value_objects.enums import EngagementTable, ItemOutcome
from maintenance_service.services.locks import JobLock
from maintenance_service.services.phased_source import PhasedItem, PhasedSource
from maintenance_service.services.scan_job import ScanJob

JOB_NAME = "vote_anonymization"

DEFAULT_RETENTION_DAYS = 30

PHASES = (EngagementTable.RATINGS, EngagementTable.LIKES)


class IdentifiedRows:
    def __init__(
        self,
        engagement: EngagementRepository,
        table: EngagementTable,
        clock: Clock,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        self._engagement = engagement
        self._table = table
        self._clock = clock
        self._retention = timedelta(days=max(1, retention_days))

    async def fetch_after(self, key: int, limit: int) -> list[EngagementRow]:
        cutoff = self._clock.now() - self._retention
        return await self._engagement.fetch_identified_after(self._table, key, limit, cutoff=cutoff)


class AnonymizeRow:
    def __init__(self, engagement: EngagementRepository) -> None:
        self._engagement = engagement

    async def __call__(self, row: PhasedItem[EngagementRow]) -> ItemOutcome:
        changed = await self._engagement.anonymize(EngagementTable(row.phase), row.item.key)
        return ItemOutcome.CHANGED if changed else ItemOutcome.UNCHANGED


def build_vote_anonymization_job(
    config: JobSettings,
    engagement: EngagementRepository,
    *,
    lock: JobLock,
    state: JobStateRepository,
    scheduler: Scheduler,
    clock: Clock,
    retention_days: int = DEFAULT_RETENTION_DAYS,
    host_ceiling_seconds: int = 0,
) -> ScanJob[PhasedItem[EngagementRow]]:
    source = PhasedSource(
        [(table.value, IdentifiedRows(engagement, table, clock, retention_days)) for table in PHASES]
    )
    return ScanJob(
        config,
        source,
        AnonymizeRow(engagement),
        lock=lock,
        state=state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=host_ceiling_seconds,
    )
