"""Delete uploaded images their uploader no longer uses anywhere."""
from __future__ import annotations

import logging

from maintenance_service.application.dto.job import JobSettings
from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.ports.scheduler import Scheduler
from maintenance_service.application.repositories.content import MediaRepository
from maintenance_service.application.repositories.job_state import JobStateRepository
from maintenance_service.domain.entities.cleanup import Attachment
from maintenance_service.domain.value_objects.enums import ItemOutcome
from maintenance_service.services.locks import JobLock
from maintenance_service.services.scan_job import ScanJob

logger = logging.getLogger(__name__)

JOB_NAME = "media_cleanup"


class ImageCandidates:
    def __init__(self, media: MediaRepository) -> None:
        self._media = media

    async def fetch_after(self, key: int, limit: int) -> list[Attachment]:
        return await self._media.fetch_images_after(key, limit)


class DeleteOrphanedImage:
    """Images without a known uploader are left alone."""

    def __init__(self, media: MediaRepository) -> None:
        self._media = media

    async def __call__(self, attachment: Attachment) -> ItemOutcome:
        if attachment.author_id <= 0:
            return ItemOutcome.UNCHANGED
        if await self._media.is_referenced(attachment):
            return ItemOutcome.UNCHANGED
        if not await self._media.delete(attachment.key):
            return ItemOutcome.UNCHANGED

        logger.info("Deleted unreferenced image #%d of user #%d", attachment.key, attachment.author_id)
        return ItemOutcome.CHANGED


def build_media_cleanup_job(
    config: JobSettings,
    media: MediaRepository,
    *,
    lock: JobLock,
    state: JobStateRepository,
    scheduler: Scheduler,
    clock: Clock,
    host_ceiling_seconds: int = 0,
) -> ScanJob[Attachment]:
    return ScanJob(
        config,
        ImageCandidates(media),
        DeleteOrphanedImage(media),
        lock=lock,
        state=state,
        scheduler=scheduler,
        clock=clock,
        host_ceiling_seconds=host_ceiling_seconds,
    )
