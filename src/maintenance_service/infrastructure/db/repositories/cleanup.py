from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maintenance_service.domain.entities.cleanup import Attachment, EngagementRow
from maintenance_service.domain.value_objects.enums import EngagementTable
from maintenance_service.infrastructure.db.models.engagement import LikeModel, RatingModel
from maintenance_service.infrastructure.db.models.media import AttachmentModel
from maintenance_service.infrastructure.db.models.story import ChapterModel, StoryModel
from maintenance_service.infrastructure.db.models.user import UserModel

ANONYMOUS_USER_ID = 0
IMAGE_MIME_PREFIX = "image/"
ATTACHED_STATUS = "inherit"

_TABLES: dict[EngagementTable, type[RatingModel] | type[LikeModel]] = {
    EngagementTable.RATINGS: RatingModel,
    EngagementTable.LIKES: LikeModel,
}


class SqlEngagementRepo:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_identified_after(
        self,
        table: EngagementTable,
        after_id: int,
        limit: int,
        *,
        cutoff: datetime,
    ) -> list[EngagementRow]:
        model = _TABLES[table]
        stmt = (
            select(model.id, model.chapter_id)
            .where(
                model.id > after_id,
                model.created_at < cutoff,
                model.user_id == ANONYMOUS_USER_ID,
                model.identifier_hash.is_not(None),
            )
            .order_by(model.id)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [EngagementRow(key=row_id, chapter_id=chapter_id) for row_id, chapter_id in result.all()]

    async def anonymize(self, table: EngagementTable, row_id: int) -> bool:
        model = _TABLES[table]
        stmt = (
            update(model)
            .where(model.id == row_id, model.identifier_hash.is_not(None))
            .values(identifier_hash=None)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1


class SqlMediaRepo:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_images_after(self, after_id: int, limit: int) -> list[Attachment]:
        stmt = (
            select(AttachmentModel)
            .where(
                AttachmentModel.id > after_id,
                AttachmentModel.status == ATTACHED_STATUS,
                AttachmentModel.mime_type.startswith(IMAGE_MIME_PREFIX),
            )
            .order_by(AttachmentModel.id)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [
                Attachment(key=m.id, author_id=m.author_id, url=m.url)
                for m in result.scalars().all()
            ]

    async def is_referenced(self, attachment: Attachment) -> bool:
        if not attachment.url:
            return False

        checks = [
            select(StoryModel.id).where(
                StoryModel.author_id == attachment.author_id,
                or_(
                    StoryModel.featured_image_url == attachment.url,
                    StoryModel.thumbnail_id == attachment.key,
                ),
            ),
            select(ChapterModel.id).where(
                ChapterModel.author_id == attachment.author_id,
                ChapterModel.image_url == attachment.url,
            ),
            select(UserModel.id).where(
                UserModel.id == attachment.author_id,
                UserModel.avatar_url == attachment.url,
            ),
        ]
        async with self._session_factory() as session:
            for stmt in checks:
                if (await session.execute(stmt.limit(1))).scalar_one_or_none() is not None:
                    return True
        return False

    async def delete(self, attachment_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(AttachmentModel).where(AttachmentModel.id == attachment_id))
            await session.commit()
            return result.rowcount == 1
