from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maintenance_service.domain.entities.story import (
    EngagementMetrics,
    FeaturedEntry,
    StatusCandidate,
)
from maintenance_service.domain.value_objects.enums import FeaturedType, StoryStatus
from maintenance_service.infrastructure.db.mappers import content as mapper
from maintenance_service.infrastructure.db.models.story import StoryModel

PUBLISHED = "publish"

_NEXT_STATUS = {
    StoryStatus.ONGOING: StoryStatus.ON_HIATUS,
    StoryStatus.ON_HIATUS: StoryStatus.ABANDONED,
}


class SqlStoryRepo:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_transition_candidates(
        self,
        after_story_id: int,
        limit: int,
        *,
        hiatus_cutoff: datetime,
        abandoned_cutoff: datetime,
    ) -> list[StatusCandidate]:
        stmt = (
            select(StoryModel.id, StoryModel.status)
            .where(
                StoryModel.id > after_story_id,
                StoryModel.publish_status == PUBLISHED,
                or_(
                    and_(
                        StoryModel.status == StoryStatus.ONGOING,
                        StoryModel.updated_at <= hiatus_cutoff,
                    ),
                    and_(
                        StoryModel.status == StoryStatus.ON_HIATUS,
                        StoryModel.updated_at <= abandoned_cutoff,
                    ),
                ),
            )
            .order_by(StoryModel.id)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [
                StatusCandidate(
                    key=story_id,
                    current_status=status,
                    target_status=_NEXT_STATUS[StoryStatus(status)],
                )
                for story_id, status in result.all()
            ]

    async def set_status_if(self, story_id: int, *, expected: str, target: str) -> bool:
        stmt = (
            update(StoryModel)
            .where(StoryModel.id == story_id, StoryModel.status == expected)
            .values(status=target)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1


class SqlFeaturedRepo:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def published_metrics(self) -> list[EngagementMetrics]:
        stmt = select(StoryModel).where(StoryModel.publish_status == PUBLISHED).order_by(StoryModel.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [mapper.story_to_metrics(m) for m in result.scalars().all()]

    async def list_featured(self) -> list[FeaturedEntry]:
        stmt = select(StoryModel).where(StoryModel.featured_type.is_not(None)).order_by(StoryModel.id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [mapper.story_to_featured(m) for m in result.scalars().all()]

    async def set_automatic(self, story_id: int, score: float, featured_at: datetime | None) -> None:
        values: dict[str, object] = {
            "featured_type": FeaturedType.AUTOMATIC,
            "featured_score": score,
        }
        if featured_at is not None:
            values["featured_at"] = featured_at
        async with self._session_factory() as session:
            await session.execute(update(StoryModel).where(StoryModel.id == story_id).values(**values))
            await session.commit()

    async def unfeature(self, story_id: int) -> None:
        stmt = (
            update(StoryModel)
            .where(StoryModel.id == story_id)
            .values(featured_type=None, featured_score=None, featured_at=None)
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()
