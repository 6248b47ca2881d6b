from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maintenance_service.domain.entities.story import AuthorRef
from maintenance_service.infrastructure.db.mappers import content as mapper
from maintenance_service.infrastructure.db.models.story import StoryModel
from maintenance_service.infrastructure.db.models.user import UserModel

AUTHOR_ROLE = "author"
READER_ROLE = "reader"
PUBLISHED = "publish"


class SqlAuthorRepo:
    """Every call runs in its own short session so a scan never holds a transaction open."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_authors_after(self, user_id: int, limit: int) -> list[AuthorRef]:
        stmt = (
            select(UserModel)
            .where(UserModel.role == AUTHOR_ROLE, UserModel.id > user_id)
            .order_by(UserModel.id)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [mapper.user_to_author(m) for m in result.scalars().all()]

    async def count_published_stories(self, user_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(StoryModel)
            .where(StoryModel.author_id == user_id, StoryModel.publish_status == PUBLISHED)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def demote(self, user_id: int, demoted_at: datetime) -> bool:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.role == AUTHOR_ROLE)
            .values(role=READER_ROLE, auto_demoted_at=demoted_at)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount == 1
