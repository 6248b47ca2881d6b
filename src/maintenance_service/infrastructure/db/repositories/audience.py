from __future__ import annotations

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.entities.story import StoryRef, UserContact
from maintenance_service.domain.value_objects.enums import RecipientKind
from maintenance_service.infrastructure.db.mappers import content as mapper
from maintenance_service.infrastructure.db.models.audience import (
    EmailSubscriptionModel,
    FollowModel,
    NotificationPreferenceModel,
)
from maintenance_service.infrastructure.db.models.story import StoryModel
from maintenance_service.infrastructure.db.models.user import UserModel


class SqlAudienceDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_story(self, story_id: int) -> StoryRef | None:
        async with self._session_factory() as session:
            model = await session.get(StoryModel, story_id)
            return mapper.story_to_ref(model) if model else None

    async def email_subscribers(self, story_id: int, author_id: int) -> list[Recipient]:
        stmt = (
            select(EmailSubscriptionModel.email)
            .where(
                EmailSubscriptionModel.verified.is_(True),
                or_(
                    and_(
                        EmailSubscriptionModel.subscription_type == "story",
                        EmailSubscriptionModel.target_id == story_id,
                    ),
                    and_(
                        EmailSubscriptionModel.subscription_type == "author",
                        EmailSubscriptionModel.target_id == author_id,
                    ),
                ),
            )
            .distinct()
            .order_by(EmailSubscriptionModel.email)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [Recipient(address=email, kind=RecipientKind.SUBSCRIBER) for email in result.scalars().all()]

    async def follower_ids(self, target_ids: list[int], *, exclude_user_id: int) -> list[int]:
        if not target_ids:
            return []
        stmt = (
            select(FollowModel.user_id)
            .where(
                FollowModel.target_id.in_(target_ids),
                FollowModel.user_id > 0,
                FollowModel.user_id != exclude_user_id,
            )
            .distinct()
            .order_by(FollowModel.user_id)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_user(self, user_id: int) -> UserContact | None:
        async with self._session_factory() as session:
            model = await session.get(UserModel, user_id)
            return mapper.user_to_contact(model) if model else None

    async def wants_email(self, user_id: int, notification_type: str) -> bool:
        """Users opt out per type; no stored preference means enabled."""
        stmt = select(NotificationPreferenceModel.email_enabled).where(
            NotificationPreferenceModel.user_id == user_id,
            NotificationPreferenceModel.notification_type == notification_type,
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            enabled = result.scalar_one_or_none()
        return True if enabled is None else bool(enabled)
