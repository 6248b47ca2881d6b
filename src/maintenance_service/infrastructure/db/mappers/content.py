from __future__ import annotations

from datetime import datetime, timezone

from maintenance_service.domain.entities.story import (
    AuthorRef,
    EngagementMetrics,
    FeaturedEntry,
    StoryRef,
    UserContact,
)
from maintenance_service.infrastructure.db.models.story import StoryModel
from maintenance_service.infrastructure.db.models.user import UserModel


def _aware(ts: datetime | None) -> datetime | None:
    # Some drivers hand back naive values for timezone=True columns; they are stored as UTC.
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def user_to_author(model: UserModel) -> AuthorRef:
    return AuthorRef(
        key=model.id,
        login=model.login,
        email=model.email,
        display_name=model.display_name or model.login,
    )


def user_to_contact(model: UserModel) -> UserContact:
    return UserContact(id=model.id, email=model.email, display_name=model.display_name or model.login)


def story_to_ref(model: StoryModel) -> StoryRef:
    return StoryRef(id=model.id, author_id=model.author_id, title=model.title)


def story_to_metrics(model: StoryModel) -> EngagementMetrics:
    return EngagementMetrics(
        story_id=model.id,
        comment_count=model.comment_count,
        rating_avg=model.rating_avg,
        rating_count=model.rating_count,
        likes=model.likes,
        views=model.views,
        follows=model.follows,
    )


def story_to_featured(model: StoryModel) -> FeaturedEntry:
    return FeaturedEntry(
        story_id=model.id,
        featured_type=model.featured_type or "",
        score=model.featured_score,
        featured_at=_aware(model.featured_at),
    )
