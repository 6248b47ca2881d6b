"""Import all models so Alembic can discover them via Base.metadata."""
from maintenance_service.infrastructure.db.models.audience import (
    EmailSubscriptionModel,
    FollowModel,
    NotificationPreferenceModel,
)
from maintenance_service.infrastructure.db.models.engagement import LikeModel, RatingModel
from maintenance_service.infrastructure.db.models.media import AttachmentModel
from maintenance_service.infrastructure.db.models.story import ChapterModel, StoryModel
from maintenance_service.infrastructure.db.models.user import UserModel

__all__ = [
    "AttachmentModel",
    "ChapterModel",
    "EmailSubscriptionModel",
    "FollowModel",
    "LikeModel",
    "NotificationPreferenceModel",
    "RatingModel",
    "StoryModel",
    "UserModel",
]
