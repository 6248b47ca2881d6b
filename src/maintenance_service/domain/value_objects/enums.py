from __future__ import annotations

from enum import StrEnum


class ItemOutcome(StrEnum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class QueueEntryState(StrEnum):
    QUEUED = "queued"
    SCHEDULED = "scheduled"
    SENT = "sent"
    ABANDONED = "abandoned"


class RecipientKind(StrEnum):
    SUBSCRIBER = "subscriber"
    USER = "user"


class DeliveryStatus(StrEnum):
    SENT = "sent"
    FAILED = "failed"


class StoryStatus(StrEnum):
    ONGOING = "ongoing"
    ON_HIATUS = "on-hiatus"
    ABANDONED = "abandoned"
    COMPLETED = "completed"


class ThresholdUnit(StrEnum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class FeaturedMode(StrEnum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    BOTH = "both"


class FeaturedType(StrEnum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class NotificationType(StrEnum):
    NEW_CHAPTER = "new_chapter"
    CHAPTER_UPDATE = "chapter_update"
    STORY_STATUS = "story_status"
    AUTHOR_DEMOTED = "author_demoted"


class EngagementTable(StrEnum):
    RATINGS = "ratings"
    LIKES = "likes"
