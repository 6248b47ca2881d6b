from __future__ import annotations

from datetime import datetime
from typing import Protocol

from maintenance_service.domain.entities.cleanup import Attachment, EngagementRow
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.entities.story import (
    AuthorRef,
    EngagementMetrics,
    FeaturedEntry,
    StatusCandidate,
    StoryRef,
    UserContact,
)
from maintenance_service.domain.value_objects.enums import EngagementTable


class AuthorRepository(Protocol):
    async def fetch_authors_after(self, user_id: int, limit: int) -> list[AuthorRef]: ...

    async def count_published_stories(self, user_id: int) -> int: ...

    async def demote(self, user_id: int, demoted_at: datetime) -> bool:
        """Move a current author to the reader role. False if the user is not an author."""
        ...


class StoryRepository(Protocol):
    async def fetch_transition_candidates(
        self,
        after_story_id: int,
        limit: int,
        *,
        hiatus_cutoff: datetime,
        abandoned_cutoff: datetime,
    ) -> list[StatusCandidate]: ...

    async def set_status_if(self, story_id: int, *, expected: str, target: str) -> bool:
        """Set ``target`` only while the story is still in ``expected``."""
        ...


class FeaturedRepository(Protocol):
    async def published_metrics(self) -> list[EngagementMetrics]: ...

    async def list_featured(self) -> list[FeaturedEntry]: ...

    async def set_automatic(self, story_id: int, score: float, featured_at: datetime | None) -> None: ...

    async def unfeature(self, story_id: int) -> None: ...


class AudienceDirectory(Protocol):
    async def get_story(self, story_id: int) -> StoryRef | None: ...

    async def email_subscribers(self, story_id: int, author_id: int) -> list[Recipient]: ...

    async def follower_ids(self, target_ids: list[int], *, exclude_user_id: int) -> list[int]: ...

    async def get_user(self, user_id: int) -> UserContact | None: ...

    async def wants_email(self, user_id: int, notification_type: str) -> bool: ...


class EngagementRepository(Protocol):
    async def fetch_identified_after(
        self,
        table: EngagementTable,
        after_id: int,
        limit: int,
        *,
        cutoff: datetime,
    ) -> list[EngagementRow]:
        """Anonymous rows created before ``cutoff`` that still hold an identifier hash."""
        ...

    async def anonymize(self, table: EngagementTable, row_id: int) -> bool:
        """Clear the identifier hash. False if it was already cleared."""
        ...


class MediaRepository(Protocol):
    async def fetch_images_after(self, after_id: int, limit: int) -> list[Attachment]: ...

    async def is_referenced(self, attachment: Attachment) -> bool:
        """Whether the uploader still uses the image on a story, a chapter or their profile."""
        ...

    async def delete(self, attachment_id: int) -> bool: ...
