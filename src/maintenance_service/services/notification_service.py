"""Resolve who hears about a content event and hand them to the dispatcher."""
from __future__ import annotations

import logging

from maintenance_service.application.dto.notification import Notification
from maintenance_service.application.repositories.content import AudienceDirectory
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.events.content import (
    ChapterPublished,
    ChapterUpdated,
    StoryStatusChanged,
)
from maintenance_service.domain.value_objects.enums import NotificationType, RecipientKind
from maintenance_service.services.batch_dispatcher import BatchDispatcher
from maintenance_service.services.recipients import merge_recipients

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, directory: AudienceDirectory, dispatcher: BatchDispatcher) -> None:
        self._directory = directory
        self._dispatcher = dispatcher

    async def on_chapter_published(self, event: ChapterPublished) -> int:
        story = await self._directory.get_story(event.story_id)
        if story is None:
            logger.warning("Chapter %d published for missing story %d", event.chapter_id, event.story_id)
            return 0

        subscribers = await self._directory.email_subscribers(story.id, story.author_id)
        followers = await self._followers(
            [story.id], story.author_id, NotificationType.NEW_CHAPTER,
        )
        recipients = merge_recipients(subscribers, followers)
        variables = await self._story_variables(story.id, story.title, story.author_id)
        variables["chapter_id"] = event.chapter_id
        return await self._dispatch(recipients, NotificationType.NEW_CHAPTER, variables)

    async def on_chapter_updated(self, event: ChapterUpdated) -> int:
        story = await self._directory.get_story(event.story_id)
        if story is None:
            return 0

        followers = await self._followers(
            [story.id, event.chapter_id], story.author_id, NotificationType.CHAPTER_UPDATE,
        )
        variables = await self._story_variables(story.id, story.title, story.author_id)
        variables["chapter_id"] = event.chapter_id
        return await self._dispatch(merge_recipients(followers), NotificationType.CHAPTER_UPDATE, variables)

    async def on_story_status_changed(self, event: StoryStatusChanged) -> int:
        story = await self._directory.get_story(event.story_id)
        if story is None:
            return 0

        followers = await self._followers(
            [story.id], story.author_id, NotificationType.STORY_STATUS,
        )
        variables = await self._story_variables(story.id, story.title, story.author_id)
        variables.update(new_status=event.new_status, old_status=event.old_status)
        return await self._dispatch(merge_recipients(followers), NotificationType.STORY_STATUS, variables)

    async def _followers(
        self,
        target_ids: list[int],
        author_id: int,
        notification_type: NotificationType,
    ) -> list[Recipient]:
        recipients: list[Recipient] = []
        for user_id in await self._directory.follower_ids(target_ids, exclude_user_id=author_id):
            if not await self._directory.wants_email(user_id, notification_type):
                continue
            user = await self._directory.get_user(user_id)
            if user is None:
                continue
            recipients.append(Recipient(user.email, RecipientKind.USER, user.display_name))
        return recipients

    async def _story_variables(self, story_id: int, title: str, author_id: int) -> dict[str, object]:
        author = await self._directory.get_user(author_id)
        return {
            "story_id": story_id,
            "story_title": title,
            "author_name": author.display_name if author else "Unknown Author",
        }

    async def _dispatch(
        self,
        recipients: list[Recipient],
        notification_type: NotificationType,
        variables: dict[str, object],
    ) -> int:
        if not recipients:
            return 0
        await self._dispatcher.dispatch(
            recipients, Notification(notification_type.value, dict(variables)),
        )
        return len(recipients)
