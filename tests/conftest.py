"""Shared test fixtures."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from maintenance_service.application.ports.mail import RenderedEmail
from maintenance_service.domain.entities.cleanup import Attachment, EngagementRow
from maintenance_service.domain.entities.queue_entry import DeliveryLogEntry, QueueEntry
from maintenance_service.domain.entities.recipient import Recipient
from maintenance_service.domain.entities.story import (
    AuthorRef,
    EngagementMetrics,
    FeaturedEntry,
    StatusCandidate,
    StoryRef,
    UserContact,
)
from maintenance_service.domain.value_objects.enums import (
    EngagementTable,
    FeaturedType,
    RecipientKind,
    StoryStatus,
)
from maintenance_service.infrastructure.store.job_state import KeyValueJobStateRepo
from maintenance_service.services.email_queue import EmailQueue
from maintenance_service.services.locks import JobLock
from maintenance_service.services.retry_policy import RetryPolicy

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@dataclass
class Item:
    key: int


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakeStateStore:
    """Key/value store with TTLs measured on the fake clock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, datetime | None]] = {}

    async def get(self, key: str) -> str | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock.now() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, *, ttl: int | None = None, nx: bool = False) -> bool:
        if nx and await self.get(key) is not None:
            return False
        expires_at = self._clock.now() + timedelta(seconds=ttl) if ttl else None
        self._data[key] = (value, expires_at)
        return True

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


@dataclass
class ScheduledCall:
    job_name: str
    fire_at: datetime
    args: dict[str, Any] = field(default_factory=dict)
    cadence: timedelta | None = None


class FakeScheduler:
    def __init__(self) -> None:
        self.calls: list[ScheduledCall] = []

    async def schedule_recurring(self, job_name: str, cadence: timedelta, first_run: datetime) -> None:
        self.calls.append(ScheduledCall(job_name, first_run, {}, cadence))

    async def schedule_once(self, job_name: str, fire_at: datetime, args: dict[str, Any] | None = None) -> None:
        self.calls.append(ScheduledCall(job_name, fire_at, dict(args or {})))

    async def next_scheduled(self, job_name: str) -> datetime | None:
        return min((c.fire_at for c in self.calls if c.job_name == job_name), default=None)

    async def cancel_all(self, job_name: str) -> int:
        before = len(self.calls)
        self.calls = [c for c in self.calls if c.job_name != job_name]
        return before - len(self.calls)

    def pending(self, job_name: str) -> list[ScheduledCall]:
        return [c for c in self.calls if c.job_name == job_name]


class FakeMailTransport:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.rejecting: set[str] = set()
        self.raising: set[str] = set()

    async def send(self, address: str, subject: str, body: str) -> bool:
        if address in self.raising:
            raise ConnectionError("smtp down")
        if address in self.rejecting:
            return False
        self.sent.append((address, subject, body))
        return True

    @property
    def addresses(self) -> list[str]:
        return [address for address, _, _ in self.sent]


class FakeRenderer:
    def __init__(self) -> None:
        self.rendered: list[tuple[str, dict[str, Any]]] = []

    def render(self, notification_type: str, variables: dict[str, Any]) -> RenderedEmail:
        self.rendered.append((notification_type, dict(variables)))
        return RenderedEmail(subject=notification_type, body=str(sorted(variables.items())))


class FakeEmailQueueRepo:
    def __init__(self) -> None:
        self.entries: list[QueueEntry] = []

    async def append(self, entry: QueueEntry) -> None:
        self.entries.append(entry)

    async def remove(self, entry: QueueEntry) -> bool:
        for index, queued in enumerate(self.entries):
            if queued.id == entry.id:
                del self.entries[index]
                return True
        return False

    async def replace(self, current: QueueEntry, updated: QueueEntry) -> bool:
        for index, queued in enumerate(self.entries):
            if queued.id == current.id:
                self.entries[index] = updated
                return True
        return False

    async def list_entries(self) -> list[QueueEntry]:
        return list(self.entries)

    async def size(self) -> int:
        return len(self.entries)

    async def clear(self) -> int:
        removed = len(self.entries)
        self.entries = []
        return removed


class FakeDeliveryLog:
    def __init__(self) -> None:
        self.entries: list[DeliveryLogEntry] = []

    async def record(self, entry: DeliveryLogEntry) -> None:
        self.entries.insert(0, entry)

    async def recent(self, *, recipient: str | None = None, limit: int = 50) -> list[DeliveryLogEntry]:
        entries = [e for e in self.entries if recipient is None or e.recipient == recipient]
        return entries[:limit]

    async def clear(self) -> None:
        self.entries = []


class FakeAuthorRepo:
    def __init__(self) -> None:
        self.users: dict[int, AuthorRef] = {}
        self.roles: dict[int, str] = {}
        self.published: dict[int, int] = {}
        self.demoted_at: dict[int, datetime] = {}

    def add(self, user_id: int, *, published: int = 0, role: str = "author") -> AuthorRef:
        author = AuthorRef(
            key=user_id,
            login=f"user{user_id}",
            email=f"user{user_id}@example.com",
            display_name=f"User {user_id}",
        )
        self.users[user_id] = author
        self.roles[user_id] = role
        self.published[user_id] = published
        return author

    async def fetch_authors_after(self, user_id: int, limit: int) -> list[AuthorRef]:
        keys = sorted(k for k, role in self.roles.items() if role == "author" and k > user_id)
        return [self.users[k] for k in keys[:limit]]

    async def count_published_stories(self, user_id: int) -> int:
        return self.published.get(user_id, 0)

    async def demote(self, user_id: int, demoted_at: datetime) -> bool:
        if self.roles.get(user_id) != "author":
            return False
        self.roles[user_id] = "reader"
        self.demoted_at[user_id] = demoted_at
        return True


@dataclass
class FakeStory:
    status: str
    updated_at: datetime
    published: bool = True


class FakeStoryRepo:
    def __init__(self) -> None:
        self.stories: dict[int, FakeStory] = {}

    def add(self, story_id: int, status: str, updated_at: datetime, *, published: bool = True) -> None:
        self.stories[story_id] = FakeStory(status, updated_at, published)

    async def fetch_transition_candidates(
        self,
        after_story_id: int,
        limit: int,
        *,
        hiatus_cutoff: datetime,
        abandoned_cutoff: datetime,
    ) -> list[StatusCandidate]:
        found: list[StatusCandidate] = []
        for story_id in sorted(self.stories):
            story = self.stories[story_id]
            if story_id <= after_story_id or not story.published:
                continue
            if story.status == StoryStatus.ONGOING and story.updated_at <= hiatus_cutoff:
                found.append(StatusCandidate(story_id, story.status, StoryStatus.ON_HIATUS))
            elif story.status == StoryStatus.ON_HIATUS and story.updated_at <= abandoned_cutoff:
                found.append(StatusCandidate(story_id, story.status, StoryStatus.ABANDONED))
        return found[:limit]

    async def set_status_if(self, story_id: int, *, expected: str, target: str) -> bool:
        story = self.stories.get(story_id)
        if story is None or story.status != expected:
            return False
        story.status = target
        return True


class FakeFeaturedRepo:
    def __init__(self) -> None:
        self.metrics: list[EngagementMetrics] = []
        self.featured: dict[int, FeaturedEntry] = {}

    async def published_metrics(self) -> list[EngagementMetrics]:
        return list(self.metrics)

    async def list_featured(self) -> list[FeaturedEntry]:
        return list(self.featured.values())

    async def set_automatic(self, story_id: int, score: float, featured_at: datetime | None) -> None:
        current = self.featured.get(story_id)
        if featured_at is None and current is not None:
            featured_at = current.featured_at
        self.featured[story_id] = FeaturedEntry(story_id, FeaturedType.AUTOMATIC, score, featured_at)

    async def unfeature(self, story_id: int) -> None:
        self.featured.pop(story_id, None)


@dataclass
class FakeVote:
    created_at: datetime
    chapter_id: int = 1
    user_id: int = 0
    identifier_hash: str | None = "hash"


class FakeEngagementRepo:
    def __init__(self) -> None:
        self.rows: dict[EngagementTable, dict[int, FakeVote]] = {table: {} for table in EngagementTable}

    def add(self, table: EngagementTable, row_id: int, created_at: datetime, **kwargs: Any) -> FakeVote:
        vote = FakeVote(created_at, **kwargs)
        self.rows[table][row_id] = vote
        return vote

    async def fetch_identified_after(
        self,
        table: EngagementTable,
        after_id: int,
        limit: int,
        *,
        cutoff: datetime,
    ) -> list[EngagementRow]:
        found = [
            EngagementRow(row_id, vote.chapter_id)
            for row_id, vote in sorted(self.rows[table].items())
            if row_id > after_id
            and vote.created_at < cutoff
            and vote.user_id == 0
            and vote.identifier_hash is not None
        ]
        return found[:limit]

    async def anonymize(self, table: EngagementTable, row_id: int) -> bool:
        vote = self.rows[table].get(row_id)
        if vote is None or vote.identifier_hash is None:
            return False
        vote.identifier_hash = None
        return True


class FakeMediaRepo:
    def __init__(self) -> None:
        self.attachments: dict[int, Attachment] = {}
        self.referenced: set[int] = set()

    def add(self, attachment_id: int, author_id: int = 1, *, referenced: bool = False) -> Attachment:
        attachment = Attachment(attachment_id, author_id, f"https://cdn.example.com/{attachment_id}.png")
        self.attachments[attachment_id] = attachment
        if referenced:
            self.referenced.add(attachment_id)
        return attachment

    async def fetch_images_after(self, after_id: int, limit: int) -> list[Attachment]:
        keys = sorted(k for k in self.attachments if k > after_id)
        return [self.attachments[k] for k in keys[:limit]]

    async def is_referenced(self, attachment: Attachment) -> bool:
        return attachment.key in self.referenced

    async def delete(self, attachment_id: int) -> bool:
        return self.attachments.pop(attachment_id, None) is not None


class FakeAudienceDirectory:
    def __init__(self) -> None:
        self.stories: dict[int, StoryRef] = {}
        self.users: dict[int, UserContact] = {}
        self.subscribers: dict[int, list[str]] = {}
        self.follows: dict[int, list[int]] = {}
        self.opted_out: set[tuple[int, str]] = set()

    def add_user(self, user_id: int, email: str | None = None) -> UserContact:
        user = UserContact(user_id, email or f"user{user_id}@example.com", f"User {user_id}")
        self.users[user_id] = user
        return user

    async def get_story(self, story_id: int) -> StoryRef | None:
        return self.stories.get(story_id)

    async def email_subscribers(self, story_id: int, author_id: int) -> list[Recipient]:
        addresses = self.subscribers.get(story_id, []) + self.subscribers.get(-author_id, [])
        return [Recipient(a, RecipientKind.SUBSCRIBER) for a in addresses]

    async def follower_ids(self, target_ids: list[int], *, exclude_user_id: int) -> list[int]:
        ids: set[int] = set()
        for target in target_ids:
            ids.update(self.follows.get(target, []))
        ids.discard(exclude_user_id)
        return sorted(i for i in ids if i > 0)

    async def get_user(self, user_id: int) -> UserContact | None:
        return self.users.get(user_id)

    async def wants_email(self, user_id: int, notification_type: str) -> bool:
        return (user_id, notification_type) not in self.opted_out


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> FakeStateStore:
    return FakeStateStore(clock)


@pytest.fixture
def lock(store, clock) -> JobLock:
    return JobLock(store, clock)


@pytest.fixture
def job_state(store, clock) -> KeyValueJobStateRepo:
    return KeyValueJobStateRepo(store, clock)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def transport() -> FakeMailTransport:
    return FakeMailTransport()


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def queue_repo() -> FakeEmailQueueRepo:
    return FakeEmailQueueRepo()


@pytest.fixture
def delivery_log() -> FakeDeliveryLog:
    return FakeDeliveryLog()


@pytest.fixture
def email_queue(queue_repo, delivery_log, transport, renderer, lock, clock) -> EmailQueue:
    return EmailQueue(
        queue_repo,
        delivery_log,
        transport,
        renderer,
        retry_policy=RetryPolicy(),
        lock=lock,
        clock=clock,
        batch_size=50,
    )
