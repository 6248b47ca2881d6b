from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AuthorRef:
    """Scan candidate for author demotion. ``key`` is the user id."""

    key: int
    login: str
    email: str
    display_name: str


@dataclass(frozen=True, slots=True)
class StatusCandidate:
    """Scan candidate for the lifecycle transition job. ``key`` is the story id."""

    key: int
    current_status: str
    target_status: str


@dataclass(frozen=True, slots=True)
class StoryRef:
    id: int
    author_id: int
    title: str


@dataclass(frozen=True, slots=True)
class UserContact:
    id: int
    email: str
    display_name: str


@dataclass(frozen=True, slots=True)
class EngagementMetrics:
    story_id: int
    comment_count: int = 0
    rating_avg: float = 0.0
    rating_count: int = 0
    likes: int = 0
    views: int = 0
    follows: int = 0


@dataclass(frozen=True, slots=True)
class FeaturedEntry:
    story_id: int
    featured_type: str
    score: float | None
    featured_at: datetime | None
