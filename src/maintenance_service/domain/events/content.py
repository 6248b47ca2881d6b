from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ChapterPublished:
    story_id: int
    chapter_id: int


@dataclass(frozen=True, slots=True)
class ChapterUpdated:
    story_id: int
    chapter_id: int


@dataclass(frozen=True, slots=True)
class StoryStatusChanged:
    story_id: int
    new_status: str
    old_status: str | None = None
