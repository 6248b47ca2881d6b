from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class EngagementRow:
    """An anonymous rating or like that still carries its identifier hash."""

    key: int
    chapter_id: int


@dataclass(frozen=True, slots=True)
class Attachment:
    """An uploaded image. ``key`` is the attachment id."""

    key: int
    author_id: int
    url: str
