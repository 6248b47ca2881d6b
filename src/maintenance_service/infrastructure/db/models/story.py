from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from maintenance_service.infrastructure.db.base import Base


class StoryModel(Base):
    __tablename__ = "stories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    author_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    publish_status: Mapped[str] = mapped_column(String(20), nullable=False, default="publish")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ongoing")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_avg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    follows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    featured_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    featured_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    featured_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    featured_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    thumbnail_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_stories_status_updated", "publish_status", "status", "updated_at"),
    )


class ChapterModel(Base):
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    story_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    author_id: Mapped[int] = mapped_column(Integer, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
