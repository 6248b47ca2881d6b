"""Daily selection of automatically featured stories."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from maintenance_service.application.ports.clock import Clock
from maintenance_service.application.repositories.content import FeaturedRepository
from maintenance_service.domain.entities.story import EngagementMetrics
from maintenance_service.domain.value_objects.enums import FeaturedMode, FeaturedType
from maintenance_service.services.locks import JobLock

logger = logging.getLogger(__name__)

JOB_NAME = "featured_stories"

TIE_TOLERANCE = 0.0001

BASE_WEIGHTS: dict[str, float] = {
    "comments": 5,
    "ratings": 4,
    "likes": 3,
    "follows": 1,
    "views": 0.5,
}


def active_weights(
    base: Mapping[str, float] = BASE_WEIGHTS,
    *,
    comments_enabled: bool = True,
    likes_enabled: bool = True,
) -> dict[str, float]:
    """Drop disabled signals and rescale the rest to the same total."""
    enabled = {"comments": comments_enabled, "likes": likes_enabled}
    active = {k: w for k, w in base.items() if enabled.get(k, True)}
    total_active = sum(active.values())
    if total_active <= 0:
        return {"views": 1.0}
    scale = sum(base.values()) / total_active
    return {k: w * scale for k, w in active.items()}


def engagement_score(metrics: EngagementMetrics, weights: Mapping[str, float]) -> float:
    signals = {
        "comments": math.log2(1 + metrics.comment_count),
        "ratings": metrics.rating_avg * math.log2(1 + metrics.rating_count),
        "likes": math.log2(1 + metrics.likes),
        "views": math.log2(1 + metrics.views),
        "follows": math.log2(1 + metrics.follows),
    }
    return sum(weight * signals[name] for name, weight in weights.items() if name in signals)


def select_top_stories(
    scores: Mapping[int, float],
    max_count: int,
    exclude: Iterable[int] = (),
) -> list[int]:
    """Top ``max_count`` by score, plus anything tied with the last one selected."""
    excluded = set(exclude)
    remaining = {sid: s for sid, s in scores.items() if sid not in excluded}
    if len(remaining) <= max_count:
        return list(remaining)

    ranked = sorted(remaining, key=lambda sid: remaining[sid], reverse=True)
    selected = ranked[:max_count]
    cutoff = remaining[selected[-1]]
    for sid in ranked[max_count:]:
        if abs(remaining[sid] - cutoff) < TIE_TOLERANCE:
            selected.append(sid)
    return selected


@dataclass(slots=True)
class FeaturedSummary:
    featured: int = 0
    added: int = 0
    removed: int = 0
    acquired: bool = True


class FeaturedStoriesJob:
    """Not a scan: scores are computed over all published stories in one pass."""

    name = JOB_NAME

    def __init__(
        self,
        repo: FeaturedRepository,
        *,
        lock: JobLock,
        clock: Clock,
        mode: FeaturedMode = FeaturedMode.MANUAL,
        max_count: int = 6,
        weights: Mapping[str, float] | None = None,
        lock_ttl: int = 300,
    ) -> None:
        self._repo = repo
        self._lock = lock
        self._clock = clock
        self.mode = mode
        self._max_count = max_count if max_count >= 1 else 6
        self._weights = dict(weights) if weights is not None else active_weights()
        self._lock_ttl = lock_ttl

    @property
    def enabled(self) -> bool:
        return self.mode in (FeaturedMode.AUTOMATIC, FeaturedMode.BOTH)

    async def start_cycle(self) -> FeaturedSummary:
        if not self.enabled:
            return FeaturedSummary()
        if not await self._lock.acquire(self.name, self._lock_ttl):
            return FeaturedSummary(acquired=False)
        try:
            return await self._refresh()
        finally:
            await self._lock.release(self.name)

    async def run_batch(self) -> FeaturedSummary:
        return await self.start_cycle()

    async def _refresh(self) -> FeaturedSummary:
        summary = FeaturedSummary()
        metrics = await self._repo.published_metrics()
        if not metrics:
            return summary

        scores = {m.story_id: engagement_score(m, self._weights) for m in metrics}
        featured = await self._repo.list_featured()
        manual = [f.story_id for f in featured if f.featured_type == FeaturedType.MANUAL]
        current_auto = {f.story_id for f in featured if f.featured_type == FeaturedType.AUTOMATIC}

        exclude = manual if self.mode == FeaturedMode.BOTH else []
        selected = select_top_stories(scores, self._max_count, exclude)
        selected_set = set(selected)

        for story_id in current_auto - selected_set:
            await self._repo.unfeature(story_id)
            summary.removed += 1

        now = self._clock.now()
        for story_id in selected:
            is_new = story_id not in current_auto
            await self._repo.set_automatic(
                story_id, round(scores[story_id], 4), now if is_new else None,
            )
            if is_new:
                summary.added += 1

        if self.mode == FeaturedMode.AUTOMATIC:
            for story_id in manual:
                if story_id not in selected_set:
                    await self._repo.unfeature(story_id)
                    summary.removed += 1

        summary.featured = len(selected)
        logger.info(
            "Featured stories refreshed: %d featured, %d added, %d removed",
            summary.featured,
            summary.added,
            summary.removed,
        )
        return summary
