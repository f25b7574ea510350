"""Bulk strategy: one aggregate fetch, then vectorised scoring with numpy."""

from __future__ import annotations

import logging
import math
from datetime import datetime

import numpy as np

from courserank.aggregator import aggregate
from courserank.errors import SignalComputationFailure
from courserank.models import (
    Course,
    InteractionAggregate,
    ScoredCourse,
    SignalBreakdown,
    UserProfile,
)
from courserank.signals.engagement import SATURATION_SECONDS
from courserank.signals.interest import InterestMatcher
from courserank.signals.popularity import max_popularity
from courserank.signals.views import FREQUENCY_LOG_BASE, RECENCY_DECAY_DAYS, days_between
from courserank.sources.base import CourseDataSource
from courserank.strategies.base import ScoringStrategy

logger = logging.getLogger(__name__)


class BulkStrategy(ScoringStrategy):
    """Scores the whole candidate set from one batch of interaction aggregates.

    Calls :meth:`~courserank.sources.base.CourseDataSource.get_interaction_aggregates`
    once, lays the per-course counts out as ``float64`` vectors and applies
    the signal formulas column-wise:

    ==========  ====================================================
    Signal      Vector formula
    ==========  ====================================================
    engagement  ``min(seconds / count / 60, 1)`` where ``count > 0``
    views       ``(min(ln(n+1)/ln(10), 1) + exp(-days/7)) / 2`` where ``n > 0``
    popularity  ``popularity / max(max_popularity, 1)``
    interest    per course via :class:`InterestMatcher` (string matching)
    ==========  ====================================================

    The weighted total goes through the same
    :func:`~courserank.aggregator.aggregate` as the row-wise path.
    """

    name = "bulk"

    def score(
        self,
        profile: UserProfile,
        candidates: list[Course],
        source: CourseDataSource,
        now: datetime,
    ) -> list[ScoredCourse]:
        if not candidates:
            return []

        aggregates = source.get_interaction_aggregates(profile.user_id)
        denominator = max_popularity(candidates)
        courses = self._valid_courses(profile, candidates, aggregates)
        if not courses:
            return []

        n = len(courses)
        view_count = np.zeros(n, dtype=np.float64)
        days_since_view = np.zeros(n, dtype=np.float64)
        engagement_count = np.zeros(n, dtype=np.float64)
        engagement_seconds = np.zeros(n, dtype=np.float64)
        for i, course in enumerate(courses):
            agg = aggregates.get(course.course_id)
            if agg is None:
                continue
            view_count[i] = agg.view_count
            if agg.last_viewed_at is not None:
                days_since_view[i] = days_between(agg.last_viewed_at, now)
            engagement_count[i] = agg.engagement_count
            engagement_seconds[i] = agg.engagement_seconds

        matcher = InterestMatcher(profile.all_interests)
        interest = np.array([matcher.score(c.tags) for c in courses], dtype=np.float64)
        popularity = (
            np.maximum(np.array([c.popularity for c in courses], dtype=np.float64), 0.0)
            / denominator
        )
        engagement = _engagement_scores(engagement_count, engagement_seconds)
        views = _view_scores(view_count, days_since_view)
        totals = aggregate(interest, engagement, views, popularity)

        return [
            ScoredCourse(
                course=course,
                score=float(totals[i]),
                breakdown=SignalBreakdown(
                    interest=float(interest[i]),
                    engagement=float(engagement[i]),
                    views=float(views[i]),
                    popularity=float(popularity[i]),
                ),
            )
            for i, course in enumerate(courses)
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _valid_courses(
        profile: UserProfile,
        candidates: list[Course],
        aggregates: dict[int, InteractionAggregate],
    ) -> list[Course]:
        """Return *candidates* minus courses whose aggregate is malformed."""
        valid = []
        for course in candidates:
            agg = aggregates.get(course.course_id)
            try:
                if agg is not None:
                    _check_aggregate(agg)
            except SignalComputationFailure as exc:
                logger.warning(
                    "Dropping course %r for user %r: %s",
                    course.course_id,
                    profile.user_id,
                    exc.reason,
                )
                continue
            valid.append(course)
        return valid


def _check_aggregate(agg: InteractionAggregate) -> None:
    if agg.view_count < 0 or agg.engagement_count < 0:
        raise SignalComputationFailure(agg.course_id, "negative interaction count")
    if agg.invalid_count > 0:
        raise SignalComputationFailure(
            agg.course_id, f"{agg.invalid_count} negative engagement duration(s)"
        )
    if agg.view_count > 0 and agg.last_viewed_at is None:
        raise SignalComputationFailure(agg.course_id, "views without a timestamp")
    if not math.isfinite(agg.engagement_seconds) or agg.engagement_seconds < 0:
        raise SignalComputationFailure(
            agg.course_id, f"invalid engagement total {agg.engagement_seconds!r}"
        )


def _engagement_scores(count: np.ndarray, seconds: np.ndarray) -> np.ndarray:
    mean = np.divide(seconds, count, out=np.zeros_like(seconds), where=count > 0)
    return np.where(count > 0, np.minimum(mean / SATURATION_SECONDS, 1.0), 0.0)


def _view_scores(view_count: np.ndarray, days_since_view: np.ndarray) -> np.ndarray:
    frequency = np.minimum(np.log(view_count + 1) / np.log(FREQUENCY_LOG_BASE), 1.0)
    recency = np.exp(-np.maximum(days_since_view, 0.0) / RECENCY_DECAY_DAYS)
    return np.where(view_count > 0, (frequency + recency) / 2, 0.0)
