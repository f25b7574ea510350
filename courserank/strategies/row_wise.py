"""Row-wise strategy: fetch and score each candidate independently."""

from __future__ import annotations

import logging
from concurrent import futures
from datetime import datetime

from courserank.aggregator import score_course
from courserank.errors import SignalComputationFailure
from courserank.models import Course, ScoredCourse, SignalBreakdown, UserProfile
from courserank.signals.engagement import EngagementScorer
from courserank.signals.interest import InterestMatcher
from courserank.signals.popularity import PopularityScorer
from courserank.signals.views import ViewScorer
from courserank.sources.base import CourseDataSource
from courserank.strategies.base import ScoringStrategy

logger = logging.getLogger(__name__)

_DEFAULT_MAX_WORKERS = 8


class RowWiseStrategy(ScoringStrategy):
    """Scores candidates one by one, fanned out over a thread pool.

    Each worker fetches the user's history for a single course and runs the
    scalar signal scorers on it. Candidates share nothing but the popularity
    denominator, which is computed once up front.

    This costs one data-source round trip per candidate; prefer
    :class:`~courserank.strategies.bulk.BulkStrategy` when the source can
    aggregate.

    Args:
        max_workers: Upper bound on scoring threads per request.
    """

    name = "row"

    def __init__(self, max_workers: int = _DEFAULT_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers

    def score(
        self,
        profile: UserProfile,
        candidates: list[Course],
        source: CourseDataSource,
        now: datetime,
    ) -> list[ScoredCourse]:
        if not candidates:
            return []

        matcher = InterestMatcher(profile.all_interests)
        popularity = PopularityScorer(candidates)
        engagement = EngagementScorer()
        views = ViewScorer(now)

        def score_one(course: Course) -> ScoredCourse | None:
            records = source.get_interactions(profile.user_id, course.course_id)
            try:
                breakdown = SignalBreakdown(
                    interest=matcher.score(course.tags),
                    engagement=engagement.score(course.course_id, records),
                    views=views.score(course.course_id, records),
                    popularity=popularity.score(course),
                )
            except SignalComputationFailure as exc:
                logger.warning(
                    "Dropping course %r for user %r: %s",
                    course.course_id,
                    profile.user_id,
                    exc.reason,
                )
                return None
            return score_course(course, breakdown)

        workers = min(self._max_workers, len(candidates))
        with futures.ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="score"
        ) as pool:
            results = list(pool.map(score_one, candidates))
        return [r for r in results if r is not None]
