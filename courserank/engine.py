"""Recommendation engine: loads inputs, delegates scoring, applies ranking."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from courserank import ranker
from courserank.errors import CategoryNotFound, CourseNotFound, UserNotFound
from courserank.models import (
    CategoryMatch,
    CategoryRanking,
    Course,
    InteractionRecord,
    ScoredCourse,
    UserProfile,
)
from courserank.signals.interest import InterestMatcher
from courserank.sources.base import CourseDataSource
from courserank.strategies.base import ScoringStrategy

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationEngine:
    """Produces personalized course rankings from a data source.

    One :meth:`rank` call runs this pipeline:

    1. Load the user's profile (:class:`UserNotFound` if absent).
    2. Load the full candidate set.
    3. Take a single clock reading for recency.
    4. Score every candidate with the chosen strategy.
    5. Sort and truncate with :func:`courserank.ranker.rank`.

    The engine keeps no state between requests; concurrent calls for
    different users are independent.

    Args:
        source: The :class:`~courserank.sources.base.CourseDataSource`.
        strategies: Available scoring strategies; keyed by their ``name``.
        default_strategy: Name of the strategy used when a call names none.
        clock: Returns the current UTC time. Injectable for tests.
    """

    def __init__(
        self,
        source: CourseDataSource,
        strategies: Iterable[ScoringStrategy],
        default_strategy: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._strategies = {s.name: s for s in strategies}
        if not self._strategies:
            raise ValueError("at least one scoring strategy is required")
        if default_strategy is None:
            default_strategy = next(iter(self._strategies))
        if default_strategy not in self._strategies:
            raise ValueError(f"unknown scoring strategy {default_strategy!r}")
        self._default_strategy = default_strategy
        self._clock = clock

    @property
    def default_strategy(self) -> str:
        return self._default_strategy

    @property
    def strategy_names(self) -> list[str]:
        return sorted(self._strategies)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def rank(
        self,
        user_id: int,
        limit: Any = None,
        strategy: str | None = None,
    ) -> list[ScoredCourse]:
        """Return the top *limit* courses for *user_id*, best first.

        Args:
            user_id: The user to rank for.
            limit: Result size; anything non-positive or non-numeric means
                the default of 3.
            strategy: Scoring strategy name; ``None`` uses the default.

        Returns:
            Ordered list of :class:`ScoredCourse`; empty for an empty catalogue.

        Raises:
            ValueError: If *user_id* is missing or *strategy* is unknown.
            UserNotFound: If no profile exists for *user_id*.
            DataSourceUnavailable: If the data source cannot be read.
        """
        if user_id is None:
            raise ValueError("user_id is required")
        scorer = self._resolve_strategy(strategy)

        start = time.monotonic()
        profile = self._source.get_user_profile(user_id)
        if profile is None:
            raise UserNotFound(user_id)

        candidates = self._source.list_courses()
        now = self._clock()
        scored = scorer.score(profile, candidates, self._source, now)
        top = ranker.rank(scored, limit)

        logger.debug(
            "Ranked %d/%d courses for user %r with %s strategy in %.1fms",
            len(scored),
            len(candidates),
            user_id,
            scorer.name,
            (time.monotonic() - start) * 1000,
        )
        return top

    def rank_by_category(
        self,
        category: str,
        user_id: int | None = None,
        limit: Any = None,
    ) -> CategoryRanking:
        """Rank the courses of one category by interest match alone.

        This is a lighter pass than :meth:`rank`: only the interest signal is
        used, ties go to the more popular course. Without a *user_id* the
        result is plain popularity order. A *user_id* with no profile is still
        personalized, with no interests, so every match is 0.

        Args:
            category: Category name, matched case-insensitively and exactly.
            user_id: Optional user whose interests personalize the order.
            limit: Result size; invalid values mean the default of 5.

        Raises:
            ValueError: If *category* is blank.
            CategoryNotFound: If no course belongs to *category*.
        """
        if not category or not category.strip():
            raise ValueError("category must be non-empty")

        wanted = category.strip().casefold()
        courses = [c for c in self._source.list_courses() if c.category.casefold() == wanted]
        if not courses:
            raise CategoryNotFound(category)

        if user_id is None:
            popular = ranker.rank_by_popularity(
                courses, ranker.normalize_limit(limit, ranker.DEFAULT_CATEGORY_LIMIT)
            )
            return CategoryRanking(
                category=category,
                courses=[CategoryMatch(course=c, interest_match=0.0) for c in popular],
                personalized=False,
            )

        profile = self._source.get_user_profile(user_id) or UserProfile(user_id)
        matcher = InterestMatcher(profile.all_interests)
        matches = [CategoryMatch(course=c, interest_match=matcher.score(c.tags)) for c in courses]
        return CategoryRanking(
            category=category,
            courses=ranker.rank_by_interest(matches, limit),
            personalized=True,
        )

    def popular(self, limit: Any = None) -> list[Course]:
        """Return courses by popularity alone; no user signals involved.

        Args:
            limit: Result size; invalid values mean the default of 10.
        """
        return ranker.rank_by_popularity(self._source.list_courses(), limit)

    # ------------------------------------------------------------------
    # Activity tracking
    # ------------------------------------------------------------------

    def track_view(self, user_id: int, course_id: int) -> InteractionRecord:
        """Record that *user_id* opened *course_id* now.

        Raises:
            UserNotFound: If no profile exists for *user_id*.
            CourseNotFound: If *course_id* is not in the catalogue.
        """
        self._check_participants(user_id, course_id)
        record = self._source.record_view(user_id, course_id, self._clock())
        logger.debug("Tracked view of course %r by user %r", course_id, user_id)
        return record

    def track_engagement(self, user_id: int, course_id: int, duration: Any) -> InteractionRecord:
        """Record *duration* seconds of scroll engagement on *course_id*.

        Raises:
            ValueError: If *duration* is not a positive finite number.
            UserNotFound: If no profile exists for *user_id*.
            CourseNotFound: If *course_id* is not in the catalogue.
        """
        if isinstance(duration, bool):
            raise ValueError("duration must be a positive number of seconds")
        try:
            seconds = float(duration)
        except (TypeError, ValueError):
            raise ValueError("duration must be a positive number of seconds") from None
        if not math.isfinite(seconds) or seconds <= 0:
            raise ValueError("duration must be a positive number of seconds")

        self._check_participants(user_id, course_id)
        record = self._source.record_engagement(user_id, course_id, seconds, self._clock())
        logger.debug(
            "Tracked %.1fs engagement on course %r by user %r", seconds, course_id, user_id
        )
        return record

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_participants(self, user_id: int, course_id: int) -> None:
        if self._source.get_user_profile(user_id) is None:
            raise UserNotFound(user_id)
        if self._source.get_course(course_id) is None:
            raise CourseNotFound(course_id)

    def _resolve_strategy(self, name: str | None) -> ScoringStrategy:
        key = name or self._default_strategy
        try:
            return self._strategies[key]
        except KeyError:
            raise ValueError(
                f"unknown scoring strategy {key!r}; expected one of {self.strategy_names}"
            ) from None
