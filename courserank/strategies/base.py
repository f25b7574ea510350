"""Abstract base class for the candidate scoring strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from courserank.models import Course, ScoredCourse, UserProfile
from courserank.sources.base import CourseDataSource


class ScoringStrategy(ABC):
    """Turns a candidate set into scored courses for one user.

    Strategies differ only in *how* they gather interaction data; the
    formulas, clamps and constants are shared, so every strategy must yield
    the same ranking for the same data. The
    :class:`~courserank.engine.RecommendationEngine` picks one per request.
    """

    #: Short identifier used in configuration and responses.
    name: str = ""

    @abstractmethod
    def score(
        self,
        profile: UserProfile,
        candidates: list[Course],
        source: CourseDataSource,
        now: datetime,
    ) -> list[ScoredCourse]:
        """Score every course in *candidates* for *profile*.

        Args:
            profile: The target user's declared interests.
            candidates: The full candidate set for this request.
            source: Where interaction history is read from.
            now: Clock reading for recency, shared by the whole request.

        Returns:
            One :class:`ScoredCourse` per candidate that could be scored, in
            no particular order. Courses whose signals fail with
            :class:`~courserank.errors.SignalComputationFailure` are logged
            and left out.

        Raises:
            DataSourceUnavailable: If *source* cannot be read.
        """
