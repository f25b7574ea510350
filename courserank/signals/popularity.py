"""Global popularity signal, relative to the most popular candidate."""

from __future__ import annotations

from collections.abc import Iterable

from courserank.models import Course


def max_popularity(courses: Iterable[Course]) -> float:
    """Return the largest popularity in *courses*, floored to 1.

    The floor covers an empty catalogue and an all-zero catalogue, so the
    value is always safe to divide by.
    """
    highest = max((c.popularity for c in courses), default=0.0)
    return highest if highest > 0 else 1.0


class PopularityScorer:
    """User-independent popularity score, shared by every candidate.

    The denominator is computed once from the candidate set at construction
    time, not per course.

    Args:
        candidates: The full candidate set of the current request.
    """

    def __init__(self, candidates: Iterable[Course]) -> None:
        self._max = max_popularity(candidates)

    @property
    def denominator(self) -> float:
        return self._max

    def score(self, course: Course) -> float:
        return max(course.popularity, 0.0) / self._max
