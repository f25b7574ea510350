"""Weighted combination of the four signals into one comparable score."""

from __future__ import annotations

from typing import NamedTuple, TypeVar

from courserank.models import Course, ScoredCourse, SignalBreakdown


class Weights(NamedTuple):
    interest: float
    engagement: float
    views: float
    popularity: float


WEIGHTS = Weights(interest=0.25, engagement=0.30, views=0.25, popularity=0.20)

# Works for plain floats and for numpy arrays alike.
Number = TypeVar("Number")


def aggregate(interest: Number, engagement: Number, views: Number, popularity: Number) -> Number:
    """Return the weighted total of the four signals.

    Pure and deterministic. Both scoring strategies call this exact
    function: the row-wise one with floats, the bulk one with numpy vectors.
    """
    return (
        WEIGHTS.interest * interest
        + WEIGHTS.engagement * engagement
        + WEIGHTS.views * views
        + WEIGHTS.popularity * popularity
    )


def score_course(course: Course, breakdown: SignalBreakdown) -> ScoredCourse:
    """Build a :class:`ScoredCourse` at full precision from *breakdown*."""
    total = aggregate(
        breakdown.interest,
        breakdown.engagement,
        breakdown.views,
        breakdown.popularity,
    )
    return ScoredCourse(course=course, score=float(total), breakdown=breakdown)
