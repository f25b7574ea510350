"""Ordering and truncation policies for scored candidate sets."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from courserank.models import CategoryMatch, Course, ScoredCourse

DEFAULT_LIMIT = 3
DEFAULT_CATEGORY_LIMIT = 5
DEFAULT_POPULAR_LIMIT = 10

# Totals are compared at this many decimals, so last-ulp noise between the
# row-wise and bulk strategies cannot reorder courses that are really tied.
_SCORE_PRECISION = 9


def normalize_limit(limit: Any, default: int = DEFAULT_LIMIT) -> int:
    """Coerce *limit* to a positive int, falling back to *default*.

    ``None``, non-numeric values, and anything below 1 all yield *default*;
    an invalid limit is never an error.
    """
    if isinstance(limit, bool):
        return default
    try:
        value = int(limit)
    except (TypeError, ValueError, OverflowError):
        return default
    return value if value > 0 else default


def rank(scored: Iterable[ScoredCourse], limit: Any = None) -> list[ScoredCourse]:
    """Return the top *limit* courses by total score.

    Ordering is total: score descending, then popularity descending, then
    course id ascending. Zero-score courses remain eligible.
    """
    n = normalize_limit(limit)
    ordered = sorted(
        scored,
        key=lambda s: (
            -round(s.score, _SCORE_PRECISION),
            -s.course.popularity,
            s.course.course_id,
        ),
    )
    return ordered[:n]


def rank_by_popularity(courses: Iterable[Course], limit: Any = None) -> list[Course]:
    """Non-personalized fallback: popularity, then enrollment, then id."""
    n = normalize_limit(limit, DEFAULT_POPULAR_LIMIT)
    ordered = sorted(
        courses,
        key=lambda c: (-c.popularity, -c.enrollment_count, c.course_id),
    )
    return ordered[:n]


def rank_by_interest(matches: Iterable[CategoryMatch], limit: Any = None) -> list[CategoryMatch]:
    """Order category matches by interest match, then popularity, then id."""
    n = normalize_limit(limit, DEFAULT_CATEGORY_LIMIT)
    ordered = sorted(
        matches,
        key=lambda m: (-m.interest_match, -m.course.popularity, m.course.course_id),
    )
    return ordered[:n]
