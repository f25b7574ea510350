"""View signal: a blend of how often and how recently a course was viewed.

* **Frequency** grows logarithmically, ``min(ln(n + 1) / ln(10), 1)``, and
  saturates at nine views.
* **Recency** decays exponentially, ``exp(-days / 7)``; a view today scores
  about 1.0 and a week-old view ``e**-1``.

The view score is the mean of the two, or ``0.0`` for a never-viewed course.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime

from courserank.errors import SignalComputationFailure
from courserank.models import ActivityType, InteractionRecord

FREQUENCY_LOG_BASE = 10.0
RECENCY_DECAY_DAYS = 7.0
SECONDS_PER_DAY = 86400.0


def frequency_score(view_count: int) -> float:
    return min(math.log(view_count + 1) / math.log(FREQUENCY_LOG_BASE), 1.0)


def recency_score(days_since_view: float) -> float:
    # A view stamped in the future counts as "now".
    return math.exp(-max(days_since_view, 0.0) / RECENCY_DECAY_DAYS)


def days_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def view_score(view_count: int, last_viewed_at: datetime | None, now: datetime) -> float:
    """Return the blended frequency/recency score for one course."""
    if view_count <= 0 or last_viewed_at is None:
        return 0.0
    recency = recency_score(days_between(last_viewed_at, now))
    return (frequency_score(view_count) + recency) / 2


class ViewScorer:
    """Computes the view signal from raw interaction records.

    Args:
        now: The clock reading the whole ranking request is evaluated at.
    """

    def __init__(self, now: datetime) -> None:
        self._now = now

    def score(self, course_id: int, records: Iterable[InteractionRecord]) -> float:
        """Score the view records in *records* for *course_id*.

        Raises:
            SignalComputationFailure: If a view record has no timestamp.
        """
        count = 0
        latest: datetime | None = None
        for record in records:
            if record.activity_type != ActivityType.VIEW:
                continue
            if record.timestamp is None:
                raise SignalComputationFailure(course_id, "view record without timestamp")
            count += 1
            if latest is None or record.timestamp > latest:
                latest = record.timestamp
        return view_score(count, latest, self._now)
