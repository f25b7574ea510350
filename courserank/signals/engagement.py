"""Dwell-time signal: average engagement duration, saturating at one minute."""

from __future__ import annotations

import math
from collections.abc import Iterable

from courserank.errors import SignalComputationFailure
from courserank.models import ActivityType, InteractionRecord

# Mean engagement (seconds) at which the score reaches 1.0.
SATURATION_SECONDS = 60.0


def engagement_score(count: int, total_seconds: float) -> float:
    """Return ``min(mean / 60, 1)`` for *count* engagements totalling *total_seconds*.

    Linear then clamped: a single long engagement counts fully. Returns
    ``0.0`` when there are no qualifying engagements.
    """
    if count <= 0:
        return 0.0
    return min((total_seconds / count) / SATURATION_SECONDS, 1.0)


class EngagementScorer:
    """Computes the engagement signal from raw interaction records."""

    def score(self, course_id: int, records: Iterable[InteractionRecord]) -> float:
        """Score the engage records in *records* for *course_id*.

        Records of other kinds, and engage records without a duration, are
        skipped.

        Raises:
            SignalComputationFailure: If a duration is negative or not finite.
        """
        count = 0
        total = 0.0
        for record in records:
            if record.activity_type != ActivityType.ENGAGE or record.duration is None:
                continue
            duration = float(record.duration)
            if not math.isfinite(duration) or duration < 0:
                raise SignalComputationFailure(
                    course_id, f"invalid engagement duration {record.duration!r}"
                )
            count += 1
            total += duration
        return engagement_score(count, total)
