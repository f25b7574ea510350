"""Abstract boundary to the store that holds users, courses and activity."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from datetime import datetime

from courserank.models import (
    ActivityType,
    Course,
    InteractionAggregate,
    InteractionRecord,
    UserProfile,
)


def check_record(record: InteractionRecord) -> None:
    """Reject a record no source should store.

    Raises:
        ValueError: If the record carries a negative or non-finite
            duration, or a missing or naive timestamp.
    """
    if record.duration is not None and (
        not math.isfinite(record.duration) or record.duration < 0
    ):
        raise ValueError(f"duration must be a non-negative number, got {record.duration!r}")
    if record.timestamp is None or record.timestamp.tzinfo is None:
        raise ValueError("timestamp must be set and timezone-aware")


class CourseDataSource(ABC):
    """Capabilities the ranking engine consumes, plus activity ingestion.

    Implementations must raise
    :class:`~courserank.errors.DataSourceUnavailable` when the backing store
    cannot be reached, so the engine can fail the whole request instead of
    returning a partial ranking.
    """

    @abstractmethod
    def get_user_profile(self, user_id: int) -> UserProfile | None:
        """Return the profile for *user_id*, or ``None`` if unknown."""

    @abstractmethod
    def list_courses(self) -> list[Course]:
        """Return the full candidate set."""

    def get_course(self, course_id: int) -> Course | None:
        """Return one course, or ``None`` if unknown."""
        for course in self.list_courses():
            if course.course_id == course_id:
                return course
        return None

    @abstractmethod
    def get_interactions(
        self, user_id: int, course_id: int | None = None
    ) -> list[InteractionRecord]:
        """Return *user_id*'s interaction records, oldest first.

        Records of unknown kinds are never returned.

        Args:
            user_id: The acting user.
            course_id: Restrict to one course; ``None`` returns all courses.
        """

    @abstractmethod
    def get_interaction_aggregates(self, user_id: int) -> dict[int, InteractionAggregate]:
        """Return per-course interaction statistics for *user_id* in one call.

        Courses the user never interacted with are absent from the mapping.
        """

    # ------------------------------------------------------------------
    # Activity ingestion
    # ------------------------------------------------------------------

    @abstractmethod
    def add_interaction(self, record: InteractionRecord) -> None:
        """Store one interaction record.

        Raises:
            ValueError: If :func:`check_record` rejects *record*.
        """

    def record_view(self, user_id: int, course_id: int, timestamp: datetime) -> InteractionRecord:
        record = InteractionRecord(user_id, course_id, ActivityType.VIEW, timestamp)
        self.add_interaction(record)
        return record

    def record_engagement(
        self, user_id: int, course_id: int, duration: float, timestamp: datetime
    ) -> InteractionRecord:
        record = InteractionRecord(user_id, course_id, ActivityType.ENGAGE, timestamp, duration)
        self.add_interaction(record)
        return record
