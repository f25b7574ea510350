"""Thread-safe in-memory data source used for local runs and tests."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime

from courserank.models import (
    ActivityType,
    Course,
    InteractionAggregate,
    InteractionRecord,
    UserProfile,
)
from courserank.sources.base import CourseDataSource, check_record


class InMemoryDataSource(CourseDataSource):
    """Holds users, courses and interaction records in plain dicts.

    All public methods are thread-safe, so the row-wise strategy can fetch
    from worker threads while a loader is still adding records.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, UserProfile] = {}
        self._courses: dict[int, Course] = {}
        self._interactions: dict[int, list[InteractionRecord]] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def add_user(self, profile: UserProfile) -> None:
        with self._lock:
            self._users[profile.user_id] = profile

    def add_course(self, course: Course) -> None:
        with self._lock:
            self._courses[course.course_id] = course

    def add_courses(self, courses: Iterable[Course]) -> None:
        for course in courses:
            self.add_course(course)

    def add_interaction(self, record: InteractionRecord) -> None:
        """Append *record* to its user's history, keeping it sorted by time."""
        check_record(record)
        with self._lock:
            history = self._interactions.setdefault(record.user_id, [])
            history.append(record)
            history.sort(key=lambda r: r.timestamp)

    # ------------------------------------------------------------------
    # CourseDataSource
    # ------------------------------------------------------------------

    def get_user_profile(self, user_id: int) -> UserProfile | None:
        with self._lock:
            return self._users.get(user_id)

    def list_courses(self) -> list[Course]:
        with self._lock:
            return list(self._courses.values())

    def get_course(self, course_id: int) -> Course | None:
        with self._lock:
            return self._courses.get(course_id)

    def get_interactions(
        self, user_id: int, course_id: int | None = None
    ) -> list[InteractionRecord]:
        with self._lock:
            history = list(self._interactions.get(user_id, ()))
        if course_id is None:
            return history
        return [r for r in history if r.course_id == course_id]

    def get_interaction_aggregates(self, user_id: int) -> dict[int, InteractionAggregate]:
        with self._lock:
            history = list(self._interactions.get(user_id, ()))

        view_counts: dict[int, int] = {}
        last_views: dict[int, datetime] = {}
        engagement_counts: dict[int, int] = {}
        engagement_totals: dict[int, float] = {}
        for record in history:
            cid = record.course_id
            if record.activity_type == ActivityType.VIEW:
                view_counts[cid] = view_counts.get(cid, 0) + 1
                ts = record.timestamp
                if ts is not None and (cid not in last_views or ts > last_views[cid]):
                    last_views[cid] = ts
            elif record.activity_type == ActivityType.ENGAGE and record.duration is not None:
                engagement_counts[cid] = engagement_counts.get(cid, 0) + 1
                engagement_totals[cid] = engagement_totals.get(cid, 0.0) + float(record.duration)

        return {
            cid: InteractionAggregate(
                course_id=cid,
                view_count=view_counts.get(cid, 0),
                last_viewed_at=last_views.get(cid),
                engagement_count=engagement_counts.get(cid, 0),
                engagement_seconds=engagement_totals.get(cid, 0.0),
            )
            for cid in set(view_counts) | set(engagement_counts)
        }
