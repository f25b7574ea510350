"""Error taxonomy for the ranking engine.

Only :class:`UserNotFound`, :class:`CourseNotFound`, :class:`CategoryNotFound` and
:class:`DataSourceUnavailable` ever reach a caller.
:class:`SignalComputationFailure` is caught by the scoring strategies, which
drop the affected course and carry on.
"""

from __future__ import annotations


class RecommenderError(Exception):
    """Base class for all ranking engine errors."""


class UserNotFound(RecommenderError):
    """No profile exists for the requested user."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id!r}")
        self.user_id = user_id


class CourseNotFound(RecommenderError):
    """Activity was reported against a course that does not exist."""

    def __init__(self, course_id: int) -> None:
        super().__init__(f"Course not found: {course_id!r}")
        self.course_id = course_id


class CategoryNotFound(RecommenderError):
    """No course belongs to the requested category."""

    def __init__(self, category: str) -> None:
        super().__init__(f"No courses found in category {category!r}")
        self.category = category


class SignalComputationFailure(RecommenderError):
    """A signal could not be computed for one course (e.g. malformed record)."""

    def __init__(self, course_id: int, reason: str) -> None:
        super().__init__(f"Cannot score course {course_id!r}: {reason}")
        self.course_id = course_id
        self.reason = reason


class DataSourceUnavailable(RecommenderError):
    """The backing data source could not be reached; fatal for the request."""
