"""Core domain dataclasses shared across all ranking modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ActivityType(str, Enum):
    """Kinds of user/course interaction the ranking engine consumes."""

    VIEW = "view"
    ENGAGE = "scroll"


@dataclass(frozen=True)
class Course:
    """A single course in the catalogue.

    Attributes:
        course_id: Unique numeric identifier. Lower ids win final ties.
        title: Human-readable course title.
        tags: Content tags (e.g. ``"javascript"``, ``"web-development"``).
        popularity: Non-negative global popularity value.
        enrollment_count: Informational only; used by the popularity
            fallback ordering but never by the personalized score.
        description: Free-text description, passed through to callers.
        category: Category label (e.g. ``"Programming"``).
        difficulty: Difficulty label (e.g. ``"beginner"``).
    """

    course_id: int
    title: str
    tags: tuple[str, ...] = ()
    popularity: float = 0.0
    enrollment_count: int = 0
    description: str = ""
    category: str = ""
    difficulty: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.course_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "difficulty": self.difficulty,
            "popularity": self.popularity,
            "enrollmentCount": self.enrollment_count,
        }


@dataclass(frozen=True)
class UserProfile:
    """Declared interests of a single user.

    Attributes:
        user_id: Unique numeric identifier for the user.
        interests: Topic interests (order irrelevant).
        career_interests: Career-track interests (order irrelevant).
    """

    user_id: int
    interests: frozenset[str] = field(default_factory=frozenset)
    career_interests: frozenset[str] = field(default_factory=frozenset)

    @property
    def all_interests(self) -> frozenset[str]:
        return self.interests | self.career_interests


@dataclass(frozen=True)
class InteractionRecord:
    """A single logged interaction between a user and a course.

    Attributes:
        user_id: The acting user.
        course_id: The course interacted with.
        activity_type: :attr:`ActivityType.VIEW` or :attr:`ActivityType.ENGAGE`.
        timestamp: When the interaction happened (UTC-aware).
        duration: Dwell time in seconds for engage records; ``None`` for
            views. Engage records without a duration are ignored.
    """

    user_id: int
    course_id: int
    activity_type: ActivityType
    timestamp: datetime | None
    duration: float | None = None


@dataclass(frozen=True)
class InteractionAggregate:
    """Pre-aggregated interaction statistics for one (user, course) pair.

    Produced in a single pass by
    :meth:`~courserank.sources.base.CourseDataSource.get_interaction_aggregates`.

    Attributes:
        course_id: The course these statistics describe.
        view_count: Number of view records.
        last_viewed_at: Most recent view timestamp, ``None`` if never viewed.
        engagement_count: Number of engage records carrying a duration.
        engagement_seconds: Sum of those durations.
        invalid_count: Engage records whose duration is negative. Stores
            that validate on write always report 0.
    """

    course_id: int
    view_count: int = 0
    last_viewed_at: datetime | None = None
    engagement_count: int = 0
    engagement_seconds: float = 0.0
    invalid_count: int = 0


@dataclass(frozen=True)
class SignalBreakdown:
    """The four per-signal scores behind a total, each in ``[0, 1]``."""

    interest: float
    engagement: float
    views: float
    popularity: float

    def to_dict(self) -> dict:
        """Presentation form: every component rounded to 2 decimals."""
        return {
            "interest": round(self.interest, 2),
            "engagement": round(self.engagement, 2),
            "views": round(self.views, 2),
            "popularity": round(self.popularity, 2),
        }


@dataclass(frozen=True)
class ScoredCourse:
    """A course with its full-precision total score and breakdown."""

    course: Course
    score: float
    breakdown: SignalBreakdown

    @property
    def course_id(self) -> int:
        return self.course.course_id

    def to_dict(self) -> dict:
        payload = self.course.to_dict()
        payload["recommendationScore"] = round(self.score, 2)
        payload["scoreBreakdown"] = self.breakdown.to_dict()
        return payload


@dataclass(frozen=True)
class CategoryMatch:
    """A course ranked by the lightweight category pass (interest only)."""

    course: Course
    interest_match: float

    def to_dict(self) -> dict:
        payload = self.course.to_dict()
        payload["interestMatch"] = round(self.interest_match, 2)
        return payload


@dataclass(frozen=True)
class CategoryRanking:
    """Result of the category-scoped pass.

    Attributes:
        category: The category as requested by the caller.
        courses: Matches in ranked order.
        personalized: ``True`` when a known user's interests shaped the order.
    """

    category: str
    courses: list[CategoryMatch]
    personalized: bool
