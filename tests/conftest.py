"""Shared pytest fixtures for all ranking tests."""

from __future__ import annotations

import pytest

from courserank.engine import RecommendationEngine
from courserank.models import Course, InteractionRecord, UserProfile
from courserank.sources.memory import InMemoryDataSource
from courserank.sources.sql import SqlDataSource
from factories import (
    build_engine,
    build_memory_source,
    build_sql_source,
    days_ago,
    scroll,
    view,
)


# ---------------------------------------------------------------------------
# Course fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_courses() -> list[Course]:
    """Six courses over three categories; courses 2 and 6 tie on popularity."""
    return [
        Course(1, "JavaScript Fundamentals", ("javascript", "programming"), 95, 15000,
               category="Programming", difficulty="beginner"),
        Course(2, "React for Beginners", ("react", "javascript", "frontend"), 88, 12000,
               category="Programming", difficulty="intermediate"),
        Course(3, "Python for Data Science", ("python", "data-science"), 92, 18000,
               category="Data Science", difficulty="beginner"),
        Course(4, "UI/UX Design Principles", ("design", "ui-ux"), 80, 7000,
               category="Design", difficulty="beginner"),
        Course(5, "Untitled Workshop", (), 40, 100, category="Design"),
        Course(6, "Web Development Bootcamp", ("web-development",), 88, 9000,
               category="Programming", difficulty="advanced"),
    ]


# ---------------------------------------------------------------------------
# User fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def js_user() -> UserProfile:
    return UserProfile(user_id=1, interests=frozenset({"javascript"}))


@pytest.fixture
def data_user() -> UserProfile:
    return UserProfile(
        user_id=2,
        interests=frozenset({"Python", "design"}),
        career_interests=frozenset({"data-scientist"}),
    )


@pytest.fixture
def new_user() -> UserProfile:
    """A brand-new user with no interests and no history (cold-start case)."""
    return UserProfile(user_id=3)


@pytest.fixture
def sample_users(js_user, data_user, new_user) -> list[UserProfile]:
    return [js_user, data_user, new_user]


# ---------------------------------------------------------------------------
# Interaction fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_records() -> list[InteractionRecord]:
    return [
        # user 1: heavy engagement with course 1, light with 2, many views of 4
        scroll(1, 1, 30, days_ago(3)),
        scroll(1, 1, 90, days_ago(1)),
        view(1, 1, days_ago(3)),
        view(1, 1, days_ago(1)),
        view(1, 2, days_ago(7)),
        scroll(1, 2, 20, days_ago(7)),
        scroll(1, 3, None, days_ago(2)),
        *[view(1, 4, days_ago(2)) for _ in range(10)],
        # user 2: data science browsing
        view(2, 3, days_ago(0.5)),
        view(2, 3, days_ago(4)),
        view(2, 3, days_ago(10)),
        scroll(2, 3, 45, days_ago(0.5)),
        view(2, 4, days_ago(30)),
        scroll(2, 6, 240, days_ago(5)),
    ]


@pytest.fixture
def memory_source(sample_courses, sample_users, sample_records) -> InMemoryDataSource:
    return build_memory_source(sample_courses, sample_users, sample_records)


@pytest.fixture
def sql_source(tmp_path, sample_courses, sample_users, sample_records) -> SqlDataSource:
    source = build_sql_source(
        tmp_path / "courses.db", sample_courses, sample_users, sample_records
    )
    yield source
    source.dispose()


@pytest.fixture
def engine(memory_source) -> RecommendationEngine:
    return build_engine(memory_source)
