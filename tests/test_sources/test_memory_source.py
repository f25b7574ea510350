"""Tests for InMemoryDataSource."""

from __future__ import annotations

from datetime import datetime

import pytest

from courserank.models import ActivityType, Course, UserProfile
from courserank.sources.memory import InMemoryDataSource
from factories import NOW, days_ago, scroll, view


@pytest.fixture
def source() -> InMemoryDataSource:
    src = InMemoryDataSource()
    src.add_courses([Course(1, "A"), Course(2, "B")])
    src.add_user(UserProfile(1, frozenset({"python"})))
    return src


class TestProfilesAndCourses:
    def test_get_user_profile(self, source) -> None:
        profile = source.get_user_profile(1)
        assert profile is not None
        assert profile.interests == frozenset({"python"})

    def test_unknown_user_is_none(self, source) -> None:
        assert source.get_user_profile(99) is None

    def test_list_courses_snapshot(self, source) -> None:
        courses = source.list_courses()
        courses.clear()
        assert len(source.list_courses()) == 2

    def test_add_course_replaces_same_id(self, source) -> None:
        source.add_course(Course(1, "A v2"))
        titles = {c.course_id: c.title for c in source.list_courses()}
        assert titles[1] == "A v2"


class TestInteractions:
    def test_records_ordered_by_timestamp(self, source) -> None:
        source.add_interaction(view(1, 1, days_ago(1)))
        source.add_interaction(view(1, 2, days_ago(5)))
        source.add_interaction(view(1, 1, days_ago(3)))
        stamps = [r.timestamp for r in source.get_interactions(1)]
        assert stamps == sorted(stamps)

    def test_filter_by_course(self, source) -> None:
        source.add_interaction(view(1, 1, days_ago(1)))
        source.add_interaction(view(1, 2, days_ago(1)))
        records = source.get_interactions(1, 2)
        assert [r.course_id for r in records] == [2]

    def test_unknown_user_has_no_history(self, source) -> None:
        assert source.get_interactions(42) == []

    def test_record_helpers(self, source) -> None:
        record = source.record_view(1, 1, days_ago(2))
        assert record.activity_type == ActivityType.VIEW
        source.record_engagement(1, 1, 45.0, days_ago(1))
        kinds = [r.activity_type for r in source.get_interactions(1, 1)]
        assert kinds == [ActivityType.VIEW, ActivityType.ENGAGE]

    def test_get_course(self, source) -> None:
        source.add_course(Course(9, "Nine"))
        assert source.get_course(9) == Course(9, "Nine")
        assert source.get_course(10) is None

    @pytest.mark.parametrize("duration", [-1.0, float("inf"), float("nan")])
    def test_rejects_invalid_duration(self, source, duration) -> None:
        with pytest.raises(ValueError):
            source.add_interaction(scroll(1, 1, duration))

    def test_rejects_naive_timestamp(self, source) -> None:
        with pytest.raises(ValueError):
            source.add_interaction(view(1, 1, datetime(2024, 1, 1)))


class TestAggregates:
    def test_counts_and_sums(self, source) -> None:
        for record in [
            view(1, 1, days_ago(3)),
            view(1, 1, days_ago(1)),
            scroll(1, 1, 30),
            scroll(1, 1, 90),
            scroll(1, 1, None),
        ]:
            source.add_interaction(record)
        agg = source.get_interaction_aggregates(1)[1]
        assert agg.view_count == 2
        assert agg.last_viewed_at == days_ago(1)
        assert agg.engagement_count == 2
        assert agg.engagement_seconds == pytest.approx(120.0)

    def test_engagement_only_course(self, source) -> None:
        source.add_interaction(scroll(1, 2, 10))
        agg = source.get_interaction_aggregates(1)[2]
        assert agg.view_count == 0
        assert agg.last_viewed_at is None

    def test_untouched_courses_absent(self, source) -> None:
        source.add_interaction(view(1, 1, NOW))
        assert set(source.get_interaction_aggregates(1)) == {1}

    def test_durationless_engagement_only_is_absent(self, source) -> None:
        source.add_interaction(scroll(1, 2, None))
        assert source.get_interaction_aggregates(1) == {}

    def test_other_users_isolated(self, source) -> None:
        source.add_interaction(view(2, 1, NOW))
        assert source.get_interaction_aggregates(1) == {}
