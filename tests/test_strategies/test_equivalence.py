"""Row-wise and bulk strategies must produce the same rankings."""

from __future__ import annotations

import random

import pytest

from courserank.models import Course, UserProfile
from courserank.ranker import rank
from courserank.strategies.bulk import BulkStrategy
from courserank.strategies.row_wise import RowWiseStrategy
from factories import (
    NOW,
    build_engine,
    build_memory_source,
    build_sql_source,
    days_ago,
    insert_raw_activity,
    scroll,
    view,
)


def _assert_equivalent(row_result, bulk_result) -> None:
    assert [s.course_id for s in row_result] == [s.course_id for s in bulk_result]
    for row, bulk in zip(row_result, bulk_result):
        assert bulk.score == pytest.approx(row.score, abs=1e-3)
        assert bulk.breakdown.interest == pytest.approx(row.breakdown.interest, abs=1e-9)
        assert bulk.breakdown.engagement == pytest.approx(row.breakdown.engagement, abs=1e-9)
        assert bulk.breakdown.views == pytest.approx(row.breakdown.views, abs=1e-9)
        assert bulk.breakdown.popularity == pytest.approx(row.breakdown.popularity, abs=1e-9)


@pytest.mark.parametrize("source_fixture", ["memory_source", "sql_source"])
@pytest.mark.parametrize("user_id", [1, 2, 3])
class TestFixtureEquivalence:
    def test_strategies_agree(self, request, source_fixture, user_id, sample_courses) -> None:
        source = request.getfixturevalue(source_fixture)
        profile = source.get_user_profile(user_id)
        candidates = source.list_courses()

        row = rank(RowWiseStrategy(max_workers=3).score(profile, candidates, source, NOW), 100)
        bulk = rank(BulkStrategy().score(profile, candidates, source, NOW), 100)

        assert len(row) == len(sample_courses)
        _assert_equivalent(row, bulk)

    def test_engine_paths_agree(self, request, source_fixture, user_id) -> None:
        engine = build_engine(request.getfixturevalue(source_fixture))
        _assert_equivalent(
            engine.rank(user_id, limit=3, strategy="row"),
            engine.rank(user_id, limit=3, strategy="bulk"),
        )


class TestMalformedRowEquivalence:
    """Rows written behind the loader's back must affect both strategies alike."""

    @pytest.mark.parametrize(
        "kind, duration, course_id, dropped",
        [
            ("scroll", -10.0, 1, True),
            ("scroll", float("-inf"), 2, True),
            ("scroll", float("inf"), 2, True),
            ("click", None, 1, False),
            ("click", 12.0, 4, False),
        ],
    )
    def test_strategies_agree(self, sql_source, kind, duration, course_id, dropped) -> None:
        insert_raw_activity(sql_source, 1, course_id, kind, duration, days_ago(1))
        engine = build_engine(sql_source)

        row = engine.rank(1, limit=100, strategy="row")
        bulk = engine.rank(1, limit=100, strategy="bulk")

        _assert_equivalent(row, bulk)
        assert (course_id not in [s.course_id for s in row]) is dropped

    def test_only_affected_course_dropped(self, sql_source, sample_courses) -> None:
        insert_raw_activity(sql_source, 1, 1, "scroll", 100.0)
        insert_raw_activity(sql_source, 1, 1, "scroll", -10.0)
        engine = build_engine(sql_source)

        for strategy in ("row", "bulk"):
            ids = [s.course_id for s in engine.rank(1, limit=100, strategy=strategy)]
            assert sorted(ids) == [c.course_id for c in sample_courses if c.course_id != 1]

    def test_nan_duration_handled_alike(self, sql_source) -> None:
        insert_raw_activity(sql_source, 1, 2, "scroll", float("nan"), days_ago(1))
        engine = build_engine(sql_source)
        _assert_equivalent(
            engine.rank(1, limit=100, strategy="row"),
            engine.rank(1, limit=100, strategy="bulk"),
        )


def _random_dataset(seed: int):
    rng = random.Random(seed)
    vocabulary = ["python", "web", "web-development", "sql", "design", "ml", "react", "js"]
    courses = [
        Course(
            course_id=i,
            title=f"Course {i}",
            tags=tuple(rng.sample(vocabulary, rng.randint(0, 3))),
            popularity=rng.choice([0, 10, 50, 50, 75, 100]),
        )
        for i in range(1, 26)
    ]
    users = [
        UserProfile(u, frozenset(rng.sample(vocabulary, rng.randint(0, 3))))
        for u in range(1, 6)
    ]
    records = []
    for _ in range(200):
        user_id = rng.randint(1, 5)
        course_id = rng.randint(1, 25)
        at = days_ago(rng.uniform(0, 40))
        if rng.random() < 0.5:
            records.append(view(user_id, course_id, at))
        else:
            duration = None if rng.random() < 0.2 else float(rng.randint(1, 200))
            records.append(scroll(user_id, course_id, duration, at))
    return courses, users, records


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_random_catalogues_rank_identically(tmp_path, seed) -> None:
    courses, users, records = _random_dataset(seed)
    sources = [
        build_memory_source(courses, users, records),
        build_sql_source(tmp_path / f"random-{seed}.db", courses, users, records),
    ]
    for source in sources:
        engine = build_engine(source)
        for user in users:
            _assert_equivalent(
                engine.rank(user.user_id, limit=len(courses), strategy="row"),
                engine.rank(user.user_id, limit=len(courses), strategy="bulk"),
            )
    sources[1].dispose()
