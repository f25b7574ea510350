"""SQLAlchemy-backed data source.

Interaction aggregates come from a single ``GROUP BY`` over
``user_activities``, so the bulk strategy needs one round trip per request
regardless of catalogue size.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    and_,
    case,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from courserank.errors import DataSourceUnavailable
from courserank.models import (
    ActivityType,
    Course,
    InteractionAggregate,
    InteractionRecord,
    UserProfile,
)
from courserank.sources.base import CourseDataSource, check_record

logger = logging.getLogger(__name__)

_KNOWN_KINDS = tuple(kind.value for kind in ActivityType)


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    interests: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    career_interests: Mapped[list] = mapped_column(JSON, default=list, nullable=False)


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String, default="", nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    popularity: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    enrollment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ActivityRow(Base):
    __tablename__ = "user_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False)
    activity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    duration: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SqlDataSource(CourseDataSource):
    """Reads users, courses and activity through SQLAlchemy.

    Any :class:`~sqlalchemy.exc.SQLAlchemyError` raised while reading is
    re-raised as :class:`~courserank.errors.DataSourceUnavailable`.

    Args:
        engine: A configured SQLAlchemy :class:`~sqlalchemy.engine.Engine`.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(
            bind=engine, expire_on_commit=False, autoflush=False
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> SqlDataSource:
        return cls(create_engine(url, echo=echo, pool_pre_ping=True))

    def create_schema(self) -> None:
        """Create all tables if they do not exist (development and tests)."""
        Base.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(
        self,
        users: Iterable[UserProfile] = (),
        courses: Iterable[Course] = (),
        interactions: Iterable[InteractionRecord] = (),
    ) -> None:
        """Insert users, courses and interaction records in one transaction.

        Raises:
            ValueError: If any record fails :func:`~courserank.sources.base.check_record`;
                nothing is written in that case.
        """
        records = list(interactions)
        for record in records:
            check_record(record)
        with self._session_factory.begin() as session:
            session.add_all(
                UserRow(
                    id=u.user_id,
                    interests=sorted(u.interests),
                    career_interests=sorted(u.career_interests),
                )
                for u in users
            )
            session.add_all(
                CourseRow(
                    id=c.course_id,
                    title=c.title,
                    description=c.description,
                    category=c.category,
                    tags=list(c.tags),
                    difficulty=c.difficulty,
                    popularity=c.popularity,
                    enrollment_count=c.enrollment_count,
                )
                for c in courses
            )
            session.flush()
            session.add_all(_activity_row(r) for r in records)

    def add_interaction(self, record: InteractionRecord) -> None:
        check_record(record)
        with self._session() as session:
            session.add(_activity_row(record))
            session.commit()

    # ------------------------------------------------------------------
    # CourseDataSource
    # ------------------------------------------------------------------

    def get_user_profile(self, user_id: int) -> UserProfile | None:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            if row is None:
                return None
            return UserProfile(
                user_id=row.id,
                interests=frozenset(row.interests or ()),
                career_interests=frozenset(row.career_interests or ()),
            )

    def list_courses(self) -> list[Course]:
        with self._session() as session:
            rows = session.scalars(select(CourseRow).order_by(CourseRow.id)).all()
            return [_course_from_row(row) for row in rows]

    def get_course(self, course_id: int) -> Course | None:
        with self._session() as session:
            row = session.get(CourseRow, course_id)
            return _course_from_row(row) if row is not None else None

    def get_interactions(
        self, user_id: int, course_id: int | None = None
    ) -> list[InteractionRecord]:
        query = select(ActivityRow).where(
            ActivityRow.user_id == user_id,
            ActivityRow.activity_type.in_(_KNOWN_KINDS),
        )
        if course_id is not None:
            query = query.where(ActivityRow.course_id == course_id)
        query = query.order_by(ActivityRow.timestamp, ActivityRow.id)

        with self._session() as session:
            rows = session.scalars(query).all()
            return [
                InteractionRecord(
                    user_id=row.user_id,
                    course_id=row.course_id,
                    activity_type=ActivityType(row.activity_type),
                    timestamp=_as_utc(row.timestamp),
                    duration=row.duration,
                )
                for row in rows
            ]

    def get_interaction_aggregates(self, user_id: int) -> dict[int, InteractionAggregate]:
        is_view = ActivityRow.activity_type == ActivityType.VIEW.value
        is_timed_engagement = and_(
            ActivityRow.activity_type == ActivityType.ENGAGE.value,
            ActivityRow.duration.is_not(None),
        )
        is_negative_duration = and_(is_timed_engagement, ActivityRow.duration < 0)
        query = (
            select(
                ActivityRow.course_id,
                func.sum(case((is_view, 1), else_=0)).label("view_count"),
                func.max(case((is_view, ActivityRow.timestamp))).label("last_viewed_at"),
                func.sum(case((is_timed_engagement, 1), else_=0)).label("engagement_count"),
                func.sum(case((is_timed_engagement, ActivityRow.duration))).label(
                    "engagement_seconds"
                ),
                func.sum(case((is_negative_duration, 1), else_=0)).label("invalid_count"),
            )
            .where(
                ActivityRow.user_id == user_id,
                ActivityRow.activity_type.in_(_KNOWN_KINDS),
            )
            .group_by(ActivityRow.course_id)
        )

        with self._session() as session:
            rows = session.execute(query).all()

        aggregates = {}
        for row in rows:
            view_count = int(row.view_count or 0)
            engagement_count = int(row.engagement_count or 0)
            if view_count == 0 and engagement_count == 0:
                continue
            aggregates[row.course_id] = InteractionAggregate(
                course_id=row.course_id,
                view_count=view_count,
                last_viewed_at=_as_utc(row.last_viewed_at),
                engagement_count=engagement_count,
                engagement_seconds=float(row.engagement_seconds or 0.0),
                invalid_count=int(row.invalid_count or 0),
            )
        return aggregates

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _session(self) -> _GuardedSession:
        return _GuardedSession(self._session_factory)


class _GuardedSession:
    """Context manager yielding a session; driver errors become DataSourceUnavailable."""

    def __init__(self, factory: sessionmaker) -> None:
        self._factory = factory
        self._session: Session | None = None

    def __enter__(self) -> Session:
        try:
            self._session = self._factory()
        except SQLAlchemyError as exc:
            raise DataSourceUnavailable("Cannot open database session") from exc
        return self._session

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._session is not None:
            self._session.close()
        if exc is not None and isinstance(exc, SQLAlchemyError):
            logger.error("Database access failed: %s", exc)
            raise DataSourceUnavailable("Database access failed") from exc
        return False


def _activity_row(record: InteractionRecord) -> ActivityRow:
    return ActivityRow(
        user_id=record.user_id,
        course_id=record.course_id,
        activity_type=record.activity_type.value,
        duration=record.duration,
        timestamp=record.timestamp.astimezone(timezone.utc),
    )


def _course_from_row(row: CourseRow) -> Course:
    return Course(
        course_id=row.id,
        title=row.title,
        tags=tuple(row.tags or ()),
        popularity=float(row.popularity or 0.0),
        enrollment_count=int(row.enrollment_count or 0),
        description=row.description or "",
        category=row.category or "",
        difficulty=row.difficulty or "",
    )


def _as_utc(value: datetime | str | None) -> datetime | None:
    """Attach UTC to naive datetimes; SQLite drops the zone on the way out."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
