"""Static demo catalogue, users and activity for local runs.

Used by :mod:`main` when no ``DATABASE_URL`` is configured. Activity is
generated deterministically relative to the load time, so recency scores
look realistic whenever the server starts.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from courserank.models import ActivityType, Course, InteractionRecord, UserProfile
from courserank.sources.memory import InMemoryDataSource

SAMPLE_COURSES: list[Course] = [
    Course(1, "JavaScript Fundamentals", ("javascript", "programming", "web-development"),
           95, 15420, "Learn the building blocks of modern JavaScript.", "Programming", "beginner"),
    Course(2, "React for Beginners", ("react", "javascript", "frontend"),
           88, 12350, "Build interactive UIs with components and hooks.", "Programming", "intermediate"),
    Course(3, "Node.js Backend Development", ("nodejs", "javascript", "backend", "api"),
           82, 9870, "Server-side JavaScript with Express and REST APIs.", "Programming", "intermediate"),
    Course(4, "Python for Data Science", ("python", "data-science", "pandas", "numpy"),
           92, 18900, "Analyse and visualise data with the Python stack.", "Data Science", "beginner"),
    Course(5, "Machine Learning A-Z", ("machine-learning", "python", "ai", "statistics"),
           90, 21000, "Supervised and unsupervised learning in practice.", "Data Science", "intermediate"),
    Course(6, "SQL for Analysts", ("sql", "data-analysis", "databases"),
           75, 8700, "Query, join and aggregate relational data.", "Data Science", "beginner"),
    Course(7, "UI/UX Design Principles", ("design", "ui-ux", "figma"),
           80, 7600, "Design usable, accessible interfaces.", "Design", "beginner"),
    Course(8, "Advanced Figma Workflows", ("figma", "design-systems", "prototyping"),
           68, 4300, "Components, variants and auto layout at scale.", "Design", "advanced"),
    Course(9, "Digital Marketing Strategy", ("marketing", "strategy", "analytics"),
           72, 6900, "Plan and measure multi-channel campaigns.", "Business", "beginner"),
    Course(10, "Product Management Essentials", ("product-management", "strategy", "business"),
           85, 10200, "From discovery to delivery as a product manager.", "Business", "intermediate"),
    Course(11, "Startup Fundamentals", ("entrepreneurship", "business", "startup"),
           64, 3900, "Validate ideas, raise money and find product-market fit.", "Business", "beginner"),
    Course(12, "Full-Stack Web Bootcamp", ("full-stack", "javascript", "react", "nodejs"),
           87, 11800, "End-to-end web applications in one course.", "Programming", "advanced"),
]

SAMPLE_USERS: list[UserProfile] = [
    UserProfile(1, frozenset({"programming", "javascript", "web-development", "react"}),
                frozenset({"software-engineer", "frontend-developer", "full-stack-developer"})),
    UserProfile(2, frozenset({"data-science", "python", "machine-learning", "statistics"}),
                frozenset({"data-scientist", "ml-engineer", "data-analyst"})),
    UserProfile(3, frozenset({"design", "ui-ux", "figma", "photoshop"}),
                frozenset({"ui-designer", "ux-designer", "product-designer"})),
    UserProfile(4, frozenset({"business", "marketing", "strategy", "analytics"}),
                frozenset({"product-manager", "marketing-manager", "business-analyst"})),
    UserProfile(5, frozenset({"programming", "design", "entrepreneurship"}),
                frozenset({"product-manager", "startup-founder"})),
    UserProfile(6),
]

# user_id -> courses they have browsed, with (min, max) scroll seconds.
_ACTIVITY_PLAN: dict[int, list[tuple[int, tuple[int, int]]]] = {
    1: [(1, (30, 90)), (2, (40, 120)), (12, (50, 150))],
    2: [(4, (30, 90)), (5, (40, 120)), (6, (20, 60))],
    3: [(7, (40, 120)), (8, (30, 90))],
    4: [(9, (30, 90)), (10, (50, 150))],
    5: [(1, (20, 60)), (7, (20, 60)), (11, (40, 120))],
}


def sample_interactions(now: datetime, seed: int = 42) -> list[InteractionRecord]:
    """Generate view and scroll records for the sample users, ending at *now*."""
    rng = random.Random(seed)
    records: list[InteractionRecord] = []
    for user_id, plan in _ACTIVITY_PLAN.items():
        for course_id, (low, high) in plan:
            for _ in range(rng.randint(1, 4)):
                viewed_at = now - timedelta(hours=rng.randint(1, 24 * 14))
                records.append(
                    InteractionRecord(user_id, course_id, ActivityType.VIEW, viewed_at)
                )
                records.append(
                    InteractionRecord(
                        user_id,
                        course_id,
                        ActivityType.ENGAGE,
                        viewed_at + timedelta(seconds=5),
                        float(rng.randint(low, high)),
                    )
                )
    return records


def build_sample_source(now: datetime | None = None) -> InMemoryDataSource:
    """Return an :class:`InMemoryDataSource` loaded with the sample data."""
    now = now or datetime.now(timezone.utc)
    source = InMemoryDataSource()
    source.add_courses(SAMPLE_COURSES)
    for profile in SAMPLE_USERS:
        source.add_user(profile)
    for record in sample_interactions(now):
        source.add_interaction(record)
    return source
