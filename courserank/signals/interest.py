"""Content-affinity signal: how many of a course's tags the user cares about."""

from __future__ import annotations

from collections.abc import Iterable


class InterestMatcher:
    """Scores a course's tags against a user's declared interests.

    A tag matches when, after case-folding, it equals an interest, contains
    an interest as a substring, or is itself contained in an interest. So
    ``"web-development"`` matches the interest ``"web"`` and ``"react"``
    matches ``"react-native"``. There is no fuzzy matching.

    The score is ``matched_tags / total_tags`` and is ``0.0`` for a course
    without tags.

    Args:
        interests: The user's interests and career interests combined.
            Blank entries are ignored, since the empty string is a substring
            of every tag.
    """

    def __init__(self, interests: Iterable[str]) -> None:
        self._interests = frozenset(
            i.strip().casefold() for i in interests if i and i.strip()
        )

    @property
    def interests(self) -> frozenset[str]:
        return self._interests

    def matches(self, tag: str) -> bool:
        """Return ``True`` if *tag* matches any of the user's interests."""
        folded = tag.casefold()
        return any(
            interest == folded or interest in folded or folded in interest
            for interest in self._interests
        )

    def score(self, tags: Iterable[str]) -> float:
        """Return the fraction of *tags* that match, in ``[0, 1]``."""
        tags = list(tags)
        if not tags:
            return 0.0
        matched = sum(1 for tag in tags if self.matches(tag))
        return matched / len(tags)
