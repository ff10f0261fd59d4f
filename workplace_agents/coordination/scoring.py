"""Keyword-based capability scoring."""

from dataclasses import dataclass
from typing import Iterable, List

MAX_SCORE = 100


@dataclass(frozen=True)
class ScoringProfile:
    """Base score, per-keyword increment and cap of one agent."""
    base: int = 0
    increment: int = 15
    cap: int = MAX_SCORE

    def __post_init__(self):
        if not 0 <= self.base <= self.cap <= MAX_SCORE:
            raise ValueError(
                f"Scoring profile must satisfy 0 <= base <= cap <= {MAX_SCORE}, "
                f"got base={self.base}, cap={self.cap}"
            )
        if self.increment < 0:
            raise ValueError(f"Scoring increment must be >= 0, got {self.increment}")


# Specialists start at zero; the fallback always scores something but stays capped
SPECIALIST_PROFILE = ScoringProfile(base=0, increment=15, cap=100)
FALLBACK_PROFILE = ScoringProfile(base=10, increment=8, cap=60)


class KeywordScorer:
    """Scores a query by case-insensitive keyword containment."""

    def __init__(self, keywords: Iterable[str], profile: ScoringProfile = SPECIALIST_PROFILE):
        self.keywords = [kw.lower() for kw in keywords if kw and kw.strip()]
        self.profile = profile

    def matches(self, query: str) -> List[str]:
        """Keywords contained in the query, in declaration order."""
        query_lower = query.lower()
        return [kw for kw in self.keywords if kw in query_lower]

    def score(self, query: str) -> int:
        """
        Confidence that this agent can answer the query.

        Args:
            query: User query

        Returns:
            ``base + increment * matches``, clamped to the profile cap
        """
        total = self.profile.base + self.profile.increment * len(self.matches(query))
        return min(total, self.profile.cap)
