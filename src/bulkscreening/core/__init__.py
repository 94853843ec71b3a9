"""Core scoring and aggregation components."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..schemas import JobRequirements
from .analytics import AnalyticsAggregator, AnalyticsConfig, categorize, rank_results
from .scorer import KeywordScorer, MatchResult, ScorerConfig


@runtime_checkable
class Scorer(Protocol):
    """Scoring contract.

    Implementations must be pure: identical inputs give identical results and
    concurrent calls need no synchronization. ``skills_matched`` and
    ``skills_missing`` partition the job's required skills.
    """

    def score(self, resume_text: str, requirements: JobRequirements) -> MatchResult:
        """Return the match of one resume against the job requirements."""


__all__ = [
    "AnalyticsAggregator",
    "AnalyticsConfig",
    "KeywordScorer",
    "MatchResult",
    "Scorer",
    "ScorerConfig",
    "categorize",
    "rank_results",
]
