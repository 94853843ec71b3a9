"""Aggregate analytics over the terminal result set of a screening job."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Sequence

from ..schemas import (
    AnalyticsReport,
    CandidateSummary,
    MatchCategory,
    ProcessingMetrics,
    ResultStatus,
    ScoreBin,
    ScreeningJob,
    ScreeningResult,
    SkillFrequency,
)

STRONG_THRESHOLD = 75.0
MODERATE_THRESHOLD = 50.0


def categorize(
    percentage: float,
    *,
    strong: float = STRONG_THRESHOLD,
    moderate: float = MODERATE_THRESHOLD,
) -> MatchCategory:
    if percentage >= strong:
        return MatchCategory.STRONG
    if percentage >= moderate:
        return MatchCategory.MODERATE
    return MatchCategory.WEAK


def rank_results(results: Sequence[ScreeningResult]) -> list[ScreeningResult]:
    """Order successfully scored results by match, earliest first on ties.

    Errored results carry no score and are left out.
    """
    completed = [result for result in results if result.status is ResultStatus.COMPLETED]
    return sorted(completed, key=lambda result: (-result.match_percentage, result.created_at))


@dataclass
class AnalyticsConfig:
    """Configuration for report aggregation."""

    strong_threshold: float = STRONG_THRESHOLD
    moderate_threshold: float = MODERATE_THRESHOLD
    histogram_bin_width: float = 10.0
    top_skills: int = 10
    top_candidates: int = 5
    candidate_skill_limit: int = 5


class AnalyticsAggregator:
    """Compute the analytics report of a terminal job.

    The report depends only on the job record and its results, so repeated
    aggregation over the same input yields the same report.
    """

    def __init__(self, *, config: AnalyticsConfig | None = None) -> None:
        self._config = config or AnalyticsConfig()

    def categorize(self, percentage: float) -> MatchCategory:
        return categorize(
            percentage,
            strong=self._config.strong_threshold,
            moderate=self._config.moderate_threshold,
        )

    def aggregate(
        self,
        job: ScreeningJob,
        results: Sequence[ScreeningResult],
    ) -> AnalyticsReport:
        ranked = rank_results(results)
        total = len(ranked)
        scores = [result.match_percentage for result in ranked]

        return AnalyticsReport(
            screening_job_id=job.id,
            total_candidates=total,
            errored_count=len(results) - total,
            average_match=round(sum(scores) / total, 2) if total else 0.0,
            match_distribution=self._match_distribution(scores),
            score_distribution=self._score_histogram(scores),
            top_matched_skills=self._skill_frequency(ranked, results),
            top_candidates=self._top_candidates(ranked),
            processing_metrics=self._processing_metrics(job, results),
        )

    def _match_distribution(self, scores: Sequence[float]) -> dict[MatchCategory, int]:
        distribution = {category: 0 for category in MatchCategory}
        for score in scores:
            distribution[self.categorize(score)] += 1
        return distribution

    def _score_histogram(self, scores: Sequence[float]) -> list[ScoreBin]:
        width = self._config.histogram_bin_width
        bin_count = math.ceil(100.0 / width)
        counts = [0] * bin_count
        for score in scores:
            counts[min(int(score // width), bin_count - 1)] += 1

        bins: list[ScoreBin] = []
        for index, count in enumerate(counts):
            low = index * width
            high = min(100.0, (index + 1) * width)
            bins.append(
                ScoreBin(
                    range=f"{low:g}-{high:g}",
                    min=low,
                    max=high,
                    count=count,
                    percentage=_percentage(count, len(scores)),
                )
            )
        return bins

    def _skill_frequency(
        self,
        ranked: Sequence[ScreeningResult],
        results: Sequence[ScreeningResult],
    ) -> list[SkillFrequency]:
        # Counter keeps insertion order and sorted() is stable, so ties stay first-seen.
        counts: Counter[str] = Counter()
        for result in results:
            if result.status is ResultStatus.COMPLETED:
                counts.update(result.skills_matched)
        ordered = sorted(counts.items(), key=lambda item: -item[1])
        return [
            SkillFrequency(skill=skill, count=count, percentage=_percentage(count, len(ranked)))
            for skill, count in ordered[: self._config.top_skills]
        ]

    def _top_candidates(self, ranked: Sequence[ScreeningResult]) -> list[CandidateSummary]:
        limit = self._config.candidate_skill_limit
        return [
            CandidateSummary(
                rank=position,
                candidate_id=result.candidate_id,
                candidate_name=result.candidate_name,
                resume_id=result.resume_id,
                match_percentage=result.match_percentage,
                category=self.categorize(result.match_percentage),
                skills_matched=result.skills_matched[:limit],
                created_at=result.created_at,
            )
            for position, result in enumerate(ranked[: self._config.top_candidates], start=1)
        ]

    @staticmethod
    def _processing_metrics(
        job: ScreeningJob,
        results: Sequence[ScreeningResult],
    ) -> ProcessingMetrics:
        finished_at = job.completed_at or job.updated_at
        total_seconds = max(0.0, (finished_at - job.created_at).total_seconds())
        timings = [result.scoring_time_ms for result in results if result.scoring_time_ms is not None]
        return ProcessingMetrics(
            total_processing_time_s=round(total_seconds, 3),
            average_time_per_resume_ms=round(total_seconds * 1000.0 / job.total_resumes, 3),
            average_scoring_time_ms=round(sum(timings) / len(timings), 3) if timings else 0.0,
        )


def _percentage(count: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(count / total * 100.0, 2)
