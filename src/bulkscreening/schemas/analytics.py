from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from .base import CamelModel
from .screening import MatchCategory, ResultStatus, ResultView


class ScoreBin(CamelModel):
    range: str
    min: float
    max: float
    count: int
    percentage: float


class SkillFrequency(CamelModel):
    skill: str
    count: int
    percentage: float


class CandidateSummary(CamelModel):
    rank: int
    candidate_id: str
    candidate_name: str
    resume_id: str
    match_percentage: float
    category: MatchCategory
    skills_matched: list[str] = Field(default_factory=list)
    created_at: datetime


class ProcessingMetrics(CamelModel):
    total_processing_time_s: float
    average_time_per_resume_ms: float
    average_scoring_time_ms: float


class AnalyticsReport(CamelModel):
    """Aggregate view over the terminal result set of one job."""

    screening_job_id: str
    total_candidates: int
    errored_count: int
    average_match: float
    match_distribution: dict[MatchCategory, int]
    score_distribution: list[ScoreBin]
    top_matched_skills: list[SkillFrequency]
    top_candidates: list[CandidateSummary]
    processing_metrics: ProcessingMetrics


class ResultFilters(CamelModel):
    """Query options for listing a job's results."""

    min_match: float = Field(default=0.0, ge=0.0, le=100.0)
    max_match: float = Field(default=100.0, ge=0.0, le=100.0)
    category: MatchCategory | None = None
    status: ResultStatus | None = None
    shortlisted_only: bool = False
    sort_by: Literal["rank", "match", "name", "created"] = "rank"
    sort_order: Literal["asc", "desc"] = "asc"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=25, ge=1, le=500)


class ResultSummary(CamelModel):
    strong_matches: int = 0
    moderate_matches: int = 0
    weak_matches: int = 0
    average_score: float = 0.0


class ResultPage(CamelModel):
    screening_job_id: str
    total_results: int
    page: int
    page_size: int
    total_pages: int
    results: list[ResultView]
    summary: ResultSummary
