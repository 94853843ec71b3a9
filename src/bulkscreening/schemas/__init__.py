"""Pydantic schema definitions shared across the screening service."""

from __future__ import annotations

from .analytics import (
    AnalyticsReport,
    CandidateSummary,
    ProcessingMetrics,
    ResultFilters,
    ResultPage,
    ResultSummary,
    ScoreBin,
    SkillFrequency,
)
from .intake import IntakeViolation, ViolationCode
from .job import JobRequirements
from .screening import (
    MatchCategory,
    ResultStatus,
    ResultView,
    ScreeningJob,
    ScreeningResult,
    ScreeningStatus,
    StatusSnapshot,
    SubmissionReceipt,
)

__all__ = [
    "AnalyticsReport",
    "CandidateSummary",
    "IntakeViolation",
    "JobRequirements",
    "MatchCategory",
    "ProcessingMetrics",
    "ResultFilters",
    "ResultPage",
    "ResultStatus",
    "ResultSummary",
    "ResultView",
    "ScoreBin",
    "ScreeningJob",
    "ScreeningResult",
    "ScreeningStatus",
    "SkillFrequency",
    "StatusSnapshot",
    "SubmissionReceipt",
    "ViolationCode",
]
