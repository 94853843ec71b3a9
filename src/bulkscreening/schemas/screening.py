from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from .base import CamelModel


class ScreeningStatus(str, Enum):
    """Lifecycle of a screening job."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ScreeningStatus.COMPLETED, ScreeningStatus.FAILED)


class ResultStatus(str, Enum):
    """Per-resume outcome, independent of the job status."""

    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class MatchCategory(str, Enum):
    STRONG = "STRONG"
    MODERATE = "MODERATE"
    WEAK = "WEAK"


class ScreeningJob(CamelModel):
    """Tracks one batch through the screening lifecycle."""

    id: str
    employer_id: str
    job_id: str
    status: ScreeningStatus = ScreeningStatus.PENDING
    total_resumes: int = Field(ge=1)
    processed_count: int = Field(default=0, ge=0)
    shortlisted_candidates: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None


class ScreeningResult(CamelModel):
    """Scoring outcome for one resume of a job."""

    id: str
    screening_job_id: str
    resume_id: str
    candidate_id: str
    candidate_name: str = ""
    filename: str = ""
    match_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    skills_matched: list[str] = Field(default_factory=list)
    skills_missing: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    status: ResultStatus
    error: str | None = None
    scoring_time_ms: float | None = None
    created_at: datetime


class ResultView(ScreeningResult):
    """Result enriched with its standing inside the job."""

    rank: int | None = None
    category: MatchCategory | None = None
    shortlisted: bool = False


class SubmissionReceipt(CamelModel):
    """Synchronous answer to a batch submission."""

    job_id: str
    status: ScreeningStatus
    total_resumes: int


class StatusSnapshot(CamelModel):
    """Read-only progress view served to polling clients."""

    id: str
    job_id: str
    status: ScreeningStatus
    total_resumes: int
    processed_count: int
    progress: float
    message: str
    eta_seconds: float | None = None
    created_at: datetime
    updated_at: datetime
