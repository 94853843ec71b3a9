from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class JobRequirements(BaseModel):
    """Requirement set of the job posting a batch is screened against."""

    job_id: str
    employer_id: str | None = None
    title: str = ""
    description: str = ""
    required_skills: list[str] = Field(default_factory=list)
    nice_to_have_skills: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
