"""Pydantic configuration schema for YAML settings."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError


class IntakeConfig(BaseModel):
    max_files: int | None = Field(default=None, ge=1)
    max_file_size_bytes: int | None = Field(default=None, ge=1)
    allowed_content_types: list[str] | None = None


class ScorerSettings(BaseModel):
    min_similarity: float | None = Field(default=None, ge=0.0, le=100.0)
    nice_to_have_bonus: float | None = Field(default=None, ge=0.0, le=100.0)


class OrchestratorConfig(BaseModel):
    max_workers: int | None = Field(default=None, ge=1)


class AnalyticsSettings(BaseModel):
    strong_threshold: float | None = None
    moderate_threshold: float | None = None
    histogram_bin_width: float | None = Field(default=None, gt=0.0, le=100.0)
    top_skills: int | None = Field(default=None, ge=1)
    top_candidates: int | None = Field(default=None, ge=1)
    candidate_skill_limit: int | None = Field(default=None, ge=0)


class SweepConfig(BaseModel):
    stale_after_seconds: float | None = Field(default=None, gt=0.0)


class AppConfig(BaseModel):
    intake: IntakeConfig = Field(default_factory=IntakeConfig)
    scorer: ScorerSettings = Field(default_factory=ScorerSettings)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    sweep: SweepConfig = Field(default_factory=SweepConfig)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("intake", "scorer", "orchestrator", "analytics", "sweep"):
            values = getattr(self, section).model_dump(exclude_none=True)
            if values:
                settings[section] = values
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
