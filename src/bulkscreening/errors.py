"""Exception taxonomy of the screening service."""

from __future__ import annotations

from typing import Sequence

from .schemas import IntakeViolation, ScreeningStatus


class ScreeningError(Exception):
    """Base class for every error raised by the screening service."""


class BatchRejected(ScreeningError):
    """Raised when a batch fails intake validation; carries every violation found."""

    def __init__(self, violations: Sequence[IntakeViolation]):
        super().__init__("Batch rejected at intake")
        self.violations = list(violations)

    @property
    def codes(self) -> list[str]:
        return [violation.code.value for violation in self.violations]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Batch rejected at intake: {self.codes}"


class JobNotFound(ScreeningError):
    def __init__(self, job_id: str):
        super().__init__(f"Screening job not found: {job_id!r}")
        self.job_id = job_id


class JobNotTerminal(ScreeningError):
    def __init__(self, job_id: str, status: ScreeningStatus):
        super().__init__(f"Screening job {job_id!r} is {status.value}, not completed")
        self.job_id = job_id
        self.status = status


class UnknownCandidates(ScreeningError):
    def __init__(self, job_id: str, candidate_ids: Sequence[str]):
        super().__init__(
            f"Candidates not part of screening job {job_id!r}: {list(candidate_ids)}"
        )
        self.job_id = job_id
        self.candidate_ids = list(candidate_ids)


class InvalidTransition(ScreeningError):
    def __init__(self, job_id: str, current: ScreeningStatus, target: ScreeningStatus):
        super().__init__(
            f"Screening job {job_id!r} cannot move from {current.value} to {target.value}"
        )
        self.job_id = job_id
        self.current = current
        self.target = target


class ResumeParseError(ScreeningError):
    """Raised when a resume document yields no readable text."""


class ScorerContractError(ScreeningError):
    """Raised when a scorer returns a result outside its contract."""


__all__ = [
    "BatchRejected",
    "InvalidTransition",
    "JobNotFound",
    "JobNotTerminal",
    "ResumeParseError",
    "ScorerContractError",
    "ScreeningError",
    "UnknownCandidates",
]
