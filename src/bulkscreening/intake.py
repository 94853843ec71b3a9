"""Batch intake validation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Sequence

import structlog

from .catalog import JobCatalog
from .errors import BatchRejected
from .schemas import IntakeViolation, JobRequirements, ViolationCode

MEGABYTE = 1024 * 1024


@dataclass(slots=True, frozen=True)
class ResumeFile:
    """An uploaded resume as declared by the submitter."""

    filename: str
    content: bytes
    declared_size: int
    content_type: str
    candidate_id: str | None = None


@dataclass(slots=True)
class ValidatedBatch:
    job: JobRequirements
    resumes: list[ResumeFile]


@dataclass
class IntakeLimits:
    """Admission limits for a batch."""

    max_files: int = 500
    max_file_size_bytes: int = 5 * MEGABYTE
    allowed_content_types: tuple[str, ...] = ("application/pdf",)


class BatchValidator:
    """Check a batch against intake limits, collecting every violation in one pass."""

    def __init__(self, catalog: JobCatalog, *, limits: IntakeLimits | None = None) -> None:
        self._catalog = catalog
        self._limits = limits or IntakeLimits()
        self._logger = structlog.get_logger(__name__)

    def check(
        self,
        *,
        job_id: str,
        resumes: Sequence[ResumeFile],
        employer_id: str | None = None,
    ) -> list[IntakeViolation]:
        _, violations = self._inspect(job_id, resumes, employer_id)
        return violations

    def validate(
        self,
        *,
        job_id: str,
        resumes: Sequence[ResumeFile],
        employer_id: str | None = None,
    ) -> ValidatedBatch:
        job, violations = self._inspect(job_id, resumes, employer_id)
        if job is None or violations:
            self._logger.info(
                "intake.rejected",
                job_id=job_id,
                resume_count=len(resumes),
                codes=[violation.code.value for violation in violations],
            )
            raise BatchRejected(violations)
        return ValidatedBatch(job=job, resumes=list(resumes))

    def _inspect(
        self,
        job_id: str,
        resumes: Sequence[ResumeFile],
        employer_id: str | None,
    ) -> tuple[JobRequirements | None, list[IntakeViolation]]:
        violations: list[IntakeViolation] = []

        job = self._catalog.get(job_id) if job_id else None
        if job is None:
            violations.append(
                IntakeViolation(
                    code=ViolationCode.INVALID_JOB_REFERENCE,
                    message=f"Job {job_id!r} does not exist",
                )
            )
        elif employer_id and job.employer_id and job.employer_id != employer_id:
            violations.append(
                IntakeViolation(
                    code=ViolationCode.INVALID_JOB_REFERENCE,
                    message=f"Job {job_id!r} is not accessible to this employer",
                )
            )

        if not resumes:
            violations.append(
                IntakeViolation(code=ViolationCode.EMPTY_BATCH, message="At least 1 resume required")
            )
        elif len(resumes) > self._limits.max_files:
            violations.append(
                IntakeViolation(
                    code=ViolationCode.BATCH_TOO_LARGE,
                    message=(
                        f"{len(resumes)} resumes submitted, "
                        f"maximum is {self._limits.max_files} per batch"
                    ),
                )
            )

        violations.extend(self._check_files(resumes))
        return job, violations

    def _check_files(self, resumes: Sequence[ResumeFile]) -> list[IntakeViolation]:
        violations: list[IntakeViolation] = []
        allowed = {content_type.lower() for content_type in self._limits.allowed_content_types}
        name_counts = Counter(resume.filename for resume in resumes)
        seen: set[str] = set()

        for index, resume in enumerate(resumes):
            if _base_content_type(resume.content_type) not in allowed:
                violations.append(
                    IntakeViolation(
                        code=ViolationCode.UNSUPPORTED_FILE_TYPE,
                        message=f"{resume.content_type or 'unknown'} is not an accepted document type",
                        index=index,
                        filename=resume.filename,
                    )
                )
            if resume.declared_size > self._limits.max_file_size_bytes:
                violations.append(
                    IntakeViolation(
                        code=ViolationCode.FILE_TOO_LARGE,
                        message=(
                            f"{resume.declared_size} bytes exceeds the "
                            f"{self._limits.max_file_size_bytes} byte limit"
                        ),
                        index=index,
                        filename=resume.filename,
                    )
                )
            if name_counts[resume.filename] > 1 and resume.filename in seen:
                violations.append(
                    IntakeViolation(
                        code=ViolationCode.DUPLICATE_FILE,
                        message=f"{resume.filename} appears more than once in the batch",
                        index=index,
                        filename=resume.filename,
                    )
                )
            seen.add(resume.filename)
        return violations


def _base_content_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()
