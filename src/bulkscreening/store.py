"""Thread-safe in-memory storage for screening jobs, results and reports."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Literal, Sequence

from .errors import InvalidTransition, JobNotFound, JobNotTerminal, UnknownCandidates
from .schemas import (
    AnalyticsReport,
    ResultStatus,
    ScreeningJob,
    ScreeningResult,
    ScreeningStatus,
)

_ALLOWED_TRANSITIONS: dict[ScreeningStatus, set[ScreeningStatus]] = {
    ScreeningStatus.PENDING: {ScreeningStatus.PROCESSING},
    ScreeningStatus.PROCESSING: {ScreeningStatus.COMPLETED, ScreeningStatus.FAILED},
    ScreeningStatus.COMPLETED: set(),
    ScreeningStatus.FAILED: set(),
}


@dataclass(slots=True, frozen=True)
class ResumeSlot:
    """Identity of one resume admitted into a job."""

    resume_id: str
    candidate_id: str
    candidate_name: str
    filename: str


class ScreeningStore:
    """Holds every job with its result set behind a single lock.

    Readers receive deep copies, so a snapshot never changes after it is returned.
    Only ``record_result`` and ``expire`` advance ``processed_count``, and each
    resume is counted once.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._jobs: dict[str, ScreeningJob] = {}
        self._slots: dict[str, dict[str, ResumeSlot]] = {}
        self._results: dict[str, list[ScreeningResult]] = {}
        self._recorded: dict[str, set[str]] = {}
        self._reports: dict[str, AnalyticsReport] = {}

    def create_job(self, job: ScreeningJob, slots: Sequence[ResumeSlot]) -> ScreeningJob:
        if len(slots) != job.total_resumes:
            raise ValueError("One resume slot is required per resume.")
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"Duplicate screening job id: {job.id!r}")
            self._jobs[job.id] = job.model_copy(deep=True)
            self._slots[job.id] = {slot.resume_id: slot for slot in slots}
            self._results[job.id] = []
            self._recorded[job.id] = set()
            return job.model_copy(deep=True)

    def get_job(self, job_id: str) -> ScreeningJob:
        with self._lock:
            return self._require(job_id).model_copy(deep=True)

    def jobs(self, status: ScreeningStatus | None = None) -> list[ScreeningJob]:
        with self._lock:
            return [
                job.model_copy(deep=True)
                for job in self._jobs.values()
                if status is None or job.status is status
            ]

    def results(self, job_id: str) -> list[ScreeningResult]:
        """Return the job's results in commit order."""
        with self._lock:
            self._require(job_id)
            return [result.model_copy(deep=True) for result in self._results[job_id]]

    def slots(self, job_id: str) -> list[ResumeSlot]:
        with self._lock:
            self._require(job_id)
            return list(self._slots[job_id].values())

    def transition(
        self,
        job_id: str,
        target: ScreeningStatus,
        *,
        at: datetime,
    ) -> ScreeningJob:
        with self._lock:
            job = self._require(job_id)
            if target not in _ALLOWED_TRANSITIONS[job.status]:
                raise InvalidTransition(job_id, job.status, target)
            if target.is_terminal and job.processed_count != job.total_resumes:
                raise InvalidTransition(job_id, job.status, target)
            job.status = target
            job.updated_at = at
            if target.is_terminal:
                job.completed_at = at
            return job.model_copy(deep=True)

    def record_result(self, result: ScreeningResult, *, at: datetime) -> ScreeningJob | None:
        """Append a result and advance progress atomically.

        Returns the job as of this write, or None when the write was dropped
        (unknown job, job no longer processing, unknown or already recorded resume).
        """
        with self._lock:
            job = self._jobs.get(result.screening_job_id)
            if job is None or job.status is not ScreeningStatus.PROCESSING:
                return None
            if result.resume_id not in self._slots[job.id]:
                return None
            if result.resume_id in self._recorded[job.id]:
                return None
            self._results[job.id].append(result.model_copy(deep=True))
            self._recorded[job.id].add(result.resume_id)
            job.processed_count += 1
            job.updated_at = at
            return job.model_copy(deep=True)

    def finalize(
        self,
        job_id: str,
        target: ScreeningStatus,
        *,
        at: datetime,
    ) -> ScreeningJob | None:
        """Move a fully processed job to ``target``; only the first caller succeeds."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status is not ScreeningStatus.PROCESSING:
                return None
            if job.processed_count != job.total_resumes:
                return None
            return self.transition(job_id, target, at=at)

    def expire(self, job_id: str, *, reason: str, at: datetime) -> ScreeningJob | None:
        """Close a processing job, recording every unprocessed resume as an error.

        The job then follows the completion rule: COMPLETED when any result
        succeeded, FAILED otherwise.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status is not ScreeningStatus.PROCESSING:
                return None
            recorded = self._recorded[job_id]
            for slot in self._slots[job_id].values():
                if slot.resume_id in recorded:
                    continue
                self._results[job_id].append(
                    ScreeningResult(
                        id=str(uuid.uuid4()),
                        screening_job_id=job_id,
                        resume_id=slot.resume_id,
                        candidate_id=slot.candidate_id,
                        candidate_name=slot.candidate_name,
                        filename=slot.filename,
                        status=ResultStatus.ERROR,
                        error=reason,
                        created_at=at,
                    )
                )
                recorded.add(slot.resume_id)
                job.processed_count += 1
            succeeded = any(
                result.status is ResultStatus.COMPLETED for result in self._results[job_id]
            )
            target = ScreeningStatus.COMPLETED if succeeded else ScreeningStatus.FAILED
            return self.transition(job_id, target, at=at)

    def save_report(self, job_id: str, report: AnalyticsReport) -> None:
        with self._lock:
            job = self._require(job_id)
            if not job.status.is_terminal:
                raise JobNotTerminal(job_id, job.status)
            self._reports[job_id] = report.model_copy(deep=True)

    def get_report(self, job_id: str) -> AnalyticsReport | None:
        with self._lock:
            self._require(job_id)
            report = self._reports.get(job_id)
            return report.model_copy(deep=True) if report else None

    def update_shortlist(
        self,
        job_id: str,
        candidate_ids: Iterable[str],
        *,
        action: Literal["add", "remove"] = "add",
        at: datetime,
    ) -> ScreeningJob:
        with self._lock:
            job = self._require(job_id)
            if job.status is not ScreeningStatus.COMPLETED:
                raise JobNotTerminal(job_id, job.status)
            requested = list(dict.fromkeys(candidate_ids))
            known = {result.candidate_id for result in self._results[job_id]}
            unknown = [candidate_id for candidate_id in requested if candidate_id not in known]
            if unknown:
                raise UnknownCandidates(job_id, unknown)

            if action == "add":
                current = job.shortlisted_candidates
                job.shortlisted_candidates = current + [
                    candidate_id for candidate_id in requested if candidate_id not in current
                ]
            else:
                removed = set(requested)
                job.shortlisted_candidates = [
                    candidate_id
                    for candidate_id in job.shortlisted_candidates
                    if candidate_id not in removed
                ]
            job.updated_at = at
            return job.model_copy(deep=True)

    def delete_job(self, job_id: str) -> None:
        with self._lock:
            job = self._require(job_id)
            if not job.status.is_terminal:
                raise JobNotTerminal(job_id, job.status)
            del self._jobs[job_id]
            del self._slots[job_id]
            del self._results[job_id]
            del self._recorded[job_id]
            self._reports.pop(job_id, None)

    def _require(self, job_id: str) -> ScreeningJob:
        try:
            return self._jobs[job_id]
        except KeyError as exc:
            raise JobNotFound(job_id) from exc
