"""Screening job orchestration: admission, dispatch, progress and finalization."""

from __future__ import annotations

import threading
import time
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Callable, Literal, Sequence

import structlog

from .core import AnalyticsAggregator, MatchResult, Scorer
from .errors import ScorerContractError
from .intake import BatchValidator, ResumeFile
from .pdf_utils import extract_text
from .schemas import (
    JobRequirements,
    ResultStatus,
    ScreeningJob,
    ScreeningResult,
    ScreeningStatus,
    SubmissionReceipt,
)
from .store import ResumeSlot, ScreeningStore

Clock = Callable[[], datetime]
Extractor = Callable[[bytes], str]

DEFAULT_MAX_WORKERS = 5
DEFAULT_STALE_AFTER_SECONDS = 1800.0


@dataclass(slots=True)
class ScoredItem:
    """A resume that was read and scored."""

    match: MatchResult
    scoring_time_ms: float


@dataclass(slots=True)
class FailedItem:
    """A resume that could not be read or scored."""

    error: str
    scoring_time_ms: float | None = None


ItemOutcome = ScoredItem | FailedItem


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScreeningOrchestrator:
    """Owns the lifecycle of screening jobs.

    Each resume is an independent unit of work on a bounded pool. A failing
    resume becomes an ERROR result and still counts as processed. The worker
    whose write completes the batch finalizes the job and computes analytics;
    the store's compare-and-set guarantees that happens once.
    """

    def __init__(
        self,
        *,
        scorer: Scorer,
        store: ScreeningStore,
        aggregator: AnalyticsAggregator,
        validator: BatchValidator,
        extractor: Extractor | None = None,
        max_workers: int | None = None,
        executor: Executor | None = None,
        stale_after_seconds: float | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._scorer = scorer
        self._store = store
        self._aggregator = aggregator
        self._validator = validator
        self._extractor = extractor or extract_text
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers or DEFAULT_MAX_WORKERS,
            thread_name_prefix="screening",
        )
        self._stale_after_seconds = stale_after_seconds or DEFAULT_STALE_AFTER_SECONDS
        self._clock = clock or utc_now
        self._pending: dict[str, list[Future]] = {}
        self._pending_lock = threading.Lock()
        self._logger = structlog.get_logger(__name__)

    def submit_batch(
        self,
        *,
        employer_id: str,
        job_id: str,
        resumes: Sequence[ResumeFile],
    ) -> SubmissionReceipt:
        """Validate a batch and start screening it; raises BatchRejected on intake errors."""
        batch = self._validator.validate(job_id=job_id, resumes=resumes, employer_id=employer_id)
        return self.create_job(employer_id=employer_id, requirements=batch.job, resumes=batch.resumes)

    def create_job(
        self,
        *,
        employer_id: str,
        requirements: JobRequirements,
        resumes: Sequence[ResumeFile],
    ) -> SubmissionReceipt:
        now = self._clock()
        job = ScreeningJob(
            id=str(uuid.uuid4()),
            employer_id=employer_id,
            job_id=requirements.job_id,
            total_resumes=len(resumes),
            created_at=now,
            updated_at=now,
        )
        slots = [
            ResumeSlot(
                resume_id=str(uuid.uuid4()),
                candidate_id=resume.candidate_id or str(uuid.uuid4()),
                candidate_name=PurePath(resume.filename).stem,
                filename=resume.filename,
            )
            for resume in resumes
        ]
        created = self._store.create_job(job, slots)
        receipt = SubmissionReceipt(
            job_id=created.id,
            status=created.status,
            total_resumes=created.total_resumes,
        )
        self._logger.info(
            "screening.job_created",
            screening_job_id=created.id,
            job_id=created.job_id,
            employer_id=employer_id,
            total_resumes=created.total_resumes,
        )

        self._store.transition(created.id, ScreeningStatus.PROCESSING, at=self._clock())
        futures: list[Future] = []
        with self._pending_lock:
            self._pending[created.id] = futures
        for slot, resume in zip(slots, resumes):
            future = self._executor.submit(self._process, created.id, requirements, slot, resume.content)
            future.add_done_callback(self._report_crash)
            futures.append(future)
        return receipt

    def wait_for(self, job_id: str, timeout: float | None = None) -> bool:
        """Block until every dispatched resume of ``job_id`` has been handled."""
        with self._pending_lock:
            futures = list(self._pending.get(job_id, []))
        _, not_done = wait(futures, timeout=timeout)
        if not_done:
            return False
        self._release(job_id)
        return True

    def shortlist(
        self,
        job_id: str,
        candidate_ids: Sequence[str],
        *,
        action: Literal["add", "remove"] = "add",
    ) -> ScreeningJob:
        job = self._store.update_shortlist(job_id, candidate_ids, action=action, at=self._clock())
        self._logger.info(
            "screening.shortlist_updated",
            screening_job_id=job_id,
            action=action,
            candidate_count=len(candidate_ids),
            shortlisted=len(job.shortlisted_candidates),
        )
        return job

    def unshortlist(self, job_id: str, candidate_ids: Sequence[str]) -> ScreeningJob:
        return self.shortlist(job_id, candidate_ids, action="remove")

    def delete_job(self, job_id: str) -> None:
        self._store.delete_job(job_id)
        self._release(job_id)
        self._logger.info("screening.job_deleted", screening_job_id=job_id)

    def sweep_stale(self, now: datetime | None = None) -> list[str]:
        """Close jobs stuck in PROCESSING beyond the staleness deadline."""
        now = now or self._clock()
        expired: list[str] = []
        for job in self._store.jobs(ScreeningStatus.PROCESSING):
            age = (now - job.created_at).total_seconds()
            if age <= self._stale_after_seconds:
                continue
            finished = self._store.expire(job.id, reason="Processing timed out", at=now)
            if finished is None:
                continue
            self._store.save_report(job.id, self._aggregator.aggregate(finished, self._store.results(job.id)))
            self._logger.warning(
                "sweep.job_expired",
                screening_job_id=job.id,
                age_seconds=age,
                status=finished.status.value,
                total_resumes=finished.total_resumes,
            )
            self._release(job.id)
            expired.append(job.id)
        return expired

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _process(
        self,
        job_id: str,
        requirements: JobRequirements,
        slot: ResumeSlot,
        content: bytes,
    ) -> None:
        outcome = self._screen(requirements, content)
        try:
            result = self._build_result(job_id, slot, outcome)
        except Exception as exc:  # noqa: BLE001
            outcome = FailedItem(
                error=f"Invalid scorer output: {exc}",
                scoring_time_ms=outcome.scoring_time_ms,
            )
            result = self._build_result(job_id, slot, outcome)
        job = self._store.record_result(result, at=self._clock())
        if job is None:
            self._logger.info(
                "screening.item_dropped",
                screening_job_id=job_id,
                resume_id=slot.resume_id,
            )
            return

        if isinstance(outcome, FailedItem):
            self._logger.warning(
                "screening.item_failed",
                screening_job_id=job_id,
                resume_id=slot.resume_id,
                filename=slot.filename,
                error=outcome.error,
            )
        else:
            self._logger.debug(
                "screening.item_scored",
                screening_job_id=job_id,
                resume_id=slot.resume_id,
                match_percentage=result.match_percentage,
                processed_count=job.processed_count,
            )

        if job.processed_count == job.total_resumes:
            self._finalize(job_id)
            self._release(job_id)

    def _screen(self, requirements: JobRequirements, content: bytes) -> ItemOutcome:
        try:
            text = self._extractor(content)
        except Exception as exc:  # noqa: BLE001
            return FailedItem(error=f"Unreadable resume: {exc}")

        started = time.perf_counter()
        try:
            match = self._scorer.score(text, requirements)
        except Exception as exc:  # noqa: BLE001
            return FailedItem(error=f"Scoring failed: {exc}")
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        try:
            _check_contract(match, requirements)
        except ScorerContractError as exc:
            return FailedItem(error=str(exc), scoring_time_ms=elapsed_ms)
        return ScoredItem(match=match, scoring_time_ms=elapsed_ms)

    def _build_result(self, job_id: str, slot: ResumeSlot, outcome: ItemOutcome) -> ScreeningResult:
        base = {
            "id": str(uuid.uuid4()),
            "screening_job_id": job_id,
            "resume_id": slot.resume_id,
            "candidate_id": slot.candidate_id,
            "candidate_name": slot.candidate_name,
            "filename": slot.filename,
            "scoring_time_ms": outcome.scoring_time_ms,
            "created_at": self._clock(),
        }
        if isinstance(outcome, ScoredItem):
            match = outcome.match
            return ScreeningResult(
                **base,
                status=ResultStatus.COMPLETED,
                match_percentage=match.match_percentage,
                skills_matched=list(match.skills_matched),
                skills_missing=list(match.skills_missing),
                strengths=list(match.strengths),
                improvement_areas=list(match.improvement_areas),
                recommendations=list(match.recommendations),
            )
        return ScreeningResult(**base, status=ResultStatus.ERROR, error=outcome.error)

    def _finalize(self, job_id: str) -> None:
        results = self._store.results(job_id)
        succeeded = any(result.status is ResultStatus.COMPLETED for result in results)
        target = ScreeningStatus.COMPLETED if succeeded else ScreeningStatus.FAILED
        job = self._store.finalize(job_id, target, at=self._clock())
        if job is None:
            return

        report = self._aggregator.aggregate(job, results)
        self._store.save_report(job_id, report)
        self._logger.info(
            "screening.job_finalized",
            screening_job_id=job_id,
            status=job.status.value,
            total_resumes=job.total_resumes,
            errored=report.errored_count,
            average_match=report.average_match,
        )

    def _release(self, job_id: str) -> None:
        with self._pending_lock:
            self._pending.pop(job_id, None)

    def _report_crash(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._logger.error(
                "screening.worker_crashed",
                error=str(exc),
                exc_info=(type(exc), exc, exc.__traceback__),
            )


def _check_contract(match: MatchResult, requirements: JobRequirements) -> None:
    try:
        _check_match(match, requirements)
    except (AttributeError, TypeError) as exc:
        raise ScorerContractError(f"Malformed scorer output: {exc}") from exc


def _check_match(match: MatchResult, requirements: JobRequirements) -> None:
    if not 0.0 <= match.match_percentage <= 100.0:
        raise ScorerContractError(
            f"Match percentage {match.match_percentage} outside [0, 100]"
        )
    matched = {skill.lower() for skill in match.skills_matched}
    missing = {skill.lower() for skill in match.skills_missing}
    overlap = matched & missing
    if overlap:
        raise ScorerContractError(f"Skills both matched and missing: {sorted(overlap)}")
    required = {skill.strip().lower() for skill in requirements.required_skills if skill.strip()}
    if matched | missing != required:
        raise ScorerContractError("Matched and missing skills do not cover the required skills")
