"""Progress snapshots for polling clients."""

from __future__ import annotations

from .schemas import ScreeningJob, ScreeningStatus, StatusSnapshot
from .store import ScreeningStore

_MESSAGES: dict[ScreeningStatus, str] = {
    ScreeningStatus.PENDING: "queued",
    ScreeningStatus.PROCESSING: "processing",
    ScreeningStatus.COMPLETED: "completed",
    ScreeningStatus.FAILED: "failed",
}


class StatusReporter:
    """Serve read-only progress snapshots.

    Every derived field is computed from committed job data only, so polling
    at any rate returns the same snapshot until new progress is recorded.
    """

    def __init__(self, store: ScreeningStore) -> None:
        self._store = store

    def get_status(self, job_id: str) -> StatusSnapshot:
        job = self._store.get_job(job_id)
        return StatusSnapshot(
            id=job.id,
            job_id=job.job_id,
            status=job.status,
            total_resumes=job.total_resumes,
            processed_count=job.processed_count,
            progress=round(job.processed_count / job.total_resumes, 4),
            message=_MESSAGES[job.status],
            eta_seconds=self._eta_seconds(job),
            created_at=job.created_at,
            updated_at=job.updated_at,
        )

    @staticmethod
    def _eta_seconds(job: ScreeningJob) -> float | None:
        if job.status.is_terminal:
            return 0.0
        if job.processed_count == 0:
            return None
        elapsed = max(0.0, (job.updated_at - job.created_at).total_seconds())
        remaining = job.total_resumes - job.processed_count
        return round(elapsed / job.processed_count * remaining, 1)
