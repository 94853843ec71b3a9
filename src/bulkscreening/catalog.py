"""Resolution of job references to requirement sets."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from .schemas import JobRequirements


@runtime_checkable
class JobCatalog(Protocol):
    """Lookup of job postings owned outside the screening service."""

    def get(self, job_id: str) -> JobRequirements | None:
        """Return the requirements of ``job_id`` or None when it does not exist."""


class InMemoryJobCatalog:
    """Job catalog held in process memory."""

    def __init__(self, jobs: Iterable[JobRequirements] = ()):
        self._jobs = {job.job_id: job for job in jobs}
        self._lock = threading.Lock()

    def add(self, job: JobRequirements) -> None:
        with self._lock:
            self._jobs[job.job_id] = job

    def get(self, job_id: str) -> JobRequirements | None:
        with self._lock:
            return self._jobs.get(job_id)

    def job_ids(self) -> list[str]:
        with self._lock:
            return list(self._jobs.keys())


class JobLoader:
    """Load job requirement documents from JSON."""

    def load(self, path: Path) -> list[JobRequirements]:
        """Load a single job object or a list of them."""
        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid job JSON: {exc}") from exc
        if isinstance(data, list):
            return [JobRequirements.model_validate(item) for item in data]
        return [JobRequirements.model_validate(data)]
