"""Client-side polling of a screening job until it reaches a terminal state."""

from __future__ import annotations

import sched
import time
from dataclasses import dataclass
from typing import Callable

import structlog

from .schemas import StatusSnapshot

DEFAULT_MAX_ATTEMPTS = 120
DEFAULT_INTERVAL_SECONDS = 5.0


@dataclass(slots=True)
class PollState:
    job_id: str
    attempts_remaining: int
    last_snapshot: StatusSnapshot | None = None


@dataclass(slots=True)
class Pending:
    snapshot: StatusSnapshot


@dataclass(slots=True)
class Finished:
    snapshot: StatusSnapshot


@dataclass(slots=True)
class Abandoned:
    """Attempts ran out; the server keeps processing the job."""

    last_snapshot: StatusSnapshot | None


PollOutcome = Pending | Finished | Abandoned


class StatusPoller:
    """Poll a status source with a bounded number of attempts.

    ``tick`` performs one attempt; ``run`` drives ticks from a scheduler until a
    terminal snapshot arrives or attempts are exhausted.
    """

    def __init__(
        self,
        fetch: Callable[[str], StatusSnapshot],
        job_id: str,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._fetch = fetch
        self._interval = interval_seconds
        self._state = PollState(job_id=job_id, attempts_remaining=max_attempts)
        self._logger = structlog.get_logger(__name__)

    @property
    def state(self) -> PollState:
        return self._state

    def tick(self) -> PollOutcome:
        state = self._state
        if state.last_snapshot is not None and state.last_snapshot.status.is_terminal:
            return Finished(state.last_snapshot)
        if state.attempts_remaining <= 0:
            return Abandoned(state.last_snapshot)

        snapshot = self._fetch(state.job_id)
        state.attempts_remaining -= 1
        state.last_snapshot = snapshot
        if snapshot.status.is_terminal:
            return Finished(snapshot)
        if state.attempts_remaining <= 0:
            self._logger.warning(
                "poll.abandoned",
                screening_job_id=state.job_id,
                processed_count=snapshot.processed_count,
                total_resumes=snapshot.total_resumes,
            )
            return Abandoned(snapshot)
        return Pending(snapshot)

    def run(self, scheduler: sched.scheduler | None = None) -> PollOutcome:
        scheduler = scheduler or sched.scheduler(time.monotonic, time.sleep)
        outcome: list[PollOutcome] = []

        def step() -> None:
            result = self.tick()
            outcome[:] = [result]
            if isinstance(result, Pending):
                scheduler.enter(self._interval, 1, step)

        scheduler.enter(0, 1, step)
        scheduler.run()
        return outcome[0]
