from __future__ import annotations

from concurrent.futures import Executor, Future
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

import pytest
import structlog

from bulkscreening.catalog import InMemoryJobCatalog
from bulkscreening.core import AnalyticsAggregator, KeywordScorer, MatchResult
from bulkscreening.errors import ResumeParseError
from bulkscreening.intake import BatchValidator, ResumeFile
from bulkscreening.orchestrator import ScreeningOrchestrator
from bulkscreening.schemas import JobRequirements
from bulkscreening.store import ScreeningStore

START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


class ImmediateExecutor(Executor):
    """Run submitted work inline so orchestration is deterministic."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:  # noqa: BLE001
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future


class SteppingClock:
    """Clock advancing one second on every read."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self._step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + self._step
        return value


class TableScorer:
    """Scorer returning a fixed percentage per resume text.

    Required skills count as matched when the percentage is at least 50.
    """

    def __init__(self, table: dict[str, float]) -> None:
        self._table = table

    def score(self, resume_text: str, requirements: JobRequirements) -> MatchResult:
        percentage = self._table[resume_text]
        skills = list(requirements.required_skills)
        matched = skills if percentage >= 50 else []
        missing = [] if percentage >= 50 else skills
        return MatchResult(
            match_percentage=percentage,
            skills_matched=matched,
            skills_missing=missing,
        )


def fake_extract(content: bytes) -> str:
    text = content.decode("utf-8")
    if text.startswith("CORRUPT"):
        raise ResumeParseError("No readable text found in PDF")
    return text


@pytest.fixture
def job_requirements() -> JobRequirements:
    return JobRequirements(
        job_id="JOB-1",
        employer_id="EMP-1",
        title="Backend Engineer",
        required_skills=["Python", "FastAPI", "PostgreSQL", "Docker"],
        nice_to_have_skills=["Kubernetes"],
    )


@pytest.fixture
def catalog(job_requirements: JobRequirements) -> InMemoryJobCatalog:
    return InMemoryJobCatalog([job_requirements])


@pytest.fixture
def store() -> ScreeningStore:
    return ScreeningStore()


@pytest.fixture
def aggregator() -> AnalyticsAggregator:
    return AnalyticsAggregator()


@pytest.fixture
def validator(catalog: InMemoryJobCatalog) -> BatchValidator:
    return BatchValidator(catalog)


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def make_resume() -> Callable[..., ResumeFile]:
    def factory(
        filename: str,
        text: str = "",
        *,
        content_type: str = "application/pdf",
        declared_size: int | None = None,
        candidate_id: str | None = None,
    ) -> ResumeFile:
        content = text.encode("utf-8")
        return ResumeFile(
            filename=filename,
            content=content,
            declared_size=len(content) if declared_size is None else declared_size,
            content_type=content_type,
            candidate_id=candidate_id,
        )

    return factory


@pytest.fixture
def make_orchestrator(
    store: ScreeningStore,
    aggregator: AnalyticsAggregator,
    validator: BatchValidator,
    clock: SteppingClock,
) -> Iterator[Callable[..., ScreeningOrchestrator]]:
    created: list[ScreeningOrchestrator] = []

    def factory(
        scorer=None,
        *,
        executor: Executor | None = None,
        max_workers: int | None = None,
        extractor=fake_extract,
    ) -> ScreeningOrchestrator:
        orchestrator = ScreeningOrchestrator(
            scorer=scorer or KeywordScorer(),
            store=store,
            aggregator=aggregator,
            validator=validator,
            extractor=extractor,
            max_workers=max_workers,
            executor=executor if executor is not None or max_workers else ImmediateExecutor(),
            clock=clock,
        )
        created.append(orchestrator)
        return orchestrator

    yield factory
    for orchestrator in created:
        orchestrator.close()


@pytest.fixture
def table_scorer() -> type[TableScorer]:
    return TableScorer


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def extractor() -> Callable[[bytes], str]:
    return fake_extract


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
