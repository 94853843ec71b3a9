from __future__ import annotations

from concurrent.futures import Future
from datetime import timedelta

import pytest

from bulkscreening.core import KeywordScorer, MatchResult
from bulkscreening.errors import BatchRejected, JobNotTerminal, UnknownCandidates
from bulkscreening.results import ResultsQuery
from bulkscreening.schemas import JobRequirements, MatchCategory, ResultStatus, ScreeningStatus
from bulkscreening.status import StatusReporter


def test_mixed_batch_completes_with_analytics(make_orchestrator, table_scorer, make_resume, store, aggregator) -> None:
    orchestrator = make_orchestrator(table_scorer({"strong": 80.0, "moderate": 60.0}))
    resumes = [
        make_resume("alice.pdf", "strong"),
        make_resume("bob.pdf", "moderate"),
        make_resume("carol.pdf", "CORRUPT bytes"),
    ]

    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=resumes)

    assert receipt.status is ScreeningStatus.PENDING
    assert receipt.total_resumes == 3

    job = store.get_job(receipt.job_id)
    assert job.status is ScreeningStatus.COMPLETED
    assert job.processed_count == 3
    assert job.completed_at is not None

    results = store.results(receipt.job_id)
    errored = [result for result in results if result.status is ResultStatus.ERROR]
    assert len(errored) == 1
    assert errored[0].filename == "carol.pdf"
    assert "Unreadable resume" in errored[0].error

    report = ResultsQuery(store, aggregator).get_analytics(receipt.job_id)
    assert report.total_candidates == 2
    assert report.errored_count == 1
    assert report.average_match == 70.0
    assert report.match_distribution == {
        MatchCategory.STRONG: 1,
        MatchCategory.MODERATE: 1,
        MatchCategory.WEAK: 0,
    }
    assert [candidate.candidate_name for candidate in report.top_candidates] == ["alice", "bob"]


def test_all_failed_batch_ends_failed(make_orchestrator, make_resume, store, aggregator) -> None:
    orchestrator = make_orchestrator()
    resumes = [make_resume("a.pdf", "CORRUPT"), make_resume("b.pdf", "CORRUPT too")]

    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=resumes)

    job = store.get_job(receipt.job_id)
    assert job.status is ScreeningStatus.FAILED
    assert job.processed_count == 2
    report = ResultsQuery(store, aggregator).get_analytics(receipt.job_id)
    assert report.total_candidates == 0
    assert report.errored_count == 2


def test_rejected_batch_creates_no_job(make_orchestrator, make_resume, store) -> None:
    orchestrator = make_orchestrator()
    resumes = [make_resume(f"r{index}.pdf", "Python") for index in range(501)]

    with pytest.raises(BatchRejected) as excinfo:
        orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=resumes)

    assert excinfo.value.codes == ["BATCH_TOO_LARGE"]
    assert store.jobs() == []


def test_scorer_exception_becomes_error_result(make_orchestrator, make_resume, store) -> None:
    class ExplodingScorer:
        def score(self, resume_text, requirements):
            raise RuntimeError("model offline")

    orchestrator = make_orchestrator(ExplodingScorer())

    receipt = orchestrator.submit_batch(
        employer_id="EMP-1", job_id="JOB-1", resumes=[make_resume("a.pdf", "Python")]
    )

    [result] = store.results(receipt.job_id)
    assert result.status is ResultStatus.ERROR
    assert result.error == "Scoring failed: model offline"
    assert store.get_job(receipt.job_id).status is ScreeningStatus.FAILED


def test_scorer_breaking_its_contract_is_recorded_as_error(make_orchestrator, make_resume, store) -> None:
    class OverlappingScorer:
        def score(self, resume_text, requirements: JobRequirements) -> MatchResult:
            skills = list(requirements.required_skills)
            return MatchResult(match_percentage=90.0, skills_matched=skills, skills_missing=skills[:1])

    orchestrator = make_orchestrator(OverlappingScorer())

    receipt = orchestrator.submit_batch(
        employer_id="EMP-1", job_id="JOB-1", resumes=[make_resume("a.pdf", "Python")]
    )

    [result] = store.results(receipt.job_id)
    assert result.status is ResultStatus.ERROR
    assert "both matched and missing" in result.error
    assert result.scoring_time_ms is not None


@pytest.mark.parametrize(
    "malformed",
    [
        MatchResult(match_percentage=50.0, skills_matched=[1], skills_missing=[]),
        MatchResult(match_percentage="high", skills_matched=[], skills_missing=[]),
        {"match_percentage": 50.0},
        None,
    ],
    ids=["int-skill", "text-percentage", "dict", "none"],
)
def test_malformed_scorer_output_is_isolated(make_orchestrator, make_resume, store, malformed) -> None:
    class FlakyScorer:
        def __init__(self) -> None:
            self._inner = KeywordScorer()

        def score(self, resume_text, requirements):
            if "Broken" in resume_text:
                return malformed
            return self._inner.score(resume_text, requirements)

    orchestrator = make_orchestrator(FlakyScorer())
    resumes = [
        make_resume("a.pdf", "Python\nFastAPI"),
        make_resume("b.pdf", "Broken"),
        make_resume("c.pdf", "Docker"),
    ]

    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=resumes)

    job = store.get_job(receipt.job_id)
    assert job.status is ScreeningStatus.COMPLETED
    assert job.processed_count == 3
    by_file = {result.filename: result for result in store.results(receipt.job_id)}
    assert by_file["b.pdf"].status is ResultStatus.ERROR
    assert by_file["b.pdf"].error
    assert by_file["a.pdf"].status is ResultStatus.COMPLETED
    assert store.get_report(receipt.job_id).errored_count == 1


def test_invalid_result_fields_become_error_result(make_orchestrator, make_resume, store) -> None:
    class OddStrengthsScorer:
        def score(self, resume_text, requirements: JobRequirements) -> MatchResult:
            return MatchResult(
                match_percentage=0.0,
                skills_matched=[],
                skills_missing=list(requirements.required_skills),
                strengths=[{"note": "not text"}],
            )

    orchestrator = make_orchestrator(OddStrengthsScorer())

    receipt = orchestrator.submit_batch(
        employer_id="EMP-1", job_id="JOB-1", resumes=[make_resume("a.pdf", "Python")]
    )

    [result] = store.results(receipt.job_id)
    assert result.status is ResultStatus.ERROR
    assert result.error.startswith("Invalid scorer output")
    assert store.get_job(receipt.job_id).status is ScreeningStatus.FAILED


def test_keyword_scorer_end_to_end(make_orchestrator, make_resume, store) -> None:
    orchestrator = make_orchestrator()
    resumes = [
        make_resume("alice.pdf", "Python\nFastAPI\nPostgreSQL\nDocker", candidate_id="CAND-A"),
        make_resume("bob.pdf", "Python", candidate_id="CAND-B"),
    ]

    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=resumes)

    by_candidate = {result.candidate_id: result for result in store.results(receipt.job_id)}
    assert by_candidate["CAND-A"].match_percentage == 100.0
    assert by_candidate["CAND-B"].match_percentage == 25.0
    assert by_candidate["CAND-B"].skills_missing == ["FastAPI", "PostgreSQL", "Docker"]
    assert all(result.scoring_time_ms is not None for result in by_candidate.values())


def test_status_after_completion(make_orchestrator, table_scorer, make_resume, store) -> None:
    orchestrator = make_orchestrator(table_scorer({"ok": 90.0}))
    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=[make_resume("a.pdf", "ok")])

    snapshot = StatusReporter(store).get_status(receipt.job_id)

    assert snapshot.status is ScreeningStatus.COMPLETED
    assert snapshot.progress == 1.0
    assert snapshot.eta_seconds == 0.0
    assert orchestrator.wait_for(receipt.job_id, timeout=1.0)


def test_shortlist_lifecycle(make_orchestrator, table_scorer, make_resume, store) -> None:
    orchestrator = make_orchestrator(table_scorer({"a": 80.0, "b": 40.0}))
    resumes = [make_resume("a.pdf", "a", candidate_id="CAND-A"), make_resume("b.pdf", "b", candidate_id="CAND-B")]
    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=resumes)

    job = orchestrator.shortlist(receipt.job_id, ["CAND-A", "CAND-B"])
    assert job.shortlisted_candidates == ["CAND-A", "CAND-B"]

    job = orchestrator.unshortlist(receipt.job_id, ["CAND-A"])
    assert job.shortlisted_candidates == ["CAND-B"]

    with pytest.raises(UnknownCandidates):
        orchestrator.shortlist(receipt.job_id, ["CAND-Z"])


def test_shortlist_on_failed_job_is_refused(make_orchestrator, make_resume) -> None:
    orchestrator = make_orchestrator()
    receipt = orchestrator.submit_batch(
        employer_id="EMP-1", job_id="JOB-1", resumes=[make_resume("a.pdf", "CORRUPT", candidate_id="CAND-A")]
    )

    with pytest.raises(JobNotTerminal):
        orchestrator.shortlist(receipt.job_id, ["CAND-A"])


def test_sweep_expires_stale_processing_jobs(
    make_orchestrator, job_requirements, make_resume, store, aggregator, clock
) -> None:
    class NeverExecutor:
        def submit(self, fn, *args, **kwargs):
            return Future()

    orchestrator = make_orchestrator(executor=NeverExecutor())
    receipt = orchestrator.create_job(
        employer_id="EMP-1",
        requirements=job_requirements,
        resumes=[make_resume("a.pdf", "Python"), make_resume("b.pdf", "Docker")],
    )
    assert store.get_job(receipt.job_id).status is ScreeningStatus.PROCESSING

    assert orchestrator.sweep_stale(now=clock.current + timedelta(minutes=5)) == []
    expired = orchestrator.sweep_stale(now=clock.current + timedelta(hours=1))

    assert expired == [receipt.job_id]
    job = store.get_job(receipt.job_id)
    assert job.status is ScreeningStatus.FAILED
    assert job.processed_count == 2
    report = ResultsQuery(store, aggregator).get_analytics(receipt.job_id)
    assert report.errored_count == 2


def test_delete_job_removes_everything(make_orchestrator, table_scorer, make_resume, store) -> None:
    orchestrator = make_orchestrator(table_scorer({"ok": 70.0}))
    receipt = orchestrator.submit_batch(employer_id="EMP-1", job_id="JOB-1", resumes=[make_resume("a.pdf", "ok")])

    orchestrator.delete_job(receipt.job_id)

    assert store.jobs() == []
