"""Read paths over screening results: analytics and result listings."""

from __future__ import annotations

import math

import structlog

from .core import AnalyticsAggregator, rank_results
from .errors import JobNotTerminal
from .schemas import (
    AnalyticsReport,
    MatchCategory,
    ResultFilters,
    ResultPage,
    ResultStatus,
    ResultSummary,
    ResultView,
)
from .store import ScreeningStore


class ResultsQuery:
    """Serve analytics reports and filtered result pages."""

    def __init__(self, store: ScreeningStore, aggregator: AnalyticsAggregator) -> None:
        self._store = store
        self._aggregator = aggregator
        self._logger = structlog.get_logger(__name__)

    def get_analytics(self, job_id: str) -> AnalyticsReport:
        job = self._store.get_job(job_id)
        if not job.status.is_terminal:
            raise JobNotTerminal(job_id, job.status)

        cached = self._store.get_report(job_id)
        if cached is not None:
            return cached

        # Finalization caches the report; this covers a read racing that write.
        report = self._aggregator.aggregate(job, self._store.results(job_id))
        self._store.save_report(job_id, report)
        self._logger.debug("analytics.recomputed", screening_job_id=job_id)
        return report

    def views(self, job_id: str) -> list[ResultView]:
        """All results of a job with rank, category and shortlist flag, in commit order."""
        job = self._store.get_job(job_id)
        results = self._store.results(job_id)
        ranks = {result.id: position for position, result in enumerate(rank_results(results), start=1)}
        shortlisted = set(job.shortlisted_candidates)

        views: list[ResultView] = []
        for result in results:
            scored = result.status is ResultStatus.COMPLETED
            views.append(
                ResultView(
                    **result.model_dump(),
                    rank=ranks.get(result.id),
                    category=self._aggregator.categorize(result.match_percentage) if scored else None,
                    shortlisted=result.candidate_id in shortlisted,
                )
            )
        return views

    def list_results(self, job_id: str, filters: ResultFilters | None = None) -> ResultPage:
        filters = filters or ResultFilters()
        selected = [view for view in self.views(job_id) if _matches(view, filters)]
        selected.sort(key=_sort_key(filters.sort_by), reverse=filters.sort_order == "desc")

        total = len(selected)
        start = (filters.page - 1) * filters.page_size
        page = selected[start : start + filters.page_size]

        return ResultPage(
            screening_job_id=job_id,
            total_results=total,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=max(1, math.ceil(total / filters.page_size)),
            results=page,
            summary=_summarize(selected),
        )


def _matches(view: ResultView, filters: ResultFilters) -> bool:
    if filters.status is not None and view.status is not filters.status:
        return False
    if filters.category is not None and view.category is not filters.category:
        return False
    if filters.shortlisted_only and not view.shortlisted:
        return False
    if filters.min_match > 0 or filters.max_match < 100:
        if view.status is not ResultStatus.COMPLETED:
            return False
        return filters.min_match <= view.match_percentage <= filters.max_match
    return True


def _sort_key(sort_by: str):
    if sort_by == "match":
        return lambda view: view.match_percentage
    if sort_by == "name":
        return lambda view: view.candidate_name.lower()
    if sort_by == "created":
        return lambda view: view.created_at
    # Unranked (errored) results go after every ranked one.
    return lambda view: (view.rank is None, view.rank or 0)


def _summarize(views: list[ResultView]) -> ResultSummary:
    scored = [view for view in views if view.status is ResultStatus.COMPLETED]
    categories = [view.category for view in scored]
    return ResultSummary(
        strong_matches=categories.count(MatchCategory.STRONG),
        moderate_matches=categories.count(MatchCategory.MODERATE),
        weak_matches=categories.count(MatchCategory.WEAK),
        average_score=round(sum(view.match_percentage for view in scored) / len(scored), 2)
        if scored
        else 0.0,
    )
