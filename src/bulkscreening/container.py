"""Dependency injection container for the screening service."""

from __future__ import annotations

from dependency_injector import containers, providers

from .catalog import InMemoryJobCatalog
from .core import AnalyticsAggregator, AnalyticsConfig, KeywordScorer, ScorerConfig
from .intake import BatchValidator, IntakeLimits
from .orchestrator import ScreeningOrchestrator
from .results import ResultsQuery
from .status import StatusReporter
from .store import ScreeningStore


class ScreeningContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    job_catalog = providers.Singleton(InMemoryJobCatalog)
    store = providers.Singleton(ScreeningStore)

    scorer = providers.Singleton(KeywordScorer)
    aggregator = providers.Singleton(AnalyticsAggregator)
    validator = providers.Singleton(BatchValidator, catalog=job_catalog)

    orchestrator = providers.Singleton(
        ScreeningOrchestrator,
        scorer=scorer,
        store=store,
        aggregator=aggregator,
        validator=validator,
        max_workers=config.orchestrator.max_workers,
        stale_after_seconds=config.sweep.stale_after_seconds,
    )

    status_reporter = providers.Singleton(StatusReporter, store=store)
    results_query = providers.Singleton(ResultsQuery, store=store, aggregator=aggregator)


def create_container(*, settings: dict | None = None) -> ScreeningContainer:
    """Instantiate container with optional overrides."""

    container = ScreeningContainer()

    if not settings:
        return container

    container.config.from_dict(
        {
            "orchestrator": settings.get("orchestrator", {}),
            "sweep": settings.get("sweep", {}),
        }
    )

    if "intake" in settings:
        intake = dict(settings["intake"])
        if "allowed_content_types" in intake:
            intake["allowed_content_types"] = tuple(intake["allowed_content_types"])
        container.validator.override(
            providers.Singleton(
                BatchValidator,
                catalog=container.job_catalog,
                limits=IntakeLimits(**intake),
            )
        )

    if "scorer" in settings:
        scorer_config = ScorerConfig(**settings["scorer"])
        container.scorer.override(providers.Singleton(KeywordScorer, config=scorer_config))

    if "analytics" in settings:
        analytics_config = AnalyticsConfig(**settings["analytics"])
        container.aggregator.override(
            providers.Singleton(AnalyticsAggregator, config=analytics_config)
        )

    return container
