from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from bulkscreening.config import ConfigManager, read_yaml
from bulkscreening.container import create_container
from bulkscreening.schemas.config import AppConfig, load_config


def test_default_container_wiring() -> None:
    container = create_container()
    orchestrator = container.orchestrator()
    try:
        assert orchestrator._stale_after_seconds == 1800.0
        assert orchestrator._executor._max_workers == 5
        assert container.validator()._limits.max_files == 500
        assert container.store() is container.store()
        assert container.results_query()._store is container.store()
    finally:
        orchestrator.close()


def test_create_container_with_overrides() -> None:
    container = create_container(
        settings={
            "intake": {"max_files": 10, "allowed_content_types": ["application/pdf", "application/x-pdf"]},
            "scorer": {"min_similarity": 90.0},
            "orchestrator": {"max_workers": 3},
            "analytics": {"strong_threshold": 80.0, "top_candidates": 3},
            "sweep": {"stale_after_seconds": 600.0},
        }
    )
    orchestrator = container.orchestrator()
    try:
        limits = container.validator()._limits
        assert limits.max_files == 10
        assert limits.allowed_content_types == ("application/pdf", "application/x-pdf")
        assert container.scorer()._config.min_similarity == 90.0
        assert container.aggregator()._config.strong_threshold == 80.0
        assert container.aggregator()._config.top_candidates == 3
        assert orchestrator._executor._max_workers == 3
        assert orchestrator._stale_after_seconds == 600.0
        assert orchestrator._validator is container.validator()
    finally:
        orchestrator.close()


def test_load_config_validation() -> None:
    data = {
        "intake": {"max_file_size_bytes": 1024},
        "analytics": {"histogram_bin_width": 20},
    }
    app_config = load_config(data)
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings == {
        "intake": {"max_file_size_bytes": 1024},
        "analytics": {"histogram_bin_width": 20.0},
    }


def test_load_config_rejects_bad_values() -> None:
    with pytest.raises(ValidationError):
        load_config({"orchestrator": {"max_workers": 0}})
    with pytest.raises(ValidationError):
        load_config(["not", "a", "mapping"])
    assert load_config(None).to_settings() == {}


def test_config_manager_reads_yaml(tmp_path: Path) -> None:
    (tmp_path / "screening.yaml").write_text(
        "orchestrator:\n  max_workers: 2\nsweep:\n  stale_after_seconds: 120\n",
        encoding="utf-8",
    )
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    (tmp_path / "list.yaml").write_text("- 1\n- 2\n", encoding="utf-8")
    manager = ConfigManager(tmp_path)

    assert manager.settings("screening") == {
        "orchestrator": {"max_workers": 2},
        "sweep": {"stale_after_seconds": 120.0},
    }
    assert manager.load("empty") == {}
    with pytest.raises(ValueError):
        read_yaml(tmp_path / "list.yaml")
