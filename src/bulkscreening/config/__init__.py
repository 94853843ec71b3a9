"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..schemas.config import AppConfig, load_config


class ConfigManager:
    """Simple YAML-backed configuration loader."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> dict[str, Any]:
        """Load a YAML configuration by name without file extension."""
        return read_yaml(self._base_path / f"{name}.yaml")

    def settings(self, name: str) -> dict[str, Any]:
        """Load, validate and flatten a configuration into container settings."""
        return load_config(self.load(name)).to_settings()


def read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must be a YAML mapping: {path}")
    return loaded


__all__ = ["AppConfig", "ConfigManager", "read_yaml"]
