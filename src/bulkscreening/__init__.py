"""Bulk resume screening: intake, orchestration, progress and analytics."""

__version__ = "0.1.0"
