"""SQLAlchemy adapter package for deppy."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .store import SqlAlchemySettingsStore, StartupError, configured_engine, shutdown, startup

__all__ = [
    "SqlAlchemySettingsStore",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "metadata",
    "shutdown",
    "startup",
]
