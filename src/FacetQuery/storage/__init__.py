"""Storage layer for FacetQuery.

Provides the persistence port and its memory, JSON-file and SQLite
implementations.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from FacetQuery.storage.base import (
    HISTORY_KEY,
    PATTERNS_KEY,
    TEMPLATES_KEY,
    PersistenceError,
    PersistenceStore,
)
from FacetQuery.storage.db import DatabaseManager
from FacetQuery.storage.json_file import JsonFileStore
from FacetQuery.storage.memory import MemoryStore
from FacetQuery.storage.sqlite import SqliteStore
from FacetQuery.utils.log import log

if TYPE_CHECKING:
    from FacetQuery.config import AppConfig


def create_persistence(config: AppConfig) -> tuple[PersistenceStore, DatabaseManager | None]:
    """Create the configured persistence store.

    Args:
        config: Application configuration containing storage settings.

    Returns:
        Tuple of (store, db_manager). ``db_manager`` is set only for the
        sqlite backend and must be closed by the caller.
    """
    backend = config.storage.backend
    if backend == "memory":
        log.debug("Using in-memory persistence")
        return MemoryStore(), None
    if backend == "json":
        base_dir = Path(config.storage.path)
        log.debug("Using JSON file persistence: %s", base_dir)
        return JsonFileStore(base_dir), None
    if backend == "sqlite":
        db_manager = DatabaseManager(Path(config.storage.path))
        log.debug("Using SQLite persistence: %s", config.storage.path)
        return SqliteStore(db_manager), db_manager
    raise ValueError(f"Unsupported storage backend: {backend}")


__all__ = [
    "HISTORY_KEY",
    "PATTERNS_KEY",
    "TEMPLATES_KEY",
    "DatabaseManager",
    "JsonFileStore",
    "MemoryStore",
    "PersistenceError",
    "PersistenceStore",
    "SqliteStore",
    "create_persistence",
]
