"""SQLite-backed persistence store."""

from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING, Any

from FacetQuery.storage.base import PersistenceError, PersistenceStore
from FacetQuery.utils.log import log

if TYPE_CHECKING:
    from FacetQuery.storage.db import DatabaseManager


class SqliteStore(PersistenceStore):
    """Stores JSON blobs in the ``kv_store`` table."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize the store.

        Args:
            db_manager: Shared database manager instance.
        """
        log.debug("Initializing SqliteStore")
        self.db_manager = db_manager

    def load(self, key: str) -> Any | None:
        try:
            row = self.db_manager.get_connection().execute(
                "SELECT value FROM kv_store WHERE key = ?",
                (key,),
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read key {key}: {e}") from e
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt value for key {key}: {e}") from e

    def save(self, key: str, value: Any) -> None:
        try:
            blob = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for key {key} is not JSON-serializable: {e}") from e

        conn = None
        try:
            conn = self.db_manager.get_connection()
            conn.execute(
                """
                INSERT INTO kv_store (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
                """,
                (key, blob),
            )
            conn.commit()
        except sqlite3.Error as e:
            if conn is not None:
                conn.rollback()
            raise PersistenceError(f"Failed to write key {key}: {e}") from e
        log.debug("Saved key %s (%d bytes)", key, len(blob))
