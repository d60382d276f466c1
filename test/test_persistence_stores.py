"""Tests for persistence store implementations."""

from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FacetQuery.config import AppConfig, StorageConfig, load_config
from FacetQuery.storage import (
    DatabaseManager,
    JsonFileStore,
    MemoryStore,
    PersistenceError,
    SqliteStore,
    create_persistence,
)

BLOB = {"patterns": [{"id": "status", "frequency": 2}], "interactions": ["a", "b"], "note": "中文"}


class TestMemoryStore(unittest.TestCase):
    def test_round_trip_and_missing_key(self) -> None:
        store = MemoryStore()
        self.assertIsNone(store.load("search-history"))
        store.save("search-history", BLOB)
        self.assertEqual(store.load("search-history"), BLOB)

    def test_values_are_copied(self) -> None:
        store = MemoryStore()
        value = {"items": [1]}
        store.save("k", value)
        value["items"].append(2)
        self.assertEqual(store.load("k"), {"items": [1]})

    def test_corrupt_and_unserializable(self) -> None:
        store = MemoryStore()
        store.put_raw("k", "{oops")
        with self.assertRaises(PersistenceError):
            store.load("k")
        with self.assertRaises(PersistenceError):
            store.save("k", {"bad": object()})


class TestJsonFileStore(unittest.TestCase):
    def test_round_trip_creates_directory(self) -> None:
        base = Path(tempfile.mkdtemp()) / "state"
        store = JsonFileStore(base)
        self.assertIsNone(store.load("behavior-patterns"))

        store.save("behavior-patterns", BLOB)
        self.assertTrue((base / "behavior-patterns.json").exists())
        self.assertEqual(JsonFileStore(base).load("behavior-patterns"), BLOB)
        self.assertEqual([p.name for p in base.iterdir()], ["behavior-patterns.json"])

    def test_unsafe_key_is_sanitized(self) -> None:
        store = JsonFileStore(Path(tempfile.mkdtemp()))
        self.assertEqual(store.path_for("../x y").name, ".._x_y.json")

    def test_corrupt_file_raises_persistence_error(self) -> None:
        base = Path(tempfile.mkdtemp())
        (base / "search-history.json").write_text("[1, 2", encoding="utf-8")
        with self.assertRaises(PersistenceError):
            JsonFileStore(base).load("search-history")


class TestSqliteStore(unittest.TestCase):
    def test_round_trip_and_overwrite(self) -> None:
        tmp_db = Path(tempfile.mkdtemp()) / "state.db"
        manager = DatabaseManager(tmp_db)
        try:
            store = SqliteStore(manager)
            self.assertIsNone(store.load("search-templates"))
            store.save("search-templates", BLOB)
            store.save("search-templates", [1, 2, 3])
            self.assertEqual(store.load("search-templates"), [1, 2, 3])

            count = manager.get_connection().execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]
            self.assertEqual(count, 1)
        finally:
            manager.close()

        with DatabaseManager(tmp_db) as reopened:
            self.assertEqual(SqliteStore(reopened).load("search-templates"), [1, 2, 3])

    def test_closed_manager_raises_persistence_error(self) -> None:
        manager = DatabaseManager(Path(tempfile.mkdtemp()) / "state.db")
        store = SqliteStore(manager)
        manager.close()
        with self.assertRaises(PersistenceError):
            store.load("k")
        with self.assertRaises(PersistenceError):
            store.save("k", {"a": 1})

    def test_corrupt_row_raises_persistence_error(self) -> None:
        manager = DatabaseManager(Path(tempfile.mkdtemp()) / "state.db")
        try:
            conn = manager.get_connection()
            conn.execute("INSERT INTO kv_store (key, value) VALUES (?, ?)", ("k", "{nope"))
            conn.commit()
            with self.assertRaises(PersistenceError):
                SqliteStore(manager).load("k")
        finally:
            manager.close()


class TestCreatePersistence(unittest.TestCase):
    def _config(self, backend: str, path: str) -> AppConfig:
        base = load_config(REPO_ROOT / "config" / "default.yml")
        return AppConfig(
            runtime=base.runtime,
            storage=StorageConfig(backend=backend, path=path),
            validation=base.validation,
            suggestions=base.suggestions,
            catalog=base.catalog,
        )

    def test_backends(self) -> None:
        tmp = Path(tempfile.mkdtemp())

        store, manager = create_persistence(self._config("memory", ""))
        self.assertIsInstance(store, MemoryStore)
        self.assertIsNone(manager)

        store, manager = create_persistence(self._config("json", str(tmp / "state")))
        self.assertIsInstance(store, JsonFileStore)
        self.assertIsNone(manager)

        store, manager = create_persistence(self._config("sqlite", str(tmp / "state.db")))
        try:
            self.assertIsInstance(store, SqliteStore)
            self.assertIsInstance(manager, DatabaseManager)
        finally:
            manager.close()


if __name__ == "__main__":
    unittest.main()
