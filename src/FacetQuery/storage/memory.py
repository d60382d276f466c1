"""In-memory persistence store."""

from __future__ import annotations

import json
from typing import Any

from FacetQuery.storage.base import PersistenceError, PersistenceStore


class MemoryStore(PersistenceStore):
    """Keeps blobs as JSON text in a dict.

    Values round-trip through JSON so callers see the same shapes and failures
    as with the file-backed stores.
    """

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        blob = self._blobs.get(key)
        if blob is None:
            return None
        try:
            return json.loads(blob)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt value for key {key}: {e}") from e

    def save(self, key: str, value: Any) -> None:
        try:
            self._blobs[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for key {key} is not JSON-serializable: {e}") from e

    def put_raw(self, key: str, blob: str) -> None:
        """Store raw text as-is (used to simulate corrupt storage)."""
        self._blobs[key] = blob
