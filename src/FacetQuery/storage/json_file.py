"""JSON file persistence store: one ``<key>.json`` file per key."""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from FacetQuery.storage.base import PersistenceError, PersistenceStore
from FacetQuery.utils.log import log

_UNSAFE_KEY_RE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStore(PersistenceStore):
    """Directory-backed store writing one JSON document per key."""

    def __init__(self, base_dir: Path):
        """Initialize the store.

        Args:
            base_dir: Directory holding the JSON files; created on first save.
        """
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{_UNSAFE_KEY_RE.sub('_', key)}.json"

    def load(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def save(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        try:
            text = json.dumps(value, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Value for key {key} is not JSON-serializable: {e}") from e

        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            # Write-then-rename so readers never see a partial document.
            fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=f".{path.stem}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_name, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e
        log.debug("Saved %s (%d bytes)", path, len(text))
