"""Persistence port used for behavior patterns, history and templates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

PATTERNS_KEY = "behavior-patterns"
HISTORY_KEY = "search-history"
TEMPLATES_KEY = "search-templates"


class PersistenceError(Exception):
    """Raised by stores when a blob cannot be read or written."""


class PersistenceStore(ABC):
    """Key-value store for JSON-compatible blobs."""

    @abstractmethod
    def load(self, key: str) -> Any | None:
        """Return the stored value for key, or None when absent.

        Raises:
            PersistenceError: If the stored blob cannot be read or decoded.
        """

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under key.

        Raises:
            PersistenceError: If the value cannot be written.
        """
