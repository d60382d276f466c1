"""Storage domain configuration for the persistence port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from FacetQuery.config.common import (
    expect_choice,
    expect_str,
    get_required_value,
    get_section,
)

_ALLOWED_BACKENDS = {"memory", "json", "sqlite"}


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Storage configuration.

    Attributes:
        backend: ``memory``, ``json`` (one file per key in a directory) or
            ``sqlite`` (key-value table in one database file).
        path: Directory for ``json``, database file for ``sqlite``; ignored
            for ``memory``.
    """

    backend: str
    path: str


def load_storage(raw: Mapping[str, Any]) -> StorageConfig:
    """Load storage domain config from raw mapping."""
    section = get_section(raw, "storage", required=True)
    return StorageConfig(
        backend=expect_str(get_required_value(section, "backend", "storage.backend"), "storage.backend")
        .strip()
        .lower(),
        path=expect_str(get_required_value(section, "path", "storage.path"), "storage.path"),
    )


def check_storage(config: StorageConfig) -> None:
    """Validate storage domain constraints."""
    expect_choice(config.backend, _ALLOWED_BACKENDS, "storage.backend")
    if config.backend != "memory" and not config.path.strip():
        raise ValueError("storage.path must not be empty")
