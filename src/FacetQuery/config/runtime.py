"""Runtime domain configuration (logging)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from FacetQuery.config.common import (
    expect_bool,
    expect_choice,
    expect_str,
    get_required_value,
    get_section,
)

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# Takes precedence over log.level; may be set in .env.
LOG_LEVEL_ENV = "FACET_QUERY_LOG_LEVEL"


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Logging settings for CLI actions.

    Attributes:
        level: Console log level name.
        to_file: Whether each action also writes ``<dir>/<action>/<action>_<ts>.log``.
        dir: Base directory for log files.
    """

    level: str
    to_file: bool
    dir: str


def load_runtime(raw: Mapping[str, Any]) -> RuntimeConfig:
    """Load the ``log`` section.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed runtime configuration, with ``FACET_QUERY_LOG_LEVEL`` applied.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "log", required=True)
    level = expect_str(get_required_value(section, "level", "log.level"), "log.level")
    override = os.getenv(LOG_LEVEL_ENV, "").strip()
    return RuntimeConfig(
        level=(override or level).upper(),
        to_file=expect_bool(get_required_value(section, "to_file", "log.to_file"), "log.to_file"),
        dir=expect_str(get_required_value(section, "dir", "log.dir"), "log.dir"),
    )


def check_runtime(config: RuntimeConfig) -> None:
    """Validate runtime domain constraints.

    Raises:
        ValueError: If values violate runtime constraints.
    """
    expect_choice(config.level, _ALLOWED_LOG_LEVELS, "log.level")
    if not config.dir.strip():
        raise ValueError("log.dir must not be empty")
