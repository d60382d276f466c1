"""Suggestion ranking and behavior tracking configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from FacetQuery.config.common import (
    expect_float,
    expect_int,
    get_optional_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class SuggestionsConfig:
    """Store validated suggestion settings.

    Attributes:
        limit: Default number of ranked suggestions returned.
        max_patterns: Behavior patterns retained (most recently touched first).
        stale_days: Patterns unused for longer are pruned at load.
        min_confidence: Patterns at or below this confidence are ignored.
        template_candidates: Most-used templates considered for relevance.
        max_interactions: Length of the persisted interaction log.
    """

    limit: int = 10
    max_patterns: int = 50
    stale_days: int = 30
    min_confidence: float = 0.3
    template_candidates: int = 3
    max_interactions: int = 100


def load_suggestions(raw: Mapping[str, Any]) -> SuggestionsConfig:
    """Load suggestions config from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed configuration; missing keys keep their defaults.

    Raises:
        TypeError: If config types are invalid.
    """
    section = get_section(raw, "suggestions", required=False)
    defaults = SuggestionsConfig()

    def _int(key: str) -> int:
        return expect_int(get_optional_value(section, key, getattr(defaults, key)), f"suggestions.{key}")

    return SuggestionsConfig(
        limit=_int("limit"),
        max_patterns=_int("max_patterns"),
        stale_days=_int("stale_days"),
        min_confidence=expect_float(
            get_optional_value(section, "min_confidence", defaults.min_confidence),
            "suggestions.min_confidence",
        ),
        template_candidates=_int("template_candidates"),
        max_interactions=_int("max_interactions"),
    )


def check_suggestions(config: SuggestionsConfig) -> None:
    """Validate suggestions domain constraints.

    Args:
        config: Parsed suggestions configuration.

    Raises:
        ValueError: If values violate constraints.
    """
    if config.limit <= 0:
        raise ValueError("suggestions.limit must be positive")
    if config.max_patterns <= 0:
        raise ValueError("suggestions.max_patterns must be positive")
    if config.stale_days <= 0:
        raise ValueError("suggestions.stale_days must be positive")
    if not 0.0 <= config.min_confidence <= 1.0:
        raise ValueError("suggestions.min_confidence must be within [0, 1]")
    if config.template_candidates < 0:
        raise ValueError("suggestions.template_candidates must be 0 or positive")
    if config.max_interactions < 0:
        raise ValueError("suggestions.max_interactions must be 0 or positive")
