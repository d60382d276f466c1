"""Validation domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from FacetQuery.config.common import (
    expect_int,
    expect_str,
    expect_str_list,
    get_optional_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class ValidationConfig:
    """Store validated criteria validator settings.

    Attributes:
        max_text_length: Upper bound on text values (lower bound is 1).
        counter_fields: Ids of counter-like number fields whose range bounds
            must be non-negative (``gt``/``gte``) or positive (``lt``/``lte``).
    """

    max_text_length: int = 100
    counter_fields: tuple[str, ...] = ("iteration",)


def load_validation(raw: Mapping[str, Any]) -> ValidationConfig:
    """Load validation config from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed validation configuration. Missing keys fall back to defaults.

    Raises:
        TypeError: If config types are invalid.
    """
    section = get_section(raw, "validation", required=False)
    defaults = ValidationConfig()
    counter_fields = expect_str_list(
        get_optional_value(section, "counter_fields", list(defaults.counter_fields)),
        "validation.counter_fields",
    )
    return ValidationConfig(
        max_text_length=expect_int(
            get_optional_value(section, "max_text_length", defaults.max_text_length),
            "validation.max_text_length",
        ),
        counter_fields=tuple(
            expect_str(item, f"validation.counter_fields[{idx}]").strip()
            for idx, item in enumerate(counter_fields)
        ),
    )


def check_validation(config: ValidationConfig) -> None:
    """Validate validation domain constraints.

    Args:
        config: Parsed validation configuration.

    Raises:
        ValueError: If values violate constraints.
    """
    if config.max_text_length <= 0:
        raise ValueError("validation.max_text_length must be positive")
    if any(not field_id for field_id in config.counter_fields):
        raise ValueError("validation.counter_fields must not contain empty ids")
