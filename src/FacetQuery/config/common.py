"""Shared helpers for configuration loading and validation.

Every helper takes the full dotted key path (``catalog.fields[2].operators``)
so type and value errors point at the offending YAML entry.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping, TypeVar

E = TypeVar("E", bound=Enum)


def get_section(raw: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    """Return a mapping section from root config.

    Args:
        raw: Root configuration mapping.
        key: Section name.
        required: Whether the section must exist.

    Returns:
        Section mapping, or empty mapping for optional missing sections.

    Raises:
        ValueError: If section is required but missing.
        TypeError: If section is not a mapping.
    """
    section = raw.get(key)
    if section is None:
        if required:
            raise ValueError(f"Missing required config: {key}")
        return {}
    return expect_mapping(section, key)


def get_required_value(section: Mapping[str, Any], field: str, config_key: str) -> Any:
    """Return a required field value, raising ValueError naming ``config_key``."""
    if field not in section:
        raise ValueError(f"Missing required config: {config_key}")
    return section[field]


def get_optional_value(section: Mapping[str, Any], field: str, default: Any) -> Any:
    return section.get(field, default)


def expect_str(value: Any, config_key: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{config_key} must be a string")
    return value


def expect_bool(value: Any, config_key: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{config_key} must be a boolean")
    return value


def expect_int(value: Any, config_key: str) -> int:
    """Validate an integer; YAML booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{config_key} must be an integer")
    return value


def expect_float(value: Any, config_key: str) -> float:
    """Validate a number (int or float) and return it as float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{config_key} must be a number")
    return float(value)


def expect_list(value: Any, config_key: str) -> list[Any]:
    if not isinstance(value, list):
        raise TypeError(f"{config_key} must be a list")
    return value


def expect_mapping(value: Any, config_key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{config_key} must be an object")
    return value


def expect_str_list(value: Any, config_key: str) -> list[str]:
    """Validate a list whose items are all strings."""
    return [expect_str(item, f"{config_key}[{idx}]") for idx, item in enumerate(expect_list(value, config_key))]


def expect_choice(value: str, choices: Iterable[str], config_key: str) -> str:
    """Check that an already-normalized string is one of ``choices``.

    Raises:
        ValueError: Listing the allowed values in sorted order.
    """
    allowed = sorted(choices)
    if value not in allowed:
        raise ValueError(f"{config_key} must be one of {allowed}")
    return value


def expect_enum(enum_cls: type[E], value: Any, config_key: str) -> E:
    """Parse a str-valued enum member, accepting ``snake_case`` and any case.

    ``"Single_Select"`` and ``"single-select"`` both resolve to
    ``ValueKind.SINGLE_SELECT``.
    """
    text = expect_str(value, config_key).strip().lower().replace("_", "-")
    expect_choice(text, (member.value for member in enum_cls), config_key)
    return enum_cls(text)
