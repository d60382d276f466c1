"""Typed value conversion shared by the parser, serializer and validator."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

from dateutil import parser as dt_parser

from FacetQuery.core.models import FieldType, ValueKind

_EDGE_QUOTES_RE = re.compile(r"""^["']|["']$""")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def strip_quotes(text: str) -> str:
    """Remove one leading and one trailing quote character, if present."""
    return _EDGE_QUOTES_RE.sub("", text)


def is_number_text(text: str) -> bool:
    """Return whether text is a finite decimal number."""
    return parse_number(text) is not None


def parse_number(text: str) -> int | float | None:
    """Parse decimal text into int or float; None when not a finite number."""
    stripped = text.strip()
    if not _NUMBER_RE.match(stripped):
        return None
    if any(ch in stripped for ch in ".eE"):
        number = float(stripped)
        return number if math.isfinite(number) else None
    return int(stripped)


def parse_date(text: str) -> date | None:
    """Parse free-form date text; None when it is not a date."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return dt_parser.parse(stripped).date()
    except (ValueError, OverflowError):
        return None


def convert_value(raw: str, field_type: FieldType) -> Any:
    """Convert raw value text into the field's typed value.

    Unparseable numbers and dates keep their (unquoted) text so the validator
    can report them.

    Args:
        raw: Value text as written in the query, quotes included.
        field_type: Field the value belongs to.

    Returns:
        Typed value.
    """
    clean = strip_quotes(raw)
    kind = field_type.value_kind

    if kind == ValueKind.NUMBER:
        number = parse_number(clean)
        return clean if number is None else number
    if kind == ValueKind.BOOLEAN:
        return clean.lower() == "true" or clean == "1"
    if kind == ValueKind.DATE:
        parsed = parse_date(clean)
        return clean if parsed is None else parsed
    if kind == ValueKind.MULTI_SELECT:
        return [part.strip() for part in clean.split(",") if part.strip()]
    return clean


def format_display_value(raw: str, field_type: FieldType) -> str:
    """Return the human rendering of raw value text (dates as MM/DD/YYYY)."""
    clean = strip_quotes(raw)
    if field_type.value_kind == ValueKind.DATE:
        parsed = parse_date(clean)
        if parsed is not None:
            return parsed.strftime("%m/%d/%Y")
    return clean


def value_to_text(value: Any) -> str:
    """Render a typed value as plain text, without quoting."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(value_to_text(item) for item in value)
    if value is None:
        return ""
    return str(value)


def is_missing(value: Any) -> bool:
    """Return whether a value counts as absent (None, blank text, empty list)."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False
