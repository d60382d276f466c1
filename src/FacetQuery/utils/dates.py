"""Timestamp helpers for persisted blobs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from dateutil import parser as dt_parser


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC.

    Args:
        value: ISO 8601 text.

    Returns:
        Timezone-aware datetime.

    Raises:
        ValueError: If the value is not an ISO timestamp.
    """
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid timestamp: {value!r}")
    return ensure_aware(dt_parser.isoparse(value))


def ensure_aware(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
