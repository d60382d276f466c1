"""Shareable URL state for raw queries.

A shared search is a URL query string with three parameters:

- ``q``: the raw query text
- ``mode``: ``visual`` or ``raw``
- ``v``: share format version

The legacy ``query`` parameter is accepted in place of ``q``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Mapping
from urllib.parse import parse_qs, urlencode

from FacetQuery.compiler.serializer import generate_raw_query
from FacetQuery.core.query import Query
from FacetQuery.utils.log import log

SHARE_VERSION: Final = "1"
MAX_URL_LENGTH: Final = 2000
MAX_QUERY_LENGTH: Final = 1000
_MODES: Final = ("visual", "raw")


@dataclass(frozen=True, slots=True)
class ShareState:
    """Decoded share parameters."""

    query: str
    mode: str = "visual"
    version: str | None = None


def build_share_params(query: Query, *, raw_mode: bool) -> dict[str, str]:
    """Build share parameters for a query.

    The typed raw query wins over regenerated text so users see exactly what
    they typed.

    Args:
        query: Current query.
        raw_mode: Whether the UI is in raw text mode.

    Returns:
        Parameter mapping; ``q`` is omitted when there is nothing to share.
    """
    params = {"v": SHARE_VERSION, "mode": "raw" if raw_mode else "visual"}
    if query.raw_query and query.raw_query.strip():
        params["q"] = query.raw_query
    elif query.criteria:
        text = generate_raw_query(query.criteria, query.logical_operator)
        if text:
            params["q"] = text
    return params


def encode_share_params(params: Mapping[str, str], *, base_url: str = "") -> str | None:
    """Encode share parameters as a URL.

    Args:
        params: Output of ``build_share_params``.
        base_url: Origin + path to prefix; may be empty.

    Returns:
        Encoded URL, or None when it exceeds ``MAX_URL_LENGTH``.
    """
    encoded = urlencode({k: v for k, v in params.items() if v})
    url = f"{base_url}?{encoded}" if encoded else base_url
    if len(url) > MAX_URL_LENGTH:
        log.warning("Search query too long for URL (%d chars), not sharing", len(url))
        return None
    return url


def parse_share_params(params: Mapping[str, Any] | str) -> ShareState | None:
    """Decode share parameters.

    Args:
        params: Mapping of parameter values, or a raw URL query string.

    Returns:
        Decoded state, or None when no query is present or the state is unusable.
    """
    if isinstance(params, str):
        parsed = parse_qs(params.lstrip("?"), keep_blank_values=False)
        params = {key: values[0] for key, values in parsed.items() if values}

    query = params.get("q") or params.get("query")
    if not query or not isinstance(query, str):
        return None

    mode = params.get("mode") or "visual"
    if mode not in _MODES:
        log.debug("Rejected share state with unknown mode: %s", mode)
        return None
    if len(query) > MAX_QUERY_LENGTH:
        log.debug("Rejected share state with %d-char query", len(query))
        return None

    version = params.get("v")
    if version and version != SHARE_VERSION:
        log.warning(
            "Share version %s may not be fully compatible with current version %s",
            version,
            SHARE_VERSION,
        )
    return ShareState(query=query, mode=mode, version=version)
