"""Read access to the history and template collaborators' stores.

History and templates are owned by the host application; the engine reads
them for ranking and appends executed searches to history. Any storage or
payload failure degrades to an empty collection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, TypeVar

from FacetQuery.core.models import Catalog
from FacetQuery.core.query import Query, new_criterion_id
from FacetQuery.storage.base import HISTORY_KEY, TEMPLATES_KEY, PersistenceError, PersistenceStore
from FacetQuery.storage.codec import (
    decode_history_entry,
    decode_template,
    encode_history_entry,
)
from FacetQuery.suggestions.models import HistoryEntry, SearchTemplate
from FacetQuery.utils.dates import utc_now
from FacetQuery.utils.log import log

MAX_HISTORY_SIZE = 20

T = TypeVar("T")


def load_history(store: PersistenceStore, catalog: Catalog) -> list[HistoryEntry]:
    """Load history entries, most recent first."""
    return _load_list(store, HISTORY_KEY, lambda item: decode_history_entry(item, catalog), _is_usable_entry)


def load_templates(store: PersistenceStore, catalog: Catalog) -> list[SearchTemplate]:
    """Load saved templates."""
    return _load_list(store, TEMPLATES_KEY, lambda item: decode_template(item, catalog), None)


def record_search(
    store: PersistenceStore,
    query: Query,
    catalog: Catalog,
    *,
    search_mode: str = "visual",
    now: datetime | None = None,
) -> HistoryEntry | None:
    """Prepend an executed search to history.

    Empty queries and immediate repeats (same raw text and mode) are skipped.

    Args:
        store: Persistence port.
        query: Executed query.
        catalog: Catalog used to decode the existing history.
        search_mode: ``visual`` or ``raw``.
        now: Entry timestamp; defaults to the current time.

    Returns:
        The recorded entry, or None when nothing was recorded.
    """
    raw_query = query.raw_query or ""
    if not query.criteria and not raw_query.strip():
        return None

    history = load_history(store, catalog)
    if history and history[0].raw_query == raw_query and history[0].search_mode == search_mode:
        return None

    entry = HistoryEntry(
        id=new_criterion_id(),
        query=query,
        raw_query=raw_query,
        timestamp=now or utc_now(),
        search_mode=search_mode,
        display_text=display_text(query, search_mode),
    )
    updated = [entry, *history][:MAX_HISTORY_SIZE]
    try:
        store.save(HISTORY_KEY, [encode_history_entry(item) for item in updated])
    except PersistenceError as e:
        log.warning("Failed to save search history: %s", e)
    return entry


def display_text(query: Query, search_mode: str) -> str:
    """Human summary of a query, e.g. ``Status is Active AND Iteration greater than 5``."""
    if search_mode == "raw" and query.raw_query and query.raw_query.strip():
        return query.raw_query

    parts: list[str] = []
    for criterion in query.criteria:
        if not criterion.is_valid:
            continue
        text = f"{criterion.field_type.label} {criterion.operator.label}"
        if criterion.operator.requires_value:
            shown = criterion.display_value or criterion.value
            text += f" {shown}"
        parts.append(text)
    if parts:
        return f" {query.logical_operator.value} ".join(parts)
    return query.raw_query or "Empty search"


def _is_usable_entry(entry: HistoryEntry) -> bool:
    return bool(entry.query.criteria) or bool(entry.raw_query.strip())


def _load_list(
    store: PersistenceStore,
    key: str,
    decode: Callable[[object], T],
    keep: Callable[[T], bool] | None,
) -> list[T]:
    try:
        data = store.load(key)
    except PersistenceError as e:
        log.warning("Failed to load %s: %s", key, e)
        return []
    if data is None:
        return []
    if not isinstance(data, list):
        log.warning("Ignoring %s: expected a list, got %s", key, type(data).__name__)
        return []

    items: list[T] = []
    for idx, raw in enumerate(data):
        try:
            item = decode(raw)
        except (ValueError, TypeError, KeyError) as e:
            log.debug("Skipping %s[%d]: %s", key, idx, e)
            continue
        if keep is None or keep(item):
            items.append(item)
    return items
