"""JSON codec for criteria, queries, history entries and templates.

Decoding treats input as untrusted: field types are re-resolved against the
catalog (never taken from the payload) and every criterion's ``is_valid`` flag
is recomputed.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping

from FacetQuery.compiler.values import parse_date, parse_number
from FacetQuery.config.validation import ValidationConfig
from FacetQuery.core.models import Catalog, FieldType, OperatorKind, ValueKind
from FacetQuery.core.query import Criterion, LogicalOperator, Query, new_criterion_id
from FacetQuery.suggestions.models import HistoryEntry, SearchTemplate
from FacetQuery.utils.dates import parse_timestamp
from FacetQuery.utils.log import log
from FacetQuery.validation.validator import refresh_validity, with_validity


def encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode_value(item) for item in value]
    return value


def encode_criterion(criterion: Criterion) -> dict[str, Any]:
    return {
        "id": criterion.id,
        "field_id": criterion.field_id,
        "operator": criterion.operator.kind.value,
        "value": encode_value(criterion.value),
        "display_value": criterion.display_value,
    }


def decode_criterion(
    data: Any,
    catalog: Catalog,
    *,
    config: ValidationConfig | None = None,
) -> Criterion | None:
    """Decode one criterion.

    Args:
        data: Mapping produced by ``encode_criterion``.
        catalog: Catalog used to resolve the field id.
        config: Validator settings used to recompute ``is_valid``.

    Returns:
        Criterion, or None when its field or operator is unknown to the catalog.

    Raises:
        ValueError: If the payload is not a mapping.
    """
    payload = _expect_mapping(data, "criterion")
    field_type = catalog.get(str(payload.get("field_id", "")))
    if field_type is None:
        log.debug("Dropping stored criterion for unknown field: %s", payload.get("field_id"))
        return None
    try:
        kind = OperatorKind(str(payload.get("operator", "")))
    except ValueError:
        log.debug("Dropping stored criterion with unknown operator: %s", payload.get("operator"))
        return None
    operator = field_type.operator(kind)
    if operator is None:
        log.debug("Dropping stored criterion: %s does not support %s", field_type.id, kind.value)
        return None

    display_value = payload.get("display_value")
    criterion = Criterion(
        id=str(payload.get("id") or new_criterion_id()),
        field_type=field_type,
        operator=operator,
        value=_decode_value(payload.get("value"), field_type),
        display_value=display_value if isinstance(display_value, str) else None,
        is_valid=False,
    )
    return refresh_validity(criterion, config=config)


def encode_query(query: Query) -> dict[str, Any]:
    return {
        "criteria": [encode_criterion(c) for c in query.criteria],
        "raw_query": query.raw_query,
        "logical_operator": query.logical_operator.value,
    }


def decode_query(data: Any, catalog: Catalog, *, config: ValidationConfig | None = None) -> Query:
    """Decode a query; unknown criteria are dropped and validity is recomputed."""
    payload = _expect_mapping(data, "query")
    criteria_obj = payload.get("criteria") or []
    if not isinstance(criteria_obj, list):
        raise ValueError("query.criteria must be a list")
    criteria = [c for c in (decode_criterion(item, catalog, config=config) for item in criteria_obj) if c]
    raw_query = payload.get("raw_query")
    logical = str(payload.get("logical_operator") or LogicalOperator.AND.value).upper()
    query = Query(
        criteria=criteria,
        raw_query=raw_query if isinstance(raw_query, str) else None,
        logical_operator=LogicalOperator(logical),
    )
    return with_validity(query, config=config, catalog=catalog)


def encode_history_entry(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "query": encode_query(entry.query),
        "raw_query": entry.raw_query,
        "timestamp": entry.timestamp.isoformat(),
        "search_mode": entry.search_mode,
        "display_text": entry.display_text,
    }


def decode_history_entry(data: Any, catalog: Catalog) -> HistoryEntry:
    payload = _expect_mapping(data, "history entry")
    return HistoryEntry(
        id=str(payload.get("id") or new_criterion_id()),
        query=decode_query(payload.get("query") or {}, catalog),
        raw_query=str(payload.get("raw_query") or ""),
        timestamp=parse_timestamp(payload.get("timestamp")),
        search_mode=str(payload.get("search_mode") or "visual"),
        display_text=str(payload.get("display_text") or ""),
    )


def encode_template(template: SearchTemplate) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "query": encode_query(template.query),
        "usage_count": template.usage_count,
        "last_used_at": template.last_used_at.isoformat() if template.last_used_at else None,
        "description": template.description,
        "tags": list(template.tags),
    }


def decode_template(data: Any, catalog: Catalog) -> SearchTemplate:
    payload = _expect_mapping(data, "template")
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("template.name must be a non-empty string")
    usage_count = payload.get("usage_count", 0)
    if isinstance(usage_count, bool) or not isinstance(usage_count, int):
        raise ValueError("template.usage_count must be an integer")
    last_used = payload.get("last_used_at")
    description = payload.get("description")
    return SearchTemplate(
        id=str(payload.get("id") or new_criterion_id()),
        name=name.strip(),
        query=decode_query(payload.get("query") or {}, catalog),
        usage_count=usage_count,
        last_used_at=parse_timestamp(last_used) if last_used else None,
        description=description if isinstance(description, str) else None,
        tags=tuple(str(tag) for tag in payload.get("tags") or ()),
    )


def _decode_value(value: Any, field_type: FieldType) -> Any:
    kind = field_type.value_kind
    if isinstance(value, str):
        if kind == ValueKind.NUMBER:
            number = parse_number(value)
            return value if number is None else number
        if kind == ValueKind.DATE:
            parsed = parse_date(value)
            return value if parsed is None else parsed
        if kind == ValueKind.MULTI_SELECT:
            return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(item) for item in value]
    return value


def _expect_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object")
    return value
