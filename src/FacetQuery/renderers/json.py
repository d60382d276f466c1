"""JSON output renderers.

Renders criteria, validation findings and suggestions into JSON-serializable
objects for the CLI and for host applications.
"""

from __future__ import annotations

from typing import Any, Iterable

from FacetQuery.compiler.values import value_to_text
from FacetQuery.core.models import FieldType, OperatorKind
from FacetQuery.core.query import Criterion
from FacetQuery.storage.codec import encode_value
from FacetQuery.suggestions.models import SearchTemplate, SuggestionItem
from FacetQuery.validation.findings import ValidationFinding


def render_criteria_json(criteria: Iterable[Criterion]) -> list[dict]:
    """Render criteria into JSON-serializable Python objects.

    Args:
        criteria: Iterable of criteria.

    Returns:
        A list of dicts, one per criterion, in input order.
    """
    out: list[dict] = []
    for criterion in criteria:
        d = {
            "id": criterion.id,
            "field": criterion.field_id,
            "field_label": criterion.field_type.label,
            "operator": criterion.operator.kind.value,
            "operator_label": criterion.operator.label,
            "value": encode_value(criterion.value),
            "is_valid": criterion.is_valid,
        }
        if criterion.display_value:
            d["display_value"] = criterion.display_value
        out.append(d)
    return out


def render_findings_json(findings: Iterable[ValidationFinding]) -> list[dict]:
    return [
        {
            "field": finding.field,
            "kind": finding.kind.value,
            "severity": finding.severity.value,
            "message": finding.message,
        }
        for finding in findings
    ]


def render_suggestions_json(items: Iterable[SuggestionItem]) -> list[dict]:
    """Render ranked suggestions; payload objects are reduced to their ids."""
    out: list[dict] = []
    for item in items:
        d = {
            "id": item.id,
            "kind": item.kind.value,
            "label": item.label,
            "value": _suggestion_value(item.value),
            "score": item.score,
            "reason": item.reason,
            "category": item.category,
        }
        if item.description:
            d["description"] = item.description
        out.append(d)
    return out


def _suggestion_value(value: Any) -> Any:
    if isinstance(value, (FieldType, SearchTemplate)):
        return value.id
    if isinstance(value, OperatorKind):
        return value.value
    if isinstance(value, str):
        return value
    return value_to_text(value)
