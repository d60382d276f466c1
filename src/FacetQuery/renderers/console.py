"""Console text output renderers.

Renders criteria, findings and suggestions into human-friendly text.
"""

from __future__ import annotations

from typing import Iterable

from FacetQuery.compiler.values import value_to_text
from FacetQuery.core.query import Criterion
from FacetQuery.suggestions.models import SuggestionItem
from FacetQuery.validation.findings import ValidationFinding

_SEVERITY_TAGS = {
    "error": "ERR ",
    "warning": "WARN",
    "info": "INFO",
}


def render_criteria_text(criteria: Iterable[Criterion]) -> str:
    """Render criteria as numbered lines.

    Args:
        criteria: Iterable of criteria.

    Returns:
        A formatted string ready to be printed; ``(no criteria)`` when empty.
    """
    lines: list[str] = []
    for idx, criterion in enumerate(criteria, start=1):
        text = f"{idx}. {criterion.field_type.label} {criterion.operator.label}"
        if criterion.operator.requires_value:
            shown = criterion.display_value or value_to_text(criterion.value)
            text += f" {shown}"
        if not criterion.is_valid:
            text += "  (invalid)"
        lines.append(text)
    if not lines:
        return "(no criteria)\n"
    return "\n".join(lines) + "\n"


def render_findings_text(findings: Iterable[ValidationFinding]) -> str:
    lines = [
        f"[{_SEVERITY_TAGS[finding.severity.value]}] {finding.field}: {finding.message}"
        for finding in findings
    ]
    if not lines:
        return "No issues found.\n"
    return "\n".join(lines) + "\n"


def render_suggestions_text(items: Iterable[SuggestionItem]) -> str:
    """Render suggestions, one per line, with score and reason."""
    lines: list[str] = []
    for idx, item in enumerate(items, start=1):
        lines.append(f"{idx}. [{item.kind.value}] {item.label}  score={item.score:.2f}  ({item.reason})")
        if item.description:
            lines.append(f"   {item.description}")
    if not lines:
        return "(no suggestions)\n"
    return "\n".join(lines) + "\n"
