"""Canonical raw query rendering.

Serialization is lossy on purpose: invalid criteria are left out, and the
OR-mode parentheses are a readability aid the parser does not read back.
"""

from __future__ import annotations

from typing import Iterable

from FacetQuery.compiler.operators import EMPTY_KEYWORD, NOT_EMPTY_KEYWORD, prefix_for
from FacetQuery.compiler.values import value_to_text
from FacetQuery.core.models import OperatorKind
from FacetQuery.core.query import Criterion, LogicalOperator


def generate_raw_query(
    criteria: Iterable[Criterion],
    logical_operator: LogicalOperator = LogicalOperator.AND,
) -> str:
    """Render criteria into raw query text.

    Args:
        criteria: Criteria in display order.
        logical_operator: AND joins with a space, OR with `` OR ``.

    Returns:
        Raw query text, or an empty string when no criterion is valid.
    """
    rendered = [render_criterion(c) for c in criteria if c.is_valid]

    if not rendered:
        return ""
    if len(rendered) == 1:
        return rendered[0]

    if logical_operator == LogicalOperator.OR:
        return " OR ".join(f"({text})" if " " in text else text for text in rendered)
    return " ".join(rendered)


def render_criterion(criterion: Criterion) -> str:
    """Render one criterion as a ``field:[prefix]value`` token."""
    field_id = criterion.field_type.id
    operator = criterion.operator

    if not operator.requires_value:
        if operator.kind == OperatorKind.IS_EMPTY:
            return f"{field_id}:{EMPTY_KEYWORD}"
        if operator.kind == OperatorKind.IS_NOT_EMPTY:
            return f"{field_id}:{NOT_EMPTY_KEYWORD}"
        return field_id

    return f"{field_id}:{prefix_for(operator.kind)}{_render_value(criterion.value)}"


def _render_value(value: object) -> str:
    if isinstance(value, str):
        return f'"{value}"' if " " in value else value
    return value_to_text(value)
