"""Core data model shared by the compiler, validator and ranker."""

from __future__ import annotations

from FacetQuery.core.models import (
    OPERATOR_LABELS,
    Catalog,
    FieldType,
    Operator,
    OperatorKind,
    ValidationRule,
    ValueKind,
    slugify_label,
)
from FacetQuery.core.query import Criterion, LogicalOperator, Query, new_criterion_id

__all__ = [
    "OPERATOR_LABELS",
    "Catalog",
    "Criterion",
    "FieldType",
    "LogicalOperator",
    "Operator",
    "OperatorKind",
    "Query",
    "ValidationRule",
    "ValueKind",
    "new_criterion_id",
    "slugify_label",
]
