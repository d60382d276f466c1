"""FacetQuery: query intelligence for faceted search.

Parses raw query text into typed criteria and back, validates criteria sets,
and ranks next-step suggestions learned from search behavior.
"""

from __future__ import annotations

from FacetQuery.compiler import generate_raw_query, parse_raw_query
from FacetQuery.core import (
    Catalog,
    Criterion,
    FieldType,
    LogicalOperator,
    Operator,
    OperatorKind,
    Query,
    ValueKind,
)
from FacetQuery.suggestions import (
    BehaviorPatternStore,
    SuggestionContext,
    SuggestionItem,
    SuggestionRanker,
)
from FacetQuery.validation import ValidationFinding, validate, validate_query

__all__ = [
    "BehaviorPatternStore",
    "Catalog",
    "Criterion",
    "FieldType",
    "LogicalOperator",
    "Operator",
    "OperatorKind",
    "Query",
    "SuggestionContext",
    "SuggestionItem",
    "SuggestionRanker",
    "ValidationFinding",
    "ValueKind",
    "generate_raw_query",
    "parse_raw_query",
    "validate",
    "validate_query",
]
