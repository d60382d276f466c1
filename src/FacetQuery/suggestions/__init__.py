"""Suggestion ranking and behavior tracking."""

from __future__ import annotations

from FacetQuery.suggestions.models import (
    BehaviorPattern,
    HistoryEntry,
    SearchTemplate,
    SuggestionContext,
    SuggestionItem,
    SuggestionKind,
)
from FacetQuery.suggestions.patterns import (
    SEARCH_EXECUTED,
    BehaviorPatternStore,
    decode_pattern,
    encode_pattern,
    pattern_id_for,
)
from FacetQuery.suggestions.ranker import (
    SuggestionRanker,
    frequent_fields,
    frequent_values,
    smart_completions,
)

__all__ = [
    "SEARCH_EXECUTED",
    "BehaviorPattern",
    "BehaviorPatternStore",
    "HistoryEntry",
    "SearchTemplate",
    "SuggestionContext",
    "SuggestionItem",
    "SuggestionKind",
    "SuggestionRanker",
    "decode_pattern",
    "encode_pattern",
    "frequent_fields",
    "frequent_values",
    "pattern_id_for",
    "smart_completions",
]
