from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from FacetQuery.core.models import Catalog, FieldType
from FacetQuery.core.query import Criterion, Query


class SuggestionKind(str, Enum):
    FIELD = "field"
    VALUE = "value"
    OPERATOR = "operator"
    TEMPLATE = "template"
    COMPLETION = "completion"


@dataclass(frozen=True, slots=True)
class SuggestionItem:
    """One ranked suggestion. Recomputed on every ranking call.

    Attributes:
        id: Suggestion id, unique within one ranking result.
        kind: What accepting the suggestion inserts.
        label: Display label.
        value: Payload (a FieldType, value text, OperatorKind, template, ...).
        score: Relevance in [0, 1].
        reason: Generator tag such as ``frequently_used``.
        category: Display group such as ``fields`` or ``values``.
        description: Optional secondary text.
    """

    id: str
    kind: SuggestionKind
    label: str
    value: Any
    score: float
    reason: str
    category: str
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BehaviorPattern:
    """Learned association between field ids searched together.

    Attributes:
        id: Sorted field ids joined with ``+``.
        label: Field labels joined with `` + ``.
        frequency: Number of searches that used exactly this field set.
        last_used_at: Time of the most recent such search.
        confidence: Starts at 0.5, +0.1 per repeat, capped at 1.0.
        related_field_ids: The field ids of the pattern.
        common_values: Counters keyed ``operator:<field-id>:<operator-kind>``.
    """

    id: str
    label: str
    frequency: int
    last_used_at: datetime
    confidence: float
    related_field_ids: frozenset[str]
    common_values: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "related_field_ids", frozenset(self.related_field_ids))
        object.__setattr__(self, "common_values", MappingProxyType(dict(self.common_values)))


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """An executed search, as recorded by the history collaborator."""

    id: str
    query: Query
    raw_query: str
    timestamp: datetime
    search_mode: str = "visual"
    display_text: str = ""


@dataclass(frozen=True, slots=True)
class SearchTemplate:
    """A saved search, as recorded by the template collaborator."""

    id: str
    name: str
    query: Query
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    description: Optional[str] = None
    tags: Sequence[str] = ()


@dataclass(frozen=True, slots=True)
class SuggestionContext:
    """Everything the ranker looks at for one call.

    Attributes:
        current_criteria: Criteria already in the query.
        current_input: Partial text being typed.
        catalog: Field catalog.
        active_field: Field whose value is being edited, if any.
        recent_history: History entries, most recent first.
        templates: Saved templates.
        now: Reference time for recency checks; defaults to the current time.
    """

    current_criteria: Sequence[Criterion]
    current_input: str
    catalog: Catalog
    active_field: Optional[FieldType] = None
    recent_history: Sequence[HistoryEntry] = ()
    templates: Sequence[SearchTemplate] = ()
    now: Optional[datetime] = None

    @property
    def current_field_ids(self) -> list[str]:
        return [c.field_id for c in self.current_criteria]
