from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Sequence

from FacetQuery.core.models import FieldType, Operator


class LogicalOperator(str, Enum):
    """How the criteria of a query combine."""

    AND = "AND"
    OR = "OR"


def new_criterion_id() -> str:
    """Return a fresh opaque criterion id."""
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Criterion:
    """One concrete filter inside a query.

    Attributes:
        id: Opaque id, stable across edits; the unit of selection and dedup.
        field_type: Catalog field this criterion filters on (shared reference).
        operator: One of ``field_type.supported_operators``.
        value: Typed value (str, int/float, bool, date, list of str) or None.
        display_value: Optional human rendering of the value.
        is_valid: Cached validator output. Recompute after every edit and never
            trust it on criteria decoded from untrusted input.
    """

    id: str
    field_type: FieldType
    operator: Operator
    value: Any = None
    display_value: Optional[str] = None
    is_valid: bool = False

    @property
    def field_id(self) -> str:
        return self.field_type.id

    def with_changes(self, **changes: Any) -> Criterion:
        """Return an edited copy keeping the same id.

        The returned criterion still carries the old ``is_valid`` flag; pass it
        through ``FacetQuery.validation.refresh_validity`` afterwards.
        """
        changes.pop("id", None)
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class Query:
    """Ordered criteria plus the operator combining them.

    Order is significant for serialization and display only.

    Attributes:
        criteria: Criteria in display order.
        raw_query: Raw text the query was typed as, if any.
        logical_operator: AND/OR combination.
        is_valid: Cached validator output.
    """

    criteria: Sequence[Criterion] = ()
    raw_query: Optional[str] = None
    logical_operator: LogicalOperator = LogicalOperator.AND
    is_valid: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "criteria", tuple(self.criteria))

    @property
    def field_ids(self) -> list[str]:
        return [c.field_id for c in self.criteria]
