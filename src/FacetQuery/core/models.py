"""Catalog data model: field types, operators and their lookup.

Everything in this module is immutable. A `Catalog` is built once by the host
application (usually from the `catalog` config section) and shared by the
compiler, the validator and the suggestion ranker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Sequence


class ValueKind(str, Enum):
    """Kind of value a field accepts."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"


class OperatorKind(str, Enum):
    """Closed set of comparison operators."""

    CONTAINS = "contains"
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    STARTS_WITH = "starts-with"
    ENDS_WITH = "ends-with"
    IS_EMPTY = "is-empty"
    IS_NOT_EMPTY = "is-not-empty"
    IN = "in"
    NOT_IN = "not-in"


# Default human labels, used when an operator is referenced without a
# catalog-provided label (e.g. operator-usage suggestions).
OPERATOR_LABELS: Mapping[OperatorKind, str] = MappingProxyType(
    {
        OperatorKind.CONTAINS: "contains",
        OperatorKind.EQUALS: "equals",
        OperatorKind.NOT_EQUALS: "not equals",
        OperatorKind.GT: "greater than",
        OperatorKind.LT: "less than",
        OperatorKind.GTE: "greater than or equal",
        OperatorKind.LTE: "less than or equal",
        OperatorKind.STARTS_WITH: "starts with",
        OperatorKind.ENDS_WITH: "ends with",
        OperatorKind.IS_EMPTY: "is empty",
        OperatorKind.IS_NOT_EMPTY: "is not empty",
        OperatorKind.IN: "in",
        OperatorKind.NOT_IN: "not in",
    }
)

_WHITESPACE_RE = re.compile(r"\s+")


def slugify_label(label: str) -> str:
    """Return the lower-kebab-case form of a field label ("Branch Name" -> "branch-name")."""
    return _WHITESPACE_RE.sub("-", label.strip().lower())


@dataclass(frozen=True, slots=True)
class Operator:
    """A comparison operator as offered by one field type.

    Attributes:
        kind: Operator kind.
        label: Display label (e.g. "is", "after").
        requires_value: Whether a criterion with this operator needs a value.
    """

    kind: OperatorKind
    label: str
    requires_value: bool = True


@dataclass(frozen=True, slots=True)
class ValidationRule:
    """Per-field validation rule applied by the criterion validator.

    Attributes:
        type: One of ``required``, ``pattern``, ``min``, ``max``.
        message: Message reported when the rule fails.
        value: Rule argument (regex for ``pattern``, bound for ``min``/``max``).
    """

    type: str
    message: str
    value: Any = None


@dataclass(frozen=True, slots=True)
class FieldType:
    """A filterable attribute definition.

    Attributes:
        id: Stable field identifier used in raw queries (e.g. "branch-name").
        label: Human label; its kebab-case form is accepted as a query key too.
        value_kind: Kind of value the field holds.
        supported_operators: Operators legal for this field, in display order.
        default_operator: Operator used when a raw token carries no prefix.
        options: Allowed values for select fields.
        validation_rules: Extra rules checked by the validator.
        description: Optional help text.
    """

    id: str
    label: str
    value_kind: ValueKind
    supported_operators: Sequence[Operator]
    default_operator: Optional[OperatorKind] = None
    options: Optional[Sequence[str]] = None
    validation_rules: Sequence[ValidationRule] = ()
    description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "supported_operators", tuple(self.supported_operators))
        object.__setattr__(self, "validation_rules", tuple(self.validation_rules))
        if self.options is not None:
            object.__setattr__(self, "options", tuple(self.options))

    @property
    def slug(self) -> str:
        return slugify_label(self.label)

    def operator(self, kind: OperatorKind) -> Operator | None:
        """Return the supported operator of the given kind, if any."""
        for op in self.supported_operators:
            if op.kind == kind:
                return op
        return None

    def supports(self, kind: OperatorKind) -> bool:
        return self.operator(kind) is not None

    def fallback_operator(self) -> Operator | None:
        """Return the declared default operator, else the first supported one."""
        if self.default_operator is not None:
            op = self.operator(self.default_operator)
            if op is not None:
                return op
        return self.supported_operators[0] if self.supported_operators else None


@dataclass(frozen=True, slots=True)
class Catalog:
    """Ordered, read-only set of field types.

    Attributes:
        fields: Field types in display order. Ids must be unique.
        max_criteria: Optional upper bound on criteria per query.
    """

    fields: Sequence[FieldType]
    max_criteria: Optional[int] = None
    _by_id: Mapping[str, FieldType] = field(init=False, repr=False, compare=False)
    _by_slug: Mapping[str, FieldType] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        by_id: dict[str, FieldType] = {}
        by_slug: dict[str, FieldType] = {}
        for field_type in fields:
            if field_type.id in by_id:
                raise ValueError(f"Duplicate field id in catalog: {field_type.id}")
            by_id[field_type.id] = field_type
            by_slug.setdefault(field_type.slug, field_type)
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "_by_id", MappingProxyType(by_id))
        object.__setattr__(self, "_by_slug", MappingProxyType(by_slug))

    def __iter__(self) -> Iterator[FieldType]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._by_id

    def get(self, field_id: str) -> FieldType | None:
        """Return the field type with exactly this id."""
        return self._by_id.get(field_id)

    def resolve(self, key: str) -> FieldType | None:
        """Resolve a raw-query field key by exact id, then by kebab-case label."""
        return self._by_id.get(key) or self._by_slug.get(key)

    def label_for(self, field_id: str) -> str:
        """Return the label for a field id, or the id itself when unknown."""
        field_type = self._by_id.get(field_id)
        return field_type.label if field_type else field_id
