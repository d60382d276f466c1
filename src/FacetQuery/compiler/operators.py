"""Operator prefix table for the raw query grammar.

Order matters: parsing tries prefixes top to bottom, so two-character
prefixes come before their one-character heads (``>=`` before ``>``).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final, Mapping

from FacetQuery.core.models import OperatorKind

PREFIX_TABLE: Final[tuple[tuple[str, OperatorKind], ...]] = (
    (">=", OperatorKind.GTE),
    ("<=", OperatorKind.LTE),
    (">", OperatorKind.GT),
    ("<", OperatorKind.LT),
    ("!=", OperatorKind.NOT_EQUALS),
    ("=", OperatorKind.EQUALS),
    ("~", OperatorKind.CONTAINS),
    ("^", OperatorKind.STARTS_WITH),
    ("$", OperatorKind.ENDS_WITH),
)

PREFIX_BY_KIND: Final[Mapping[OperatorKind, str]] = MappingProxyType(
    {kind: prefix for prefix, kind in PREFIX_TABLE}
)

EMPTY_KEYWORD: Final = "empty"
NOT_EMPTY_KEYWORD: Final = "not-empty"


def prefix_for(kind: OperatorKind) -> str:
    """Return the raw-query prefix for an operator ("" when it has none)."""
    return PREFIX_BY_KIND.get(kind, "")
