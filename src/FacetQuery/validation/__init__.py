"""Criteria validation: findings, severities and the validator passes."""

from __future__ import annotations

from FacetQuery.validation.findings import (
    SEVERITY_BY_KIND,
    FindingKind,
    Severity,
    ValidationFinding,
    ValidationResult,
    is_query_valid,
)
from FacetQuery.validation.validator import (
    refresh_validity,
    validate,
    validate_criterion,
    validate_query,
    with_validity,
)

__all__ = [
    "SEVERITY_BY_KIND",
    "FindingKind",
    "Severity",
    "ValidationFinding",
    "ValidationResult",
    "is_query_valid",
    "refresh_validity",
    "validate",
    "validate_criterion",
    "validate_query",
    "with_validity",
]
