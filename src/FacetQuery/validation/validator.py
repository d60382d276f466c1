"""Criteria validator.

`validate` runs independent passes over a query and concatenates their
findings; no pass short-circuits another:

1. presence of any criteria or raw text
2. per-criterion operator and value checks
3. duplicate ``(field, operator)`` pairs
4. per-field conflicts (equals vs not-equals, empty numeric ranges,
   two different values for a single-select field)
5. empty/not-empty operators combined with OR
6. catalog ``max_criteria`` limit

The conflict rules are a small fixed set of pairwise checks, not a constraint
solver.
"""

from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import Any, Iterable, Sequence

from FacetQuery.compiler.values import is_missing, is_number_text, parse_date
from FacetQuery.config.validation import ValidationConfig
from FacetQuery.core.models import Catalog, OperatorKind, ValidationRule, ValueKind
from FacetQuery.core.query import Criterion, LogicalOperator, Query
from FacetQuery.utils.log import log
from FacetQuery.validation.findings import (
    FindingKind,
    ValidationFinding,
    ValidationResult,
    is_query_valid,
)

_DEFAULT_CONFIG = ValidationConfig()

_LOWER_BOUNDS = (OperatorKind.GT, OperatorKind.GTE)
_UPPER_BOUNDS = (OperatorKind.LT, OperatorKind.LTE)
_EMPTINESS = (OperatorKind.IS_EMPTY, OperatorKind.IS_NOT_EMPTY)
_LIST_OPERATORS = (OperatorKind.IN, OperatorKind.NOT_IN)


def validate(
    query: Query,
    logical_operator: LogicalOperator | None = None,
    *,
    config: ValidationConfig | None = None,
    catalog: Catalog | None = None,
) -> list[ValidationFinding]:
    """Validate a query.

    Args:
        query: Query to check.
        logical_operator: Combination to check against; defaults to
            ``query.logical_operator``.
        config: Validator settings; defaults apply when omitted.
        catalog: Catalog whose ``max_criteria`` limit applies, if any.

    Returns:
        Findings from all passes, in pass order. Empty when the query is clean.
    """
    config = config or _DEFAULT_CONFIG
    logical_operator = logical_operator or query.logical_operator
    criteria = list(query.criteria)

    findings: list[ValidationFinding] = []
    findings.extend(_check_presence(query))
    for criterion in criteria:
        findings.extend(validate_criterion(criterion, config=config))
    findings.extend(_check_duplicates(criteria))
    findings.extend(_check_conflicts(criteria))
    findings.extend(_check_logical_operator(criteria, logical_operator))
    if catalog is not None:
        findings.extend(_check_max_criteria(criteria, catalog.max_criteria))

    log.debug("Validated %d criteria: %d findings", len(criteria), len(findings))
    return findings


def validate_query(
    query: Query,
    logical_operator: LogicalOperator | None = None,
    *,
    config: ValidationConfig | None = None,
    catalog: Catalog | None = None,
) -> ValidationResult:
    """Validate a query and bundle the findings with the validity flag."""
    findings = validate(query, logical_operator, config=config, catalog=catalog)
    return ValidationResult(findings=tuple(findings), is_valid=is_query_valid(findings))


def with_validity(
    query: Query,
    *,
    config: ValidationConfig | None = None,
    catalog: Catalog | None = None,
) -> Query:
    """Return the query with every criterion and the query flag recomputed."""
    criteria = tuple(refresh_validity(c, config=config) for c in query.criteria)
    refreshed = replace(query, criteria=criteria)
    result = validate_query(refreshed, config=config, catalog=catalog)
    return replace(refreshed, is_valid=result.is_valid)


def refresh_validity(criterion: Criterion, *, config: ValidationConfig | None = None) -> Criterion:
    """Return the criterion with ``is_valid`` recomputed from its content."""
    is_valid = is_query_valid(validate_criterion(criterion, config=config))
    if is_valid == criterion.is_valid:
        return criterion
    return replace(criterion, is_valid=is_valid)


def validate_criterion(
    criterion: Criterion,
    *,
    config: ValidationConfig | None = None,
) -> list[ValidationFinding]:
    """Run the per-criterion checks for one criterion.

    Args:
        criterion: Criterion to check.
        config: Validator settings; defaults apply when omitted.

    Returns:
        Findings for this criterion only.
    """
    config = config or _DEFAULT_CONFIG
    field_type = criterion.field_type
    operator = criterion.operator
    key = f"criteria-{criterion.id}"
    findings: list[ValidationFinding] = []

    if operator not in field_type.supported_operators:
        findings.append(
            ValidationFinding(
                field=key,
                message=f"{field_type.label} does not support the '{operator.label}' operator",
                kind=FindingKind.FORMAT,
            )
        )

    if not operator.requires_value:
        return findings

    value = criterion.value
    if is_missing(value):
        findings.append(
            ValidationFinding(
                field=key,
                message=f"Value is required for {field_type.label} {operator.label}",
                kind=FindingKind.REQUIRED,
            )
        )
        return findings

    format_message = _type_mismatch(criterion)
    if format_message:
        findings.append(ValidationFinding(field=key, message=format_message, kind=FindingKind.FORMAT))

    if field_type.value_kind == ValueKind.TEXT and isinstance(value, str):
        if not 1 <= len(value) <= config.max_text_length:
            findings.append(
                ValidationFinding(
                    field=key,
                    message=f"{field_type.label} must be between 1 and {config.max_text_length} characters",
                    kind=FindingKind.CONSTRAINT,
                )
            )

    if field_type.id in config.counter_fields:
        range_message = _counter_range_problem(criterion)
        if range_message:
            findings.append(
                ValidationFinding(field=key, message=range_message, kind=FindingKind.CONSTRAINT)
            )

    for rule in field_type.validation_rules:
        rule_finding = _apply_rule(rule, value, key)
        if rule_finding is not None:
            findings.append(rule_finding)

    return findings


def _check_presence(query: Query) -> list[ValidationFinding]:
    if query.criteria or (query.raw_query and query.raw_query.strip()):
        return []
    return [
        ValidationFinding(
            field="query",
            message="At least one search criteria is required",
            kind=FindingKind.REQUIRED,
        )
    ]


def _type_mismatch(criterion: Criterion) -> str | None:
    """Return a message when the value does not fit the field's kind."""
    field_type = criterion.field_type
    value = criterion.value
    kind = field_type.value_kind

    if kind == ValueKind.NUMBER:
        if _as_number(value) is None:
            return f"{field_type.label} must be a valid number"
    elif kind == ValueKind.DATE:
        if isinstance(value, str):
            if parse_date(value) is None:
                return f"{field_type.label} must be a valid date"
        elif not hasattr(value, "isoformat"):
            return f"{field_type.label} must be a valid date"
    elif kind in (ValueKind.SINGLE_SELECT, ValueKind.MULTI_SELECT) and field_type.options:
        invalid = [item for item in _select_items(criterion) if item not in field_type.options]
        if invalid:
            return f"{field_type.label} has unknown option(s): {', '.join(invalid)}"
    return None


def _select_items(criterion: Criterion) -> list[str]:
    value = criterion.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value]
    text = str(value)
    if criterion.field_type.value_kind == ValueKind.MULTI_SELECT or criterion.operator.kind in _LIST_OPERATORS:
        return [part.strip() for part in text.split(",") if part.strip()]
    return [text]


def _counter_range_problem(criterion: Criterion) -> str | None:
    number = _as_number(criterion.value)
    if number is None:
        return None
    label = criterion.field_type.label
    kind = criterion.operator.kind
    if kind in _UPPER_BOUNDS and number <= 0:
        return f"{label} upper bound must be greater than 0"
    if kind in _LOWER_BOUNDS and number < 0:
        return f"{label} lower bound must be 0 or greater"
    return None


def _apply_rule(rule: ValidationRule, value: Any, key: str) -> ValidationFinding | None:
    rule_type = rule.type
    if rule_type == "required":
        if is_missing(value):
            return ValidationFinding(field=key, message=rule.message, kind=FindingKind.REQUIRED)
    elif rule_type == "pattern":
        try:
            matched = re.search(str(rule.value), str(value)) is not None
        except re.error:
            log.debug("Skipping invalid pattern rule: %s", rule.value)
            return None
        if not matched:
            return ValidationFinding(field=key, message=rule.message, kind=FindingKind.FORMAT)
    elif rule_type in ("min", "max"):
        number = _as_number(value)
        bound = _as_number(rule.value)
        if number is None or bound is None:
            return None
        if (rule_type == "min" and number < bound) or (rule_type == "max" and number > bound):
            return ValidationFinding(field=key, message=rule.message, kind=FindingKind.CONSTRAINT)
    return None


def _check_duplicates(criteria: Sequence[Criterion]) -> list[ValidationFinding]:
    groups: dict[tuple[str, OperatorKind], list[Criterion]] = {}
    for criterion in criteria:
        groups.setdefault((criterion.field_id, criterion.operator.kind), []).append(criterion)

    duplicated = [group for group in groups.values() if len(group) > 1]
    if not duplicated:
        return []

    field_ids = _unique(group[0].field_id for group in duplicated)
    labels = _unique(f"{group[0].field_type.label} ({group[0].operator.label})" for group in duplicated)
    return [
        ValidationFinding(
            field=",".join(field_ids),
            message=f"Duplicate criteria: {', '.join(labels)}",
            kind=FindingKind.DUPLICATE,
        )
    ]


def _check_conflicts(criteria: Sequence[Criterion]) -> list[ValidationFinding]:
    by_field: dict[str, list[Criterion]] = {}
    for criterion in criteria:
        by_field.setdefault(criterion.field_id, []).append(criterion)

    findings: list[ValidationFinding] = []
    for field_id, group in by_field.items():
        if len(group) < 2:
            continue
        field_type = group[0].field_type
        label = field_type.label
        kinds = {c.operator.kind for c in group}

        if OperatorKind.EQUALS in kinds and OperatorKind.NOT_EQUALS in kinds:
            findings.append(
                ValidationFinding(
                    field=field_id,
                    message=f"{label} is both required to equal and not equal a value",
                    kind=FindingKind.CONFLICT,
                )
            )

        if field_type.value_kind == ValueKind.NUMBER and _is_empty_range(group):
            findings.append(
                ValidationFinding(
                    field=field_id,
                    message=f"{label} range is impossible: lower bound is not below upper bound",
                    kind=FindingKind.CONFLICT,
                )
            )

        if field_type.value_kind == ValueKind.SINGLE_SELECT:
            equals_values = _unique(
                str(c.value) for c in group if c.operator.kind == OperatorKind.EQUALS and not is_missing(c.value)
            )
            if len(equals_values) > 1:
                findings.append(
                    ValidationFinding(
                        field=field_id,
                        message=f"{label} cannot equal {' and '.join(equals_values)} at the same time",
                        kind=FindingKind.CONFLICT,
                    )
                )
    return findings


def _is_empty_range(group: Iterable[Criterion]) -> bool:
    """Return whether the strictest lower and upper bounds leave no values."""
    lower: tuple[float, bool] | None = None
    upper: tuple[float, bool] | None = None
    for criterion in group:
        number = _as_number(criterion.value)
        if number is None:
            continue
        kind = criterion.operator.kind
        if kind in _LOWER_BOUNDS:
            inclusive = kind == OperatorKind.GTE
            if lower is None or number > lower[0] or (number == lower[0] and not inclusive):
                lower = (number, inclusive)
        elif kind in _UPPER_BOUNDS:
            inclusive = kind == OperatorKind.LTE
            if upper is None or number < upper[0] or (number == upper[0] and not inclusive):
                upper = (number, inclusive)

    if lower is None or upper is None:
        return False
    if lower[0] > upper[0]:
        return True
    return lower[0] == upper[0] and not (lower[1] and upper[1])


def _check_logical_operator(
    criteria: Sequence[Criterion],
    logical_operator: LogicalOperator,
) -> list[ValidationFinding]:
    if logical_operator != LogicalOperator.OR:
        return []
    field_ids = _unique(c.field_id for c in criteria if c.operator.kind in _EMPTINESS)
    labels = {c.field_id: c.field_type.label for c in criteria}
    return [
        ValidationFinding(
            field=field_id,
            message=f"'{labels[field_id]}' empty/not-empty checks combined with OR may match more than expected",
            kind=FindingKind.CONSTRAINT,
        )
        for field_id in field_ids
    ]


def _check_max_criteria(criteria: Sequence[Criterion], max_criteria: int | None) -> list[ValidationFinding]:
    if max_criteria is None or len(criteria) <= max_criteria:
        return []
    return [
        ValidationFinding(
            field="query",
            message=f"At most {max_criteria} criteria are supported (got {len(criteria)})",
            kind=FindingKind.CONSTRAINT,
        )
    ]


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and is_number_text(value):
        return float(value)
    return None


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))
