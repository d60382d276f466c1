"""Catalog configuration: field type definitions supplied by the host."""

from __future__ import annotations

from typing import Any, Mapping

from FacetQuery.config.common import (
    expect_bool,
    expect_choice,
    expect_enum,
    expect_int,
    expect_list,
    expect_mapping,
    expect_str,
    expect_str_list,
    get_optional_value,
    get_required_value,
    get_section,
)
from FacetQuery.core.models import (
    OPERATOR_LABELS,
    Catalog,
    FieldType,
    Operator,
    OperatorKind,
    ValidationRule,
    ValueKind,
)

_ALLOWED_RULE_TYPES = {"required", "pattern", "min", "max"}
_SELECT_KINDS = {ValueKind.SINGLE_SELECT, ValueKind.MULTI_SELECT}
_VALUELESS_KINDS = {OperatorKind.IS_EMPTY, OperatorKind.IS_NOT_EMPTY}


def load_catalog(raw: Mapping[str, Any]) -> Catalog:
    """Load the field catalog from raw mapping.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed catalog.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing or values are unknown.
    """
    section = get_section(raw, "catalog", required=True)
    fields_obj = expect_list(get_required_value(section, "fields", "catalog.fields"), "catalog.fields")
    fields = tuple(parse_field_type(item, f"catalog.fields[{idx}]") for idx, item in enumerate(fields_obj))
    seen: set[str] = set()
    for idx, field_type in enumerate(fields):
        if field_type.id in seen:
            raise ValueError(f"catalog.fields[{idx}].id is duplicated: {field_type.id}")
        seen.add(field_type.id)

    max_criteria_obj = get_optional_value(section, "max_criteria", None)
    max_criteria = None
    if max_criteria_obj is not None:
        max_criteria = expect_int(max_criteria_obj, "catalog.max_criteria")

    return Catalog(fields=fields, max_criteria=max_criteria)


def check_catalog(catalog: Catalog) -> None:
    """Validate catalog constraints.

    Args:
        catalog: Parsed catalog.

    Raises:
        ValueError: If values violate catalog constraints.
    """
    if not catalog.fields:
        raise ValueError("catalog.fields must include at least one field")
    if catalog.max_criteria is not None and catalog.max_criteria <= 0:
        raise ValueError("catalog.max_criteria must be positive")
    for field_type in catalog.fields:
        key = f"catalog.fields[{field_type.id}]"
        if not field_type.supported_operators:
            raise ValueError(f"{key}.operators must include at least one operator")
        if field_type.default_operator is not None and not field_type.supports(field_type.default_operator):
            raise ValueError(f"{key}.default_operator must be one of its operators")
        if field_type.value_kind in _SELECT_KINDS and not field_type.options:
            raise ValueError(f"{key}.options must be set for {field_type.value_kind.value} fields")


def parse_field_type(value: Any, config_key: str) -> FieldType:
    """Parse one field definition mapping into ``FieldType``.

    Args:
        value: Field mapping.
        config_key: Full key path used in error messages.

    Returns:
        Parsed field type.

    Raises:
        TypeError: If the field shape/types are invalid.
        ValueError: If kinds or operators are unknown.
    """
    section = expect_mapping(value, config_key)
    field_id = expect_str(get_required_value(section, "id", f"{config_key}.id"), f"{config_key}.id").strip()
    if not field_id:
        raise ValueError(f"{config_key}.id must not be empty")
    label = expect_str(get_optional_value(section, "label", field_id), f"{config_key}.label").strip() or field_id

    value_kind = expect_enum(
        ValueKind,
        get_required_value(section, "value_kind", f"{config_key}.value_kind"),
        f"{config_key}.value_kind",
    )

    operators_obj = expect_list(
        get_required_value(section, "operators", f"{config_key}.operators"),
        f"{config_key}.operators",
    )
    operators = tuple(
        _parse_operator(item, f"{config_key}.operators[{idx}]") for idx, item in enumerate(operators_obj)
    )

    default_obj = get_optional_value(section, "default_operator", None)
    default_operator = (
        expect_enum(OperatorKind, default_obj, f"{config_key}.default_operator") if default_obj is not None else None
    )

    options_obj = get_optional_value(section, "options", None)
    options = tuple(expect_str_list(options_obj, f"{config_key}.options")) if options_obj is not None else None

    rules_obj = expect_list(get_optional_value(section, "validation", []), f"{config_key}.validation")
    rules = tuple(_parse_rule(item, f"{config_key}.validation[{idx}]") for idx, item in enumerate(rules_obj))

    description_obj = get_optional_value(section, "description", None)
    description = expect_str(description_obj, f"{config_key}.description") if description_obj is not None else None

    return FieldType(
        id=field_id,
        label=label,
        value_kind=value_kind,
        supported_operators=operators,
        default_operator=default_operator,
        options=options,
        validation_rules=rules,
        description=description,
    )


def _parse_operator(value: Any, config_key: str) -> Operator:
    """Parse an operator given as a bare kind string or a mapping."""
    if isinstance(value, str):
        kind = expect_enum(OperatorKind, value, config_key)
        return Operator(kind=kind, label=OPERATOR_LABELS[kind], requires_value=kind not in _VALUELESS_KINDS)

    section = expect_mapping(value, config_key)
    kind = expect_enum(OperatorKind, get_required_value(section, "kind", f"{config_key}.kind"), f"{config_key}.kind")
    label = expect_str(get_optional_value(section, "label", OPERATOR_LABELS[kind]), f"{config_key}.label")
    requires_value = expect_bool(
        get_optional_value(section, "requires_value", kind not in _VALUELESS_KINDS),
        f"{config_key}.requires_value",
    )
    return Operator(kind=kind, label=label, requires_value=requires_value)


def _parse_rule(value: Any, config_key: str) -> ValidationRule:
    section = expect_mapping(value, config_key)
    rule_type = expect_str(get_required_value(section, "type", f"{config_key}.type"), f"{config_key}.type")
    expect_choice(rule_type, _ALLOWED_RULE_TYPES, f"{config_key}.type")
    message = expect_str(get_required_value(section, "message", f"{config_key}.message"), f"{config_key}.message")
    return ValidationRule(type=rule_type, message=message, value=section.get("value"))
