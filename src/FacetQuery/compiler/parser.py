"""Raw query parser.

Turns text such as ``branch-name:main iteration:>5 assignee:empty`` into typed
criteria resolved against a catalog.

Grammar
- token   := fieldKey ":" [prefix] value
- prefix  := ">=" | "<=" | ">" | "<" | "!=" | "=" | "~" | "^" | "$"
- value   := quoted-string | bare-token | comma-list
- fieldKey matches a field id, or the kebab-case form of its label

The parser is best-effort: tokens without a colon, unknown fields and
unusable operators are dropped, and nothing here raises on user input.
"""

from __future__ import annotations

from FacetQuery.compiler.operators import EMPTY_KEYWORD, NOT_EMPTY_KEYWORD, PREFIX_TABLE
from FacetQuery.compiler.tokenizer import tokenize
from FacetQuery.compiler.values import (
    convert_value,
    format_display_value,
    is_number_text,
    strip_quotes,
)
from FacetQuery.core.models import Catalog, FieldType, Operator, OperatorKind, ValueKind
from FacetQuery.core.query import Criterion, new_criterion_id
from FacetQuery.utils.log import log


def parse_raw_query(text: str, catalog: Catalog) -> list[Criterion]:
    """Parse raw query text into criteria.

    Args:
        text: Raw query text.
        catalog: Field catalog used to resolve field keys.

    Returns:
        Criteria in token order. Each criterion gets a fresh id.
    """
    if not text or not text.strip():
        return []

    criteria: list[Criterion] = []
    for token in tokenize(text):
        criterion = parse_token(token, catalog)
        if criterion is None:
            log.debug("Dropped unrecognized query token: %s", token)
            continue
        criteria.append(criterion)
    return criteria


def parse_token(token: str, catalog: Catalog) -> Criterion | None:
    """Parse a single ``field:value`` token, or return None when unusable."""
    key, sep, remainder = token.partition(":")
    if not sep:
        return None

    field_type = catalog.resolve(key)
    if field_type is None:
        return None

    operator, raw_value = split_operator(remainder, field_type)
    if operator is None:
        return None

    return Criterion(
        id=new_criterion_id(),
        field_type=field_type,
        operator=operator,
        value=convert_value(raw_value, field_type),
        display_value=format_display_value(raw_value, field_type),
        is_valid=_is_parsed_value_valid(raw_value, field_type, operator),
    )


def split_operator(text: str, field_type: FieldType) -> tuple[Operator | None, str]:
    """Split the right-hand side of a token into operator and raw value.

    A prefix only wins when the field supports its operator; otherwise later
    prefixes are tried, then the ``empty``/``not-empty`` keywords, then the
    field's default operator with the whole text as value.

    Args:
        text: Text after the first colon.
        field_type: Resolved field.

    Returns:
        Tuple of (operator or None when the field has no operators, raw value).
    """
    for prefix, kind in PREFIX_TABLE:
        if text.startswith(prefix) and len(text) > len(prefix):
            operator = field_type.operator(kind)
            if operator is not None:
                return operator, text[len(prefix):]

    if text in (EMPTY_KEYWORD, "", '""'):
        operator = field_type.operator(OperatorKind.IS_EMPTY)
        if operator is not None:
            return operator, ""

    if text == NOT_EMPTY_KEYWORD:
        operator = field_type.operator(OperatorKind.IS_NOT_EMPTY)
        if operator is not None:
            return operator, ""

    return field_type.fallback_operator(), text


def _is_parsed_value_valid(raw_value: str, field_type: FieldType, operator: Operator) -> bool:
    if not operator.requires_value:
        return True
    clean = strip_quotes(raw_value)
    if not clean.strip():
        return False
    if field_type.value_kind == ValueKind.NUMBER:
        return is_number_text(clean)
    return True


def is_valid_raw_query(text: str, catalog: Catalog) -> bool:
    """Return whether the text yields at least one criterion."""
    return len(parse_raw_query(text, catalog)) > 0


def count_unparsed_terms(text: str, catalog: Catalog) -> int:
    """Count ``field:value``-shaped tokens the parser could not understand.

    Used to show a "some terms were not understood" notice.
    """
    if not text or not text.strip():
        return 0
    return sum(1 for token in tokenize(text) if ":" in token and parse_token(token, catalog) is None)
