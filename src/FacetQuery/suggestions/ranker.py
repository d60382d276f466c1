"""Suggestion ranking over history, templates and learned behavior patterns."""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from typing import Any, Callable, Iterable, Mapping, Sequence

from FacetQuery.compiler.values import is_missing, value_to_text
from FacetQuery.config.suggestions import SuggestionsConfig
from FacetQuery.core.models import OPERATOR_LABELS, FieldType, OperatorKind
from FacetQuery.suggestions.models import (
    BehaviorPattern,
    HistoryEntry,
    SearchTemplate,
    SuggestionContext,
    SuggestionItem,
    SuggestionKind,
)
from FacetQuery.suggestions.patterns import BehaviorPatternStore
from FacetQuery.utils.dates import ensure_aware, utc_now
from FacetQuery.utils.log import log

MAX_COMPLETIONS = 8
FREQUENT_VALUES_LIMIT = 5
RECENT_TEMPLATE_DAYS = 7

Generator = Callable[[SuggestionContext], list[SuggestionItem]]


def frequent_fields(history: Iterable[HistoryEntry]) -> list[tuple[str, int]]:
    """Count field ids across history criteria, most frequent first."""
    counts: Counter[str] = Counter()
    for entry in history:
        for criterion in entry.query.criteria:
            counts[criterion.field_id] += 1
    return counts.most_common()


def frequent_values(
    history: Iterable[HistoryEntry],
    field_id: str,
    limit: int = FREQUENT_VALUES_LIMIT,
) -> list[tuple[str, int]]:
    """Count the values used with a field across history, most frequent first."""
    counts: Counter[str] = Counter()
    for entry in history:
        for criterion in entry.query.criteria:
            # Falsy values such as 0 and False are not offered.
            if criterion.field_id == field_id and criterion.value and not is_missing(criterion.value):
                counts[value_to_text(criterion.value)] += 1
    return counts.most_common(limit)


def smart_completions(
    text: str,
    history: Iterable[HistoryEntry],
    templates: Iterable[SearchTemplate],
    field: FieldType | None = None,
) -> list[str]:
    """Historical and template values that contain ``text`` without equalling it.

    Args:
        text: Partial input; fewer than two characters yields nothing.
        history: History entries, searched first.
        templates: Saved templates, searched after history.
        field: Restrict to values of this field.

    Returns:
        Up to eight distinct values in first-seen order.
    """
    if not text or len(text) < 2:
        return []
    needle = text.lower()

    queries = [entry.query for entry in history] + [template.query for template in templates]
    completions: dict[str, None] = {}
    for query in queries:
        for criterion in query.criteria:
            if field is not None and criterion.field_id != field.id:
                continue
            if is_missing(criterion.value):
                continue
            candidate = value_to_text(criterion.value)
            lowered = candidate.lower()
            if needle in lowered and lowered != needle:
                completions.setdefault(candidate, None)
    return list(completions)[:MAX_COMPLETIONS]


class SuggestionRanker:
    """Ranks next-step suggestions for a search session."""

    def __init__(
        self,
        patterns: BehaviorPatternStore,
        config: SuggestionsConfig | None = None,
    ) -> None:
        self.patterns = patterns
        self.config = config or SuggestionsConfig()
        self._generators: tuple[tuple[str, Generator], ...] = (
            ("frequent_fields", self._frequent_field_suggestions),
            ("related_fields", self._related_field_suggestions),
            ("value_completions", self._value_completion_suggestions),
            ("frequent_values", self._frequent_value_suggestions),
            ("operators", self._operator_suggestions),
            ("templates", self._template_suggestions),
            ("recent_queries", self._recent_query_suggestions),
            ("behavior_patterns", self._behavior_pattern_suggestions),
        )

    def get_suggestions(self, context: SuggestionContext, limit: int | None = None) -> list[SuggestionItem]:
        """Rank suggestions for the given context.

        Args:
            context: Current criteria, input, catalog and collaborator data.
            limit: Maximum number of suggestions; defaults to ``config.limit``.

        Returns:
            Deduplicated suggestions, highest score first.
        """
        candidates: list[SuggestionItem] = []
        for name, generate in self._generators:
            try:
                produced = generate(context)
            except Exception as error:  # noqa: BLE001 - generator failure must be isolated
                log.warning("Suggestion generator failed: generator=%s error=%s", name, error)
                continue
            log.debug("Suggestion generator completed: generator=%s count=%d", name, len(produced))
            candidates.extend(produced)

        ranked = sorted(_deduplicate(candidates), key=lambda item: -item.score)
        return ranked[: self.config.limit if limit is None else max(limit, 0)]

    def track_behavior(self, action: str, payload: Mapping[str, Any] | None = None, **kwargs: Any) -> BehaviorPattern | None:
        return self.patterns.track_behavior(action, payload, **kwargs)

    def _active_patterns(self) -> list[BehaviorPattern]:
        return [p for p in self.patterns.snapshot() if p.confidence > self.config.min_confidence]

    def _frequent_field_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        current = set(context.current_field_ids)
        items: list[SuggestionItem] = []
        for field_id, frequency in frequent_fields(context.recent_history):
            if field_id in current:
                continue
            # History may reference fields that left the catalog.
            field_type = context.catalog.get(field_id)
            if field_type is None:
                continue
            items.append(
                SuggestionItem(
                    id=f"field-{field_type.id}",
                    kind=SuggestionKind.FIELD,
                    label=field_type.label,
                    value=field_type,
                    score=min(frequency * 0.1, 1.0),
                    reason="frequently_used",
                    category="fields",
                    description=f"Used {frequency} times recently",
                )
            )
        return items

    def _related_field_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        current = set(context.current_field_ids)
        related: dict[str, None] = {}
        for pattern in self._active_patterns():
            if current and not (pattern.related_field_ids & current):
                continue
            for field_id in sorted(pattern.related_field_ids - current):
                related.setdefault(field_id, None)

        items: list[SuggestionItem] = []
        for field_id in related:
            field_type = context.catalog.get(field_id)
            if field_type is None:
                continue
            items.append(
                SuggestionItem(
                    id=f"related-{field_type.id}",
                    kind=SuggestionKind.FIELD,
                    label=field_type.label,
                    value=field_type,
                    score=0.8,
                    reason="related_pattern",
                    category="fields",
                    description=field_type.description,
                )
            )
        return items

    def _value_completion_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        if context.active_field is None:
            return []
        completions = smart_completions(
            context.current_input,
            context.recent_history,
            context.templates,
            field=context.active_field,
        )
        return [
            SuggestionItem(
                id=f"completion-{index}",
                kind=SuggestionKind.COMPLETION,
                label=completion,
                value=completion,
                score=round(0.9 - index * 0.1, 4),
                reason="auto_complete",
                category="values",
                description="From your search history",
            )
            for index, completion in enumerate(completions)
        ]

    def _frequent_value_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        field_type = context.active_field
        if field_type is None:
            return []
        needle = context.current_input.lower()
        items: list[SuggestionItem] = []
        for value, frequency in frequent_values(context.recent_history, field_type.id):
            if needle and needle not in value.lower():
                continue
            items.append(
                SuggestionItem(
                    id=f"frequent-{field_type.id}-{value}",
                    kind=SuggestionKind.VALUE,
                    label=value,
                    value=value,
                    score=min(frequency * 0.2, 0.8),
                    reason="frequent_value",
                    category="values",
                    description=f"Used {frequency} times",
                )
            )
        return items

    def _operator_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        field_type = context.active_field
        if field_type is None:
            return []
        prefix = f"operator:{field_type.id}:"
        usage: Counter[str] = Counter()
        for pattern in self.patterns.snapshot():
            if field_type.id not in pattern.related_field_ids:
                continue
            for key, count in pattern.common_values.items():
                if key.startswith(prefix):
                    usage[key[len(prefix):]] += count

        items: list[SuggestionItem] = []
        for kind_text, count in usage.most_common():
            try:
                kind = OperatorKind(kind_text)
            except ValueError:
                continue
            operator = field_type.operator(kind)
            label = operator.label if operator else OPERATOR_LABELS.get(kind, kind.value)
            items.append(
                SuggestionItem(
                    id=f"operator-{kind.value}",
                    kind=SuggestionKind.OPERATOR,
                    label=label,
                    value=kind,
                    score=min(count * 0.1, 0.7),
                    reason="operator_pattern",
                    category="operators",
                    description=f"Used {count} times with {field_type.label}",
                )
            )
        return items

    def _template_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        candidates = sorted(context.templates, key=lambda t: -t.usage_count)
        candidates = candidates[: self.config.template_candidates]
        items: list[SuggestionItem] = []
        for template in candidates:
            relevance = self.template_relevance(template, context)
            if relevance <= 0.3:
                continue
            items.append(
                SuggestionItem(
                    id=f"template-{template.id}",
                    kind=SuggestionKind.TEMPLATE,
                    label=template.name,
                    value=template,
                    score=relevance,
                    reason="relevant_template",
                    category="templates",
                    description=template.description or f"Used {template.usage_count} times",
                )
            )
        return items

    def template_relevance(self, template: SearchTemplate, context: SuggestionContext) -> float:
        """Score a template against the current criteria.

        ``min(usage * 0.1, 0.4)`` plus 0.3 per overlapping field id plus 0.2
        when used within the last seven days, capped at 1.0.
        """
        score = min(template.usage_count * 0.1, 0.4)
        current = set(context.current_field_ids)
        overlap = sum(1 for field_id in template.query.field_ids if field_id in current)
        score += overlap * 0.3
        if template.last_used_at is not None:
            now = ensure_aware(context.now) if context.now else utc_now()
            if now - ensure_aware(template.last_used_at) < timedelta(days=RECENT_TEMPLATE_DAYS):
                score += 0.2
        return round(min(score, 1.0), 4)

    def _recent_query_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        if len(context.current_input) <= 1:
            return []
        needle = context.current_input.lower()
        return [
            SuggestionItem(
                id=f"recent-query-{entry.id}",
                kind=SuggestionKind.COMPLETION,
                label=entry.raw_query,
                value=entry.raw_query,
                score=0.6,
                reason="recent_query",
                category="completions",
                description=f"From {entry.timestamp.date().isoformat()}",
            )
            for entry in context.recent_history
            if needle in entry.raw_query.lower()
        ]

    def _behavior_pattern_suggestions(self, context: SuggestionContext) -> list[SuggestionItem]:
        current = set(context.current_field_ids)
        items: list[SuggestionItem] = []
        for pattern in self._active_patterns():
            if current and not (pattern.related_field_ids & current):
                continue
            for field_id in sorted(pattern.related_field_ids - current):
                field_type = context.catalog.get(field_id)
                if field_type is None:
                    continue
                items.append(
                    SuggestionItem(
                        id=f"pattern-field-{pattern.id}-{field_id}",
                        kind=SuggestionKind.FIELD,
                        label=field_type.label,
                        value=field_type,
                        score=round(pattern.confidence * 0.6, 4),
                        reason="behavior_pattern",
                        category="patterns",
                        description=f'From pattern "{pattern.label}" (used {pattern.frequency} times)',
                    )
                )
        return items


def _deduplicate(items: Sequence[SuggestionItem]) -> list[SuggestionItem]:
    """Collapse items sharing (kind, label, value identity); the higher score wins the first slot."""
    winners: dict[tuple[str, str, str], SuggestionItem] = {}
    ordered_keys: list[tuple[str, str, str]] = []
    for item in items:
        key = _dedup_key(item)
        existing = winners.get(key)
        if existing is None:
            winners[key] = item
            ordered_keys.append(key)
            continue
        if item.score > existing.score:
            winners[key] = item
    return [winners[key] for key in ordered_keys]


def _dedup_key(item: SuggestionItem) -> tuple[str, str, str]:
    identity = getattr(item.value, "id", None)
    if identity is None:
        identity = item.value.value if isinstance(item.value, OperatorKind) else str(item.value)
    return (item.kind.value, item.label, str(identity))
