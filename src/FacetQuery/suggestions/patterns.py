"""Behavior pattern store.

Learns which field combinations are searched together. This is the only
mutable state in the engine: writers take a lock and publish a fresh tuple,
so a ranking call always reads a complete snapshot.
"""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Mapping, Sequence

from FacetQuery.config.suggestions import SuggestionsConfig
from FacetQuery.core.query import Criterion
from FacetQuery.storage.base import PATTERNS_KEY, PersistenceError, PersistenceStore
from FacetQuery.suggestions.models import BehaviorPattern
from FacetQuery.utils.dates import ensure_aware, parse_timestamp, utc_now
from FacetQuery.utils.log import log

SEARCH_EXECUTED = "search_executed"

INITIAL_CONFIDENCE = 0.5
CONFIDENCE_STEP = 0.1


def pattern_id_for(field_ids: Sequence[str]) -> str:
    """Return the pattern id for a set of field ids (sorted, ``+``-joined)."""
    return "+".join(sorted(field_ids))


def operator_counter_key(field_id: str, operator_kind: str) -> str:
    return f"operator:{field_id}:{operator_kind}"


def encode_pattern(pattern: BehaviorPattern) -> dict[str, Any]:
    return {
        "id": pattern.id,
        "label": pattern.label,
        "frequency": pattern.frequency,
        "last_used_at": pattern.last_used_at.isoformat(),
        "confidence": pattern.confidence,
        "related_field_ids": sorted(pattern.related_field_ids),
        "common_values": dict(pattern.common_values),
    }


def decode_pattern(data: Any) -> BehaviorPattern:
    """Decode one stored pattern.

    Raises:
        ValueError: If the payload is malformed.
    """
    if not isinstance(data, Mapping):
        raise ValueError("pattern must be an object")

    pattern_id = data.get("id")
    if not isinstance(pattern_id, str) or not pattern_id:
        raise ValueError("pattern.id must be a non-empty string")

    frequency = data.get("frequency")
    if isinstance(frequency, bool) or not isinstance(frequency, int) or frequency < 1:
        raise ValueError("pattern.frequency must be a positive integer")

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise ValueError("pattern.confidence must be a number")

    related = data.get("related_field_ids")
    if related is None:
        related = pattern_id.split("+")
    if not isinstance(related, list) or not all(isinstance(item, str) for item in related):
        raise ValueError("pattern.related_field_ids must be a list of strings")

    counters_obj = data.get("common_values") or {}
    if not isinstance(counters_obj, Mapping):
        raise ValueError("pattern.common_values must be an object")
    counters: dict[str, int] = {}
    for key, count in counters_obj.items():
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"pattern.common_values.{key} must be an integer")
        counters[str(key)] = count

    label = data.get("label")
    return BehaviorPattern(
        id=pattern_id,
        label=label if isinstance(label, str) and label else pattern_id.replace("+", " + "),
        frequency=frequency,
        last_used_at=parse_timestamp(data.get("last_used_at")),
        confidence=min(max(float(confidence), 0.0), 1.0),
        related_field_ids=frozenset(related),
        common_values=counters,
    )


class BehaviorPatternStore:
    """Persisted, lock-guarded list of behavior patterns, most recently touched first."""

    def __init__(
        self,
        store: PersistenceStore,
        config: SuggestionsConfig | None = None,
        *,
        now: datetime | None = None,
    ) -> None:
        """Load patterns and prune stale ones.

        Args:
            store: Persistence port the patterns are read from and saved to.
            config: Suggestion settings; defaults apply when omitted.
            now: Reference time for pruning; defaults to the current time.
        """
        self.store = store
        self.config = config or SuggestionsConfig()
        self._lock = threading.Lock()
        self._patterns: tuple[BehaviorPattern, ...] = ()
        self._interactions: tuple[str, ...] = ()
        self._load(ensure_aware(now) if now else utc_now())

    def snapshot(self) -> tuple[BehaviorPattern, ...]:
        """Return the current patterns as an immutable tuple."""
        return self._patterns

    def interactions(self) -> tuple[str, ...]:
        """Return the recent-interaction log, newest first."""
        return self._interactions

    def get(self, pattern_id: str) -> BehaviorPattern | None:
        for pattern in self._patterns:
            if pattern.id == pattern_id:
                return pattern
        return None

    def track_behavior(
        self,
        action: str,
        payload: Mapping[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> BehaviorPattern | None:
        """Record an interaction and learn from executed searches.

        Args:
            action: Interaction name, e.g. ``search_executed``.
            payload: Interaction details; ``criteria`` holds the executed
                criteria for ``search_executed``.
            now: Interaction time; defaults to the current time.

        Returns:
            The created or updated pattern, or None when no pattern changed.
        """
        moment = ensure_aware(now) if now else utc_now()
        payload = payload or {}
        entry = f"{action}:{_dump_payload(payload)}:{moment.isoformat()}"

        with self._lock:
            interactions = (entry, *self._interactions)[: self.config.max_interactions]
            touched = None
            patterns = self._patterns
            criteria = _criteria_from(payload)
            if action == SEARCH_EXECUTED and criteria:
                touched, patterns = self._learn(criteria, moment)

            self._patterns = patterns
            self._interactions = interactions
            self._save(moment)

        if touched is not None:
            log.debug(
                "Pattern %s: frequency=%d confidence=%.2f",
                touched.id,
                touched.frequency,
                touched.confidence,
            )
        return touched

    def _learn(
        self,
        criteria: Sequence[Criterion],
        moment: datetime,
    ) -> tuple[BehaviorPattern, tuple[BehaviorPattern, ...]]:
        labels = {c.field_id: c.field_type.label for c in criteria}
        field_ids = sorted(labels)
        pattern_id = pattern_id_for(field_ids)

        existing = None
        rest: list[BehaviorPattern] = []
        for pattern in self._patterns:
            if pattern.id == pattern_id and existing is None:
                existing = pattern
            else:
                rest.append(pattern)

        counters = dict(existing.common_values) if existing else {}
        for criterion in criteria:
            key = operator_counter_key(criterion.field_id, criterion.operator.kind.value)
            counters[key] = counters.get(key, 0) + 1

        if existing is not None:
            touched = BehaviorPattern(
                id=existing.id,
                label=existing.label,
                frequency=existing.frequency + 1,
                last_used_at=moment,
                confidence=round(min(existing.confidence + CONFIDENCE_STEP, 1.0), 4),
                related_field_ids=existing.related_field_ids,
                common_values=counters,
            )
        else:
            touched = BehaviorPattern(
                id=pattern_id,
                label=" + ".join(labels[field_id] for field_id in field_ids),
                frequency=1,
                last_used_at=moment,
                confidence=INITIAL_CONFIDENCE,
                related_field_ids=frozenset(field_ids),
                common_values=counters,
            )
        return touched, (touched, *rest)[: self.config.max_patterns]

    def _load(self, now: datetime) -> None:
        try:
            data = self.store.load(PATTERNS_KEY)
        except PersistenceError as e:
            log.warning("Failed to load behavior patterns: %s", e)
            return
        if data is None:
            return

        try:
            patterns, interactions = _decode_blob(data)
        except (ValueError, TypeError, KeyError) as e:
            log.warning("Ignoring malformed behavior patterns: %s", e)
            return

        cutoff = now - timedelta(days=self.config.stale_days)
        active = [p for p in patterns if p.last_used_at > cutoff]
        if len(active) != len(patterns):
            log.debug("Pruned %d stale behavior patterns", len(patterns) - len(active))

        self._patterns = tuple(active[: self.config.max_patterns])
        self._interactions = tuple(interactions[: self.config.max_interactions])
        log.debug("Loaded %d behavior patterns", len(self._patterns))

    def _save(self, moment: datetime) -> None:
        blob = {
            "patterns": [encode_pattern(p) for p in self._patterns],
            "interactions": list(self._interactions),
            "timestamp": moment.isoformat(),
        }
        try:
            self.store.save(PATTERNS_KEY, blob)
        except PersistenceError as e:
            log.warning("Failed to save behavior patterns: %s", e)


def _decode_blob(data: Any) -> tuple[list[BehaviorPattern], list[str]]:
    if not isinstance(data, Mapping):
        raise ValueError("behavior patterns blob must be an object")
    raw_patterns = data.get("patterns") or []
    if not isinstance(raw_patterns, list):
        raise ValueError("patterns must be a list")
    raw_interactions = data.get("interactions") or []
    if not isinstance(raw_interactions, list):
        raise ValueError("interactions must be a list")

    patterns: list[BehaviorPattern] = []
    seen: set[str] = set()
    for idx, item in enumerate(raw_patterns):
        try:
            pattern = decode_pattern(item)
        except ValueError as e:
            log.debug("Skipping patterns[%d]: %s", idx, e)
            continue
        if pattern.id in seen:
            continue
        seen.add(pattern.id)
        patterns.append(pattern)
    return patterns, [str(item) for item in raw_interactions]


def _criteria_from(payload: Mapping[str, Any]) -> list[Criterion]:
    criteria = payload.get("criteria")
    if not criteria:
        return []
    return [c for c in criteria if isinstance(c, Criterion)]


def _dump_payload(payload: Mapping[str, Any]) -> str:
    try:
        return json.dumps(payload, default=_json_default, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError):
        return json.dumps(str(payload))


def _json_default(value: Any) -> Any:
    if isinstance(value, Criterion):
        return {
            "field_id": value.field_id,
            "operator": value.operator.kind.value,
            "value": value.value,
        }
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)
