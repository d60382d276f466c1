"""Tests for behavior pattern tracking and persistence."""

from __future__ import annotations

import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FacetQuery.compiler import parse_raw_query
from FacetQuery.config import SuggestionsConfig, load_config
from FacetQuery.storage import PATTERNS_KEY, MemoryStore, PersistenceError
from FacetQuery.suggestions import SEARCH_EXECUTED, BehaviorPatternStore, decode_pattern, encode_pattern

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class _FailingStore(MemoryStore):
    def load(self, key: str) -> Any | None:
        raise PersistenceError("storage unavailable")

    def save(self, key: str, value: Any) -> None:
        raise PersistenceError("storage unavailable")


def _criteria(text: str) -> list:
    catalog = load_config(REPO_ROOT / "config" / "default.yml").catalog
    return parse_raw_query(text, catalog)


class TestBehaviorPatternStore(unittest.TestCase):
    def test_three_searches_grow_one_pattern(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        for offset in range(3):
            patterns.track_behavior(
                SEARCH_EXECUTED,
                {"criteria": _criteria("status:Active branch-name:main")},
                now=NOW + timedelta(minutes=offset),
            )

        [pattern] = patterns.snapshot()
        self.assertEqual(pattern.id, "branch-name+status")
        self.assertEqual(pattern.label, "Branch Name + Status")
        self.assertEqual(pattern.frequency, 3)
        self.assertAlmostEqual(pattern.confidence, 0.7)
        self.assertEqual(pattern.related_field_ids, frozenset({"branch-name", "status"}))
        self.assertEqual(pattern.last_used_at, NOW + timedelta(minutes=2))

    def test_confidence_is_capped(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        for _ in range(10):
            patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("status:Done")}, now=NOW)
        self.assertEqual(patterns.snapshot()[0].confidence, 1.0)

    def test_operator_counters(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("iteration:>2 status:Done")}, now=NOW)
        patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("iteration:>5 status:Done")}, now=NOW)
        counters = patterns.snapshot()[0].common_values
        self.assertEqual(counters["operator:iteration:gt"], 2)
        self.assertEqual(counters["operator:status:equals"], 2)

    def test_touched_pattern_moves_to_front_and_list_is_capped(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), SuggestionsConfig(max_patterns=2), now=NOW)
        for text in ("status:Done", "iteration:3", "assignee:bob"):
            patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria(text)}, now=NOW)
        self.assertEqual([p.id for p in patterns.snapshot()], ["assignee", "iteration"])

        patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("iteration:4")}, now=NOW)
        self.assertEqual([p.id for p in patterns.snapshot()], ["iteration", "assignee"])

    def test_other_actions_only_log_interactions(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), SuggestionsConfig(max_interactions=2), now=NOW)
        for idx in range(3):
            result = patterns.track_behavior("suggestion_selected", {"label": f"s{idx}"}, now=NOW)
            self.assertIsNone(result)
        self.assertEqual(patterns.snapshot(), ())
        interactions = patterns.interactions()
        self.assertEqual(len(interactions), 2)
        self.assertTrue(interactions[0].startswith('suggestion_selected:{"label": "s2"}:'))

    def test_search_without_criteria_creates_nothing(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        self.assertIsNone(patterns.track_behavior(SEARCH_EXECUTED, {"criteria": []}, now=NOW))
        self.assertEqual(patterns.snapshot(), ())

    def test_patterns_persist_across_instances(self) -> None:
        store = MemoryStore()
        first = BehaviorPatternStore(store, now=NOW)
        first.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("status:Done iteration:2")}, now=NOW)

        blob = store.load(PATTERNS_KEY)
        self.assertEqual(set(blob), {"patterns", "interactions", "timestamp"})

        second = BehaviorPatternStore(store, now=NOW + timedelta(days=1))
        self.assertEqual(second.snapshot(), first.snapshot())
        self.assertEqual(len(second.interactions()), 1)

    def test_stale_patterns_are_pruned_on_load(self) -> None:
        store = MemoryStore()
        BehaviorPatternStore(store, now=NOW).track_behavior(
            SEARCH_EXECUTED,
            {"criteria": _criteria("status:Done")},
            now=NOW,
        )
        self.assertEqual(len(BehaviorPatternStore(store, now=NOW + timedelta(days=29)).snapshot()), 1)
        self.assertEqual(BehaviorPatternStore(store, now=NOW + timedelta(days=31)).snapshot(), ())

    def test_naive_reference_time_is_taken_as_utc(self) -> None:
        store = MemoryStore()
        BehaviorPatternStore(store, now=NOW).track_behavior(
            SEARCH_EXECUTED,
            {"criteria": _criteria("status:Done")},
            now=NOW,
        )
        self.assertEqual(len(BehaviorPatternStore(store, now=datetime(2024, 6, 2)).snapshot()), 1)
        self.assertEqual(BehaviorPatternStore(store, now=datetime(2024, 8, 1)).snapshot(), ())

    def test_corrupt_storage_degrades_to_empty(self) -> None:
        store = MemoryStore()
        store.put_raw(PATTERNS_KEY, "{not json")
        with self.assertLogs("FacetQuery", level="WARNING"):
            patterns = BehaviorPatternStore(store, now=NOW)
        self.assertEqual(patterns.snapshot(), ())

        store.put_raw(PATTERNS_KEY, '{"patterns": "nope"}')
        self.assertEqual(BehaviorPatternStore(store, now=NOW).snapshot(), ())

    def test_malformed_entries_are_skipped(self) -> None:
        store = MemoryStore()
        good = {
            "id": "status",
            "label": "Status",
            "frequency": 2,
            "last_used_at": NOW.isoformat(),
            "confidence": 0.6,
            "related_field_ids": ["status"],
            "common_values": {},
        }
        store.save(PATTERNS_KEY, {"patterns": [{"id": "broken"}, good], "interactions": []})
        [pattern] = BehaviorPatternStore(store, now=NOW).snapshot()
        self.assertEqual(pattern.id, "status")

    def test_storage_failures_never_raise(self) -> None:
        with self.assertLogs("FacetQuery", level="WARNING"):
            patterns = BehaviorPatternStore(_FailingStore(), now=NOW)
        with self.assertLogs("FacetQuery", level="WARNING"):
            pattern = patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("status:Done")}, now=NOW)
        self.assertEqual(pattern.frequency, 1)
        self.assertEqual(len(patterns.snapshot()), 1)

    def test_snapshot_is_not_mutated_by_later_writes(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("status:Done")}, now=NOW)
        before = patterns.snapshot()
        patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("status:Done")}, now=NOW)
        self.assertEqual(before[0].frequency, 1)
        self.assertEqual(patterns.snapshot()[0].frequency, 2)


class TestPatternCodec(unittest.TestCase):
    def test_encode_decode(self) -> None:
        patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        pattern = patterns.track_behavior(SEARCH_EXECUTED, {"criteria": _criteria("status:Done iteration:2")}, now=NOW)
        self.assertEqual(decode_pattern(encode_pattern(pattern)), pattern)

    def test_decode_rejects_bad_frequency(self) -> None:
        with self.assertRaises(ValueError):
            decode_pattern({"id": "status", "frequency": 0, "confidence": 0.5, "last_used_at": NOW.isoformat()})


if __name__ == "__main__":
    unittest.main()
