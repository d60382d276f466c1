"""Tests for suggestion ranking."""

from __future__ import annotations

import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FacetQuery.compiler import parse_raw_query
from FacetQuery.config import SuggestionsConfig, load_config
from FacetQuery.core import Catalog, OperatorKind, Query
from FacetQuery.storage import MemoryStore
from FacetQuery.suggestions import (
    SEARCH_EXECUTED,
    BehaviorPatternStore,
    HistoryEntry,
    SearchTemplate,
    SuggestionContext,
    SuggestionItem,
    SuggestionKind,
    SuggestionRanker,
    frequent_fields,
    frequent_values,
    smart_completions,
)
from FacetQuery.suggestions.ranker import _deduplicate

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _catalog() -> Catalog:
    return load_config(REPO_ROOT / "config" / "default.yml").catalog


def _entry(catalog: Catalog, text: str, idx: int = 0) -> HistoryEntry:
    return HistoryEntry(
        id=f"h{idx}",
        query=Query(criteria=parse_raw_query(text, catalog), raw_query=text),
        raw_query=text,
        timestamp=NOW - timedelta(hours=idx),
    )


def _template(catalog: Catalog, name: str, text: str, *, usage: int, last_used: datetime | None = None) -> SearchTemplate:
    return SearchTemplate(
        id=f"t-{name}",
        name=name,
        query=Query(criteria=parse_raw_query(text, catalog), raw_query=text),
        usage_count=usage,
        last_used_at=last_used,
    )


class TestHelpers(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = _catalog()
        self.history = [
            _entry(self.catalog, "status:Active branch-name:feature-login", 0),
            _entry(self.catalog, "status:Done branch-name:feature-search", 1),
            _entry(self.catalog, "status:Active", 2),
        ]

    def test_frequent_fields(self) -> None:
        self.assertEqual(frequent_fields(self.history), [("status", 3), ("branch-name", 2)])

    def test_frequent_values(self) -> None:
        self.assertEqual(frequent_values(self.history, "status"), [("Active", 2), ("Done", 1)])
        self.assertEqual(frequent_values(self.history, "status", limit=1), [("Active", 2)])

    def test_frequent_values_skip_falsy_values(self) -> None:
        history = [
            _entry(self.catalog, "iteration:0", 0),
            _entry(self.catalog, "iteration:0", 1),
            _entry(self.catalog, "iteration:3", 2),
        ]
        self.assertEqual(frequent_values(history, "iteration"), [("3", 1)])

    def test_smart_completions(self) -> None:
        templates = [_template(self.catalog, "Hotfixes", "branch-name:feature-hotfix", usage=1)]
        branch = self.catalog.get("branch-name")
        self.assertEqual(
            smart_completions("feat", self.history, templates, field=branch),
            ["feature-login", "feature-search", "feature-hotfix"],
        )
        self.assertEqual(smart_completions("f", self.history, templates), [])
        self.assertEqual(smart_completions("feature-login", self.history, templates), [])


class TestSuggestionRanker(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = _catalog()
        self.patterns = BehaviorPatternStore(MemoryStore(), now=NOW)
        self.ranker = SuggestionRanker(self.patterns)

    def _context(self, **kwargs) -> SuggestionContext:
        kwargs.setdefault("current_criteria", [])
        kwargs.setdefault("current_input", "")
        kwargs.setdefault("now", NOW)
        return SuggestionContext(catalog=self.catalog, **kwargs)

    def test_empty_context_yields_nothing(self) -> None:
        self.assertEqual(self.ranker.get_suggestions(self._context()), [])

    def test_duplicate_field_suggestions_keep_higher_score(self) -> None:
        self.ranker.track_behavior(
            SEARCH_EXECUTED,
            {"criteria": parse_raw_query("branch-name:main status:Active", self.catalog)},
            now=NOW,
        )
        context = self._context(current_criteria=parse_raw_query("branch-name:dev", self.catalog))
        items = self.ranker.get_suggestions(context)

        status_items = [i for i in items if i.kind == SuggestionKind.FIELD and i.label == "Status"]
        self.assertEqual(len(status_items), 1)
        self.assertEqual(status_items[0].score, 0.8)
        self.assertEqual(status_items[0].reason, "related_pattern")
        self.assertIs(status_items[0].value, self.catalog.get("status"))

    def test_behavior_pattern_suggestions_without_current_criteria(self) -> None:
        for _ in range(2):
            self.ranker.track_behavior(
                SEARCH_EXECUTED,
                {"criteria": parse_raw_query("iteration:3 status:Active", self.catalog)},
                now=NOW,
            )
        items = self.ranker.get_suggestions(self._context())
        self.assertEqual([i.label for i in items], ["Iteration", "Status"])
        self.assertTrue(all(i.score == 0.8 for i in items))

    def test_low_confidence_patterns_are_ignored(self) -> None:
        ranker = SuggestionRanker(self.patterns, SuggestionsConfig(min_confidence=0.5))
        ranker.track_behavior(SEARCH_EXECUTED, {"criteria": parse_raw_query("status:Done", self.catalog)}, now=NOW)
        self.assertEqual(ranker.get_suggestions(self._context()), [])

    def test_frequent_fields_skip_current_and_unknown(self) -> None:
        history = [
            _entry(self.catalog, "status:Active iteration:2", 0),
            _entry(self.catalog, "status:Done iteration:3", 1),
        ]
        context = self._context(
            current_criteria=parse_raw_query("iteration:1", self.catalog),
            recent_history=history,
        )
        items = self.ranker.get_suggestions(context)
        self.assertEqual([(i.label, i.score, i.reason) for i in items], [("Status", 0.2, "frequently_used")])

    def test_value_suggestions_for_active_field(self) -> None:
        history = [
            _entry(self.catalog, "branch-name:feature-login", 0),
            _entry(self.catalog, "branch-name:feature-login", 1),
            _entry(self.catalog, "branch-name:feature-search", 2),
        ]
        context = self._context(
            current_input="feat",
            active_field=self.catalog.get("branch-name"),
            recent_history=history,
        )
        items = self.ranker.get_suggestions(context)
        by_id = {i.id: i for i in items}

        self.assertEqual(by_id["completion-0"].label, "feature-login")
        self.assertAlmostEqual(by_id["completion-0"].score, 0.9)
        self.assertAlmostEqual(by_id["completion-1"].score, 0.8)
        self.assertAlmostEqual(by_id["frequent-branch-name-feature-login"].score, 0.4)
        self.assertEqual(by_id["frequent-branch-name-feature-login"].kind, SuggestionKind.VALUE)
        # Recent-query completions match raw text containing the input.
        self.assertIn("recent-query-h0", by_id)
        self.assertEqual(by_id["recent-query-h0"].score, 0.6)

    def test_operator_suggestions_from_pattern_counters(self) -> None:
        for value in (2, 5, 7):
            self.ranker.track_behavior(
                SEARCH_EXECUTED,
                {"criteria": parse_raw_query(f"iteration:>{value}", self.catalog)},
                now=NOW,
            )
        context = self._context(
            current_criteria=parse_raw_query("iteration:1", self.catalog),
            active_field=self.catalog.get("iteration"),
        )
        [item] = [i for i in self.ranker.get_suggestions(context) if i.kind == SuggestionKind.OPERATOR]
        self.assertEqual(item.value, OperatorKind.GT)
        self.assertEqual(item.label, "greater than")
        self.assertAlmostEqual(item.score, 0.3)

    def test_template_relevance(self) -> None:
        templates = [
            _template(self.catalog, "Active work", "status:Active", usage=5, last_used=NOW - timedelta(days=2)),
            _template(self.catalog, "Old", "assignee:bob", usage=1, last_used=NOW - timedelta(days=30)),
        ]
        context = self._context(
            current_criteria=parse_raw_query("status:Done", self.catalog),
            templates=templates,
        )
        items = [i for i in self.ranker.get_suggestions(context) if i.kind == SuggestionKind.TEMPLATE]
        self.assertEqual([i.label for i in items], ["Active work"])
        self.assertAlmostEqual(items[0].score, 0.9)
        self.assertAlmostEqual(self.ranker.template_relevance(templates[1], context), 0.1)

    def test_only_most_used_templates_are_considered(self) -> None:
        templates = [
            _template(self.catalog, f"T{idx}", "status:Active", usage=idx) for idx in range(1, 6)
        ]
        context = self._context(
            current_criteria=parse_raw_query("status:Done", self.catalog),
            templates=templates,
        )
        labels = [i.label for i in self.ranker.get_suggestions(context) if i.kind == SuggestionKind.TEMPLATE]
        self.assertEqual(labels, ["T5", "T4", "T3"])

    def test_order_is_descending_and_limited(self) -> None:
        history = [_entry(self.catalog, f"status:Active iteration:{idx} branch-name:b{idx}", idx) for idx in range(1, 4)]
        context = self._context(current_input="status", recent_history=history)
        items = self.ranker.get_suggestions(context, limit=2)
        self.assertEqual(len(items), 2)
        scores = [i.score for i in self.ranker.get_suggestions(context)]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_equal_scores_keep_generator_order(self) -> None:
        history = [_entry(self.catalog, "branch-name:feature-login", idx) for idx in range(5)]
        history.append(_entry(self.catalog, "branch-name:feature-search", 5))
        context = self._context(
            current_input="feature",
            active_field=self.catalog.get("branch-name"),
            recent_history=history,
        )
        items = self.ranker.get_suggestions(context)
        ids = [i.id for i in items]

        # completion-1 and the capped frequent value both score 0.8; completions are emitted first.
        self.assertEqual(ids[:3], ["completion-0", "completion-1", "frequent-branch-name-feature-login"])
        self.assertEqual(items[1].score, items[2].score)
        # Identical recent queries collapse into the first one seen.
        recent = [item_id for item_id in ids if item_id.startswith("recent-query-")]
        self.assertEqual(recent, ["recent-query-h0", "recent-query-h5"])

    def test_dedup_winner_keeps_first_seen_slot(self) -> None:
        def item(item_id: str, label: str, score: float) -> SuggestionItem:
            return SuggestionItem(
                id=item_id,
                kind=SuggestionKind.VALUE,
                label=label,
                value=label,
                score=score,
                reason="frequent_value",
                category="values",
            )

        items = _deduplicate([item("a-low", "alpha", 0.2), item("b", "beta", 0.8), item("a-high", "alpha", 0.8)])
        self.assertEqual([i.id for i in items], ["a-high", "b"])

    def test_failing_generator_is_skipped(self) -> None:
        with patch.object(SuggestionRanker, "_template_suggestions", side_effect=RuntimeError("boom")):
            ranker = SuggestionRanker(self.patterns)
            history = [_entry(self.catalog, "status:Active", 0)]
            with self.assertLogs("FacetQuery", level="WARNING"):
                items = ranker.get_suggestions(self._context(recent_history=history))
        self.assertEqual([i.label for i in items], ["Status"])


if __name__ == "__main__":
    unittest.main()
