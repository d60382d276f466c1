"""Tests for the JSON codec and the history/template loaders."""

from __future__ import annotations

import sys
import unittest
from datetime import date, datetime, timezone
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FacetQuery.compiler import parse_raw_query
from FacetQuery.config import load_config
from FacetQuery.core import Catalog, LogicalOperator, OperatorKind, Query
from FacetQuery.storage import HISTORY_KEY, TEMPLATES_KEY, MemoryStore
from FacetQuery.storage.codec import (
    decode_criterion,
    decode_history_entry,
    decode_query,
    decode_template,
    encode_criterion,
    encode_history_entry,
    encode_query,
    encode_template,
)
from FacetQuery.storage.history import (
    MAX_HISTORY_SIZE,
    display_text,
    load_history,
    load_templates,
    record_search,
)
from FacetQuery.suggestions import HistoryEntry, SearchTemplate
from FacetQuery.validation import with_validity

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _catalog() -> Catalog:
    return load_config(REPO_ROOT / "config" / "default.yml").catalog


def _query(catalog: Catalog, text: str, logical_operator: LogicalOperator = LogicalOperator.AND) -> Query:
    query = Query(criteria=parse_raw_query(text, catalog), raw_query=text, logical_operator=logical_operator)
    return with_validity(query, catalog=catalog)


class TestCriterionCodec(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = _catalog()

    def test_round_trip_keeps_id_and_typed_value(self) -> None:
        [criterion] = parse_raw_query("created-date:>2024-01-15", self.catalog)
        data = encode_criterion(criterion)
        self.assertEqual(data["value"], "2024-01-15")
        self.assertEqual(data["operator"], "gt")

        decoded = decode_criterion(data, self.catalog)
        self.assertEqual(decoded.id, criterion.id)
        self.assertEqual(decoded.value, date(2024, 1, 15))
        self.assertIs(decoded.field_type, self.catalog.get("created-date"))
        self.assertTrue(decoded.is_valid)

    def test_stored_validity_flag_is_not_trusted(self) -> None:
        data = {"id": "c1", "field_id": "iteration", "operator": "equals", "value": "abc", "is_valid": True}
        self.assertFalse(decode_criterion(data, self.catalog).is_valid)

        data = {"id": "c2", "field_id": "iteration", "operator": "gt", "value": "4", "is_valid": False}
        decoded = decode_criterion(data, self.catalog)
        self.assertEqual(decoded.value, 4)
        self.assertTrue(decoded.is_valid)

    def test_unknown_field_or_operator_is_dropped(self) -> None:
        self.assertIsNone(decode_criterion({"field_id": "nope", "operator": "equals", "value": "x"}, self.catalog))
        self.assertIsNone(decode_criterion({"field_id": "status", "operator": "bogus", "value": "x"}, self.catalog))
        self.assertIsNone(decode_criterion({"field_id": "status", "operator": "gt", "value": "x"}, self.catalog))

    def test_non_mapping_raises_value_error(self) -> None:
        with self.assertRaises(ValueError):
            decode_criterion(["status"], self.catalog)


class TestQueryCodec(unittest.TestCase):
    def test_round_trip(self) -> None:
        catalog = _catalog()
        query = _query(catalog, "status:Active assignee:empty", LogicalOperator.OR)
        decoded = decode_query(encode_query(query), catalog)

        self.assertEqual(decoded.logical_operator, LogicalOperator.OR)
        self.assertEqual(decoded.raw_query, "status:Active assignee:empty")
        self.assertEqual(
            [(c.id, c.field_id, c.operator.kind) for c in decoded.criteria],
            [(c.id, c.field_id, c.operator.kind) for c in query.criteria],
        )
        self.assertTrue(decoded.is_valid)


class TestHistoryAndTemplates(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = _catalog()

    def test_history_entry_round_trip(self) -> None:
        entry = HistoryEntry(
            id="h1",
            query=_query(self.catalog, "status:Done"),
            raw_query="status:Done",
            timestamp=NOW,
            display_text="Status is Done",
        )
        decoded = decode_history_entry(encode_history_entry(entry), self.catalog)
        self.assertEqual(decoded.timestamp, NOW)
        self.assertEqual(decoded.display_text, "Status is Done")
        self.assertEqual(decoded.query.field_ids, ["status"])

    def test_template_round_trip(self) -> None:
        template = SearchTemplate(
            id="t1",
            name="Done work",
            query=_query(self.catalog, "status:Done"),
            usage_count=4,
            last_used_at=NOW,
            tags=("team",),
        )
        decoded = decode_template(encode_template(template), self.catalog)
        self.assertEqual((decoded.name, decoded.usage_count, decoded.last_used_at), ("Done work", 4, NOW))
        self.assertEqual(decoded.tags, ("team",))

    def test_template_requires_name(self) -> None:
        with self.assertRaises(ValueError):
            decode_template({"name": " ", "query": {}}, self.catalog)

    def test_loaders_skip_bad_entries(self) -> None:
        store = MemoryStore()
        good = encode_history_entry(
            HistoryEntry(id="h1", query=_query(self.catalog, "status:Done"), raw_query="status:Done", timestamp=NOW)
        )
        empty = encode_history_entry(HistoryEntry(id="h2", query=Query(), raw_query="", timestamp=NOW))
        store.save(HISTORY_KEY, [good, {"id": "bad", "timestamp": "yesterday"}, empty, "junk"])
        store.save(TEMPLATES_KEY, [{"name": "No query"}, {"usage_count": 3}])

        self.assertEqual([e.id for e in load_history(store, self.catalog)], ["h1"])
        self.assertEqual([t.name for t in load_templates(store, self.catalog)], ["No query"])

    def test_loaders_degrade_on_corrupt_storage(self) -> None:
        store = MemoryStore()
        store.put_raw(HISTORY_KEY, "{broken")
        store.save(TEMPLATES_KEY, {"not": "a list"})
        with self.assertLogs("FacetQuery", level="WARNING"):
            self.assertEqual(load_history(store, self.catalog), [])
        with self.assertLogs("FacetQuery", level="WARNING"):
            self.assertEqual(load_templates(store, self.catalog), [])

    def test_record_search(self) -> None:
        store = MemoryStore()
        query = _query(self.catalog, "status:Active iteration:>5")

        entry = record_search(store, query, self.catalog, now=NOW)
        self.assertEqual(entry.display_text, "Status is Active AND Iteration greater than 5")
        self.assertIsNone(record_search(store, query, self.catalog, now=NOW))
        self.assertIsNone(record_search(store, Query(), self.catalog, now=NOW))

        for idx in range(MAX_HISTORY_SIZE + 5):
            record_search(store, _query(self.catalog, f"iteration:{idx + 1}"), self.catalog, now=NOW)
        history = load_history(store, self.catalog)
        self.assertEqual(len(history), MAX_HISTORY_SIZE)
        self.assertEqual(history[0].raw_query, f"iteration:{MAX_HISTORY_SIZE + 5}")

    def test_display_text_modes(self) -> None:
        query = _query(self.catalog, "assignee:empty status:Done", LogicalOperator.OR)
        self.assertEqual(display_text(query, "visual"), "Assignee is empty OR Status is Done")
        self.assertEqual(display_text(query, "raw"), "assignee:empty status:Done")
        self.assertEqual(display_text(Query(), "visual"), "Empty search")
        self.assertIs(query.criteria[0].operator.kind, OperatorKind.IS_EMPTY)


if __name__ == "__main__":
    unittest.main()
