"""Command implementations for FacetQuery CLI.

Encapsulates business logic for the parse, format, validate, suggest and
track commands, separated from CLI parameter handling and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import click

from FacetQuery.compiler import count_unparsed_terms, generate_raw_query, parse_raw_query
from FacetQuery.config import AppConfig
from FacetQuery.core.query import LogicalOperator, Query
from FacetQuery.renderers import (
    render_criteria_json,
    render_criteria_text,
    render_findings_json,
    render_findings_text,
    render_suggestions_json,
    render_suggestions_text,
)
from FacetQuery.storage.base import PersistenceStore
from FacetQuery.storage.history import load_history, load_templates, record_search
from FacetQuery.suggestions import (
    SEARCH_EXECUTED,
    BehaviorPatternStore,
    SuggestionContext,
    SuggestionRanker,
)
from FacetQuery.utils.log import log
from FacetQuery.validation import validate_query, with_validity


def build_query(config: AppConfig, text: str, *, use_or: bool = False) -> Query:
    """Parse text into a query with validity recomputed against the config."""
    criteria = parse_raw_query(text, config.catalog)
    unparsed = count_unparsed_terms(text, config.catalog)
    if unparsed:
        log.warning("%d search term(s) were not understood", unparsed)
    query = Query(
        criteria=criteria,
        raw_query=text,
        logical_operator=LogicalOperator.OR if use_or else LogicalOperator.AND,
    )
    return with_validity(query, config=config.validation, catalog=config.catalog)


@dataclass(slots=True)
class ParseCommand:
    """Parse raw text and print the resulting criteria."""

    config: AppConfig
    as_json: bool = True

    def execute(self, text: str) -> None:
        query = build_query(self.config, text)
        log.debug("Parsed %d criteria from %r", len(query.criteria), text)
        if self.as_json:
            click.echo(json.dumps(render_criteria_json(query.criteria), ensure_ascii=False, indent=2))
        else:
            click.echo(render_criteria_text(query.criteria), nl=False)


@dataclass(slots=True)
class FormatCommand:
    """Parse raw text and print it back in canonical form."""

    config: AppConfig

    def execute(self, text: str, *, use_or: bool = False) -> None:
        query = build_query(self.config, text, use_or=use_or)
        click.echo(generate_raw_query(query.criteria, query.logical_operator))


@dataclass(slots=True)
class ValidateCommand:
    """Validate raw text and print findings."""

    config: AppConfig
    as_json: bool = False

    def execute(self, text: str, *, use_or: bool = False) -> bool:
        """Print findings for the parsed query.

        Returns:
            Whether the query is valid (no error-severity finding).
        """
        query = build_query(self.config, text, use_or=use_or)
        result = validate_query(query, config=self.config.validation, catalog=self.config.catalog)
        log.info(
            "Validation: errors=%d warnings=%d infos=%d",
            len(result.errors),
            len(result.warnings),
            len(result.infos),
        )
        if self.as_json:
            payload = {"is_valid": result.is_valid, "findings": render_findings_json(result.findings)}
            click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        else:
            click.echo(render_findings_text(result.findings), nl=False)
        return result.is_valid


@dataclass(slots=True)
class SuggestCommand:
    """Rank suggestions using stored history, templates and patterns."""

    config: AppConfig
    store: PersistenceStore
    as_json: bool = False

    def execute(
        self,
        *,
        current_input: str = "",
        field_key: str | None = None,
        current: str = "",
        limit: int | None = None,
    ) -> None:
        catalog = self.config.catalog
        active_field = None
        if field_key:
            active_field = catalog.resolve(field_key)
            if active_field is None:
                raise ValueError(f"Unknown field: {field_key}")

        ranker = SuggestionRanker(BehaviorPatternStore(self.store, self.config.suggestions), self.config.suggestions)
        context = SuggestionContext(
            current_criteria=parse_raw_query(current, catalog),
            current_input=current_input,
            catalog=catalog,
            active_field=active_field,
            recent_history=load_history(self.store, catalog),
            templates=load_templates(self.store, catalog),
        )
        items = ranker.get_suggestions(context, limit=limit)
        log.debug("Ranked %d suggestions", len(items))
        if self.as_json:
            click.echo(json.dumps(render_suggestions_json(items), ensure_ascii=False, indent=2))
        else:
            click.echo(render_suggestions_text(items), nl=False)


@dataclass(slots=True)
class TrackCommand:
    """Record an executed search in history and behavior patterns."""

    config: AppConfig
    store: PersistenceStore

    def execute(self, text: str, *, use_or: bool = False, raw_mode: bool = False) -> None:
        query = build_query(self.config, text, use_or=use_or)
        if not query.criteria:
            log.warning("Nothing to track: no criteria parsed from %r", text)
            return

        patterns = BehaviorPatternStore(self.store, self.config.suggestions)
        pattern = patterns.track_behavior(SEARCH_EXECUTED, {"criteria": list(query.criteria)})
        record_search(self.store, query, self.config.catalog, search_mode="raw" if raw_mode else "visual")
        if pattern is not None:
            click.echo(f"{pattern.label}: frequency={pattern.frequency} confidence={pattern.confidence:.2f}")
