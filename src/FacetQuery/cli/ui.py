"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from FacetQuery.cli.runner import CommandRunner
from FacetQuery.config import DEFAULT_CONFIG_PATH, AppConfig, load_config, load_config_with_defaults


def resolve_config(config_path: Path | None) -> AppConfig:
    """Load the override file layered on the defaults, when both exist."""
    if config_path is None:
        return load_config(DEFAULT_CONFIG_PATH)
    if DEFAULT_CONFIG_PATH.exists() and config_path.resolve() != DEFAULT_CONFIG_PATH.resolve():
        return load_config_with_defaults(config_path)
    return load_config(config_path)


@click.group(help="FacetQuery: parse, validate and rank faceted search queries.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    envvar="FACET_QUERY_CONFIG",
    help="Path to YAML config file, layered on config/default.yml.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.

    Args:
        ctx: Click context.
        config_path: Path to YAML config file.
    """
    # Load environment variables from .env file
    load_dotenv()

    ctx.obj = resolve_config(config_path)


@cli.command("parse")
@click.argument("text")
@click.option("--text", "as_text", is_flag=True, help="Print a readable list instead of JSON.")
@click.pass_context
def parse_cmd(ctx: click.Context, text: str, as_text: bool) -> None:
    """Parse a raw query and print its criteria."""
    CommandRunner(ctx.obj).run_parse(ctx.command.name, text, as_json=not as_text)


@cli.command("format")
@click.argument("text")
@click.option("--or", "use_or", is_flag=True, help="Combine criteria with OR.")
@click.pass_context
def format_cmd(ctx: click.Context, text: str, use_or: bool) -> None:
    """Print a raw query in canonical form."""
    CommandRunner(ctx.obj).run_format(ctx.command.name, text, use_or=use_or)


@cli.command("validate")
@click.argument("text")
@click.option("--or", "use_or", is_flag=True, help="Combine criteria with OR.")
@click.option("--json", "as_json", is_flag=True, help="Print findings as JSON.")
@click.pass_context
def validate_cmd(ctx: click.Context, text: str, use_or: bool, as_json: bool) -> None:
    """Validate a raw query; exits with status 1 when it has errors."""
    is_valid = CommandRunner(ctx.obj).run_validate(ctx.command.name, text, use_or=use_or, as_json=as_json)
    if not is_valid:
        ctx.exit(1)


@cli.command("suggest")
@click.option("--input", "current_input", default="", help="Partial text being typed.")
@click.option("--field", "field_key", default=None, help="Field whose value is being edited.")
@click.option("--current", default="", help="Raw query already entered.")
@click.option("--limit", type=click.IntRange(min=0), default=None, help="Maximum suggestions.")
@click.option("--json", "as_json", is_flag=True, help="Print suggestions as JSON.")
@click.pass_context
def suggest_cmd(
    ctx: click.Context,
    current_input: str,
    field_key: str | None,
    current: str,
    limit: int | None,
    as_json: bool,
) -> None:
    """Rank suggestions from stored history, templates and behavior patterns."""
    CommandRunner(ctx.obj).run_suggest(
        ctx.command.name,
        current_input=current_input,
        field_key=field_key,
        current=current,
        limit=limit,
        as_json=as_json,
    )


@cli.command("track")
@click.argument("text")
@click.option("--or", "use_or", is_flag=True, help="Combine criteria with OR.")
@click.option("--raw", "raw_mode", is_flag=True, help="Record the search as typed in raw mode.")
@click.pass_context
def track_cmd(ctx: click.Context, text: str, use_or: bool, raw_mode: bool) -> None:
    """Record an executed search for future suggestions."""
    CommandRunner(ctx.obj).run_track(ctx.command.name, text, use_or=use_or, raw_mode=raw_mode)
