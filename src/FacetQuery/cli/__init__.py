"""CLI package for FacetQuery command orchestration.

This package contains the CLI components for the parse, format, validate,
suggest and track commands.
"""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from FacetQuery.cli.runner import CommandRunner
from FacetQuery.cli.ui import cli


def main() -> None:
    """Run FacetQuery CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
