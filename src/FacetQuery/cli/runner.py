"""Command runner for coordinating CLI execution.

Manages logging configuration, persistence lifecycle and error handling for
command execution.
"""

from __future__ import annotations

from typing import Callable, TypeVar

import click

from FacetQuery.cli.commands import (
    FormatCommand,
    ParseCommand,
    SuggestCommand,
    TrackCommand,
    ValidateCommand,
)
from FacetQuery.config import AppConfig
from FacetQuery.storage import create_persistence
from FacetQuery.storage.base import PersistenceStore
from FacetQuery.utils.log import configure_logging, log

T = TypeVar("T")


class CommandRunner:
    """Orchestrates command execution with proper resource management.

    Handles logging configuration, persistence creation, database context
    management, and error handling for CLI commands.
    """

    def __init__(self, config: AppConfig) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
        """
        self.config = config

    def run_parse(self, action: str, text: str, *, as_json: bool = True) -> None:
        self._run(action, lambda: ParseCommand(self.config, as_json=as_json).execute(text))

    def run_format(self, action: str, text: str, *, use_or: bool = False) -> None:
        self._run(action, lambda: FormatCommand(self.config).execute(text, use_or=use_or))

    def run_validate(self, action: str, text: str, *, use_or: bool = False, as_json: bool = False) -> bool:
        """Validate text and report whether it is valid.

        Raises:
            click.Abort: When validation cannot run.
        """
        return self._run(
            action,
            lambda: ValidateCommand(self.config, as_json=as_json).execute(text, use_or=use_or),
        )

    def run_suggest(
        self,
        action: str,
        *,
        current_input: str = "",
        field_key: str | None = None,
        current: str = "",
        limit: int | None = None,
        as_json: bool = False,
    ) -> None:
        self._run_with_store(
            action,
            lambda store: SuggestCommand(self.config, store, as_json=as_json).execute(
                current_input=current_input,
                field_key=field_key,
                current=current,
                limit=limit,
            ),
        )

    def run_track(self, action: str, text: str, *, use_or: bool = False, raw_mode: bool = False) -> None:
        self._run_with_store(
            action,
            lambda store: TrackCommand(self.config, store).execute(text, use_or=use_or, raw_mode=raw_mode),
        )

    def _configure(self, action: str) -> None:
        log_path = configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        if log_path:
            log.debug("Logging %s to %s", action, log_path)

    def _run(self, action: str, func: Callable[[], T]) -> T:
        self._configure(action)
        try:
            return func()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e

    def _run_with_store(self, action: str, func: Callable[[PersistenceStore], T]) -> T:
        """Run a command that needs persistence.

        Args:
            action: The CLI command name (e.g., 'suggest').
            func: Command body receiving the configured store.

        Raises:
            click.Abort: When the command fails.
        """
        self._configure(action)
        try:
            store, db_manager = create_persistence(self.config)
            if db_manager:
                with db_manager:
                    return func(store)
            return func(store)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
