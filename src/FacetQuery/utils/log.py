"""FacetQuery logging utilities.

All modules log through the single ``FacetQuery`` logger. CLI actions call
``configure_logging`` once; results go to stdout via click, log records go to
stderr (and optionally a per-action file) so command output stays parseable.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Final, TextIO


_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}

_FORMAT: Final = "%(asctime)s [%(levelabbr)s] %(message)s"
_DATE_FORMAT: Final = "%m-%d %H:%M:%S"


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("FacetQuery")


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
    stream: TextIO | None = None,
) -> Path | None:
    """Configure the FacetQuery logger.

    Uses format: mm-dd HH:MM:SS [<LVL>] <message>
    where LVL is one of: DEBG/INFO/WARN/ERRO.

    Args:
        level: Console log level name (e.g., INFO, DEBUG).
        action: CLI action name; names the log file and its directory.
        log_to_file: Whether to mirror DEBUG and above to a file.
        log_dir: Base directory for log files.
        stream: Console stream, stderr by default.

    Returns:
        Path of the log file, or None when logging to console only.
    """
    resolved_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    formatter = _AbbrevLevelFormatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console.setLevel(resolved_level)
    console.setFormatter(formatter)

    log.handlers.clear()
    log.addHandler(console)

    log_path = None
    if log_to_file and action:
        log_path = _log_file_path(Path(log_dir or "log"), action)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    log.setLevel(logging.DEBUG if log_path else resolved_level)
    log.propagate = False
    return log_path


def _log_file_path(base_dir: Path, action: str) -> Path:
    action_dir = base_dir / action
    action_dir.mkdir(parents=True, exist_ok=True)
    return action_dir / f"{action}_{datetime.now().strftime('%m%d%H%M%S')}.log"
