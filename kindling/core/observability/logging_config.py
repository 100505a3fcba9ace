"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)`` and
inherits this config. Level precedence:

    CLI flag  >  KINDLING_LOG_LEVEL  >  WARNING

``KINDLING_LOG_FILE`` / ``KINDLING_LOG_FILE_LEVEL`` add a file handler.
The daemon calls ``setup_logging`` again with its configured
``log_level``, which may use the daemon spellings ``trace`` and ``warn``.

Console output stays bare at WARNING and above, since kindling's own
user-facing messages go through ``click.secho``. INFO and DEBUG add
timestamps and logger names for following an install step by step.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping

# Shared by the DEBUG console and the log file.
DETAILED_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"

# level ceiling → (format, datefmt); first match wins.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, DETAILED_FORMAT, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)

_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_ALIASES = {"trace": "DEBUG", "warn": "WARNING"}


def console_formatter(level: int) -> logging.Formatter:
    """The console formatter used at ``level``."""
    for ceiling, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= ceiling:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter("%(message)s")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with kindling's.

    Args:
        level: Console level name.
        log_file: Optional path to append log records to.
        log_file_level: Level for the file; defaults to ``level``.
    """
    console_level = parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(console_formatter(console_level))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)
    root.setLevel(console_level)

    if log_file:
        file_level = parse_level(log_file_level or level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)
        root.setLevel(min(console_level, file_level))

    logging.raiseExceptions = False


def setup_logging_from_env(level: str, environ: Mapping[str, str] | None = None) -> None:
    """``setup_logging`` with the file handler taken from ``KINDLING_LOG_FILE*``."""
    env = os.environ if environ is None else environ
    setup_logging(
        level=level,
        log_file=env.get("KINDLING_LOG_FILE"),
        log_file_level=env.get("KINDLING_LOG_FILE_LEVEL"),
    )


def parse_level(level: str | None) -> int:
    """Level name to number. Unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(_LEVEL_ALIASES.get(level.lower(), level.upper()))
    return numeric if isinstance(numeric, int) else logging.WARNING
