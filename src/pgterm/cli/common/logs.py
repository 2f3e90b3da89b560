"""Logging setup for the CLI."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "PGTERM_LOG_LEVEL"


def setup_logging(verbose: bool = False) -> None:
    """
    Route `pgterm.*` loggers to stderr through rich.

    `--verbose` selects DEBUG; otherwise WARNING, or `$PGTERM_LOG_LEVEL`
    when set. Safe to call more than once.
    """
    level_name = "DEBUG" if verbose else os.getenv(LOG_LEVEL_ENV, "WARNING")
    level = getattr(logging, level_name.upper().strip(), logging.WARNING)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))

    root = logging.getLogger("pgterm")
    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False
