"""Process-wide logging configuration."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "HEXO_BUDDY_LOG_LEVEL"
DEFAULT_LEVEL_NAME = "WARNING"


def _resolve_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LEVEL_NAME).upper()
    return getattr(logging, level_name, logging.WARNING)


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Install a single Rich handler on the root logger."""
    root_logger = logging.getLogger()

    handler = next(
        (h for h in root_logger.handlers if getattr(h, "_hexo_buddy_managed", False)),
        None,
    )
    if handler is None:
        handler = RichHandler(
            console=console or Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._hexo_buddy_managed = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)

    root_logger.setLevel(_resolve_level(verbose))
