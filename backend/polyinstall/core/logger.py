"""
Structured logging with DEBUG/INFO levels via LOG_LEVEL env var.
Uses RichHandler on stderr so log lines don't interfere with progress bars.
"""

import os
import logging
from typing import Optional

from rich.logging import RichHandler
from rich.console import Console


def setup_logger(
    name: str = __name__, console: Optional[Console] = None, verbose: bool = False
) -> logging.Logger:
    """
    Set up structured logging with LOG_LEVEL env var support.

    Args:
        name: Logger name (typically __name__)
        console: Optional Rich Console instance (a stderr console is created if not provided)
        verbose: If True, show INFO logs even in default mode

    Returns:
        Configured logger instance
    """
    log_level_str = os.getenv("LOG_LEVEL", "info").lower()
    verbose_mode = verbose or os.getenv("VERBOSE", "").lower() in ("1", "true", "yes")

    # Default mode only surfaces warnings; stage output goes through the console
    if not verbose_mode and log_level_str != "debug":
        log_level = logging.WARNING
    else:
        log_level = logging.DEBUG if log_level_str == "debug" else logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=console if console is not None else Console(stderr=True),
            rich_tracebacks=True,
            show_time=False,
            show_level=True,
            show_path=False,
            markup=False,
        )
        logger.addHandler(handler)
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(log_level)

    return logger


def refresh_log_levels() -> None:
    """
    Re-apply LOG_LEVEL to every polyinstall logger.

    Loggers are created at import time; --debug flips LOG_LEVEL afterwards.
    """
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("polyinstall"):
            setup_logger(name)
