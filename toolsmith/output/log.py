"""Logging setup for the command line.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the CLI entry point.
"""

from __future__ import annotations

import logging

__all__ = ["configure_logging", "LOG_FORMAT"]

LOG_FORMAT = "%(message)s"


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Route ``toolsmith`` log records to stderr through Rich.

    ``verbose`` shows DEBUG records (including command lines), ``quiet``
    drops everything below WARNING.
    """
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger("toolsmith")
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
