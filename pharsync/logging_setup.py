"""Process-wide logging configuration for the ``pharsync`` CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> None:
    """Install a Rich handler on the root logger.

    Calling this again replaces the previous handler rather than stacking
    another one.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Request lines from httpx are only interesting when debugging.
    quiet = logging.DEBUG if root.level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
