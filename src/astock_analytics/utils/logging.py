"""Logging helpers for CLI and engine diagnostics."""
from __future__ import annotations

import logging
from typing import Optional, Union

from rich.logging import RichHandler

_LOGGER_CONFIGURED = False

# Third-party loggers held at WARNING or above.
_QUIET_LOGGERS = ("markdown_it", "asyncio")


def resolve_level(level: Optional[Union[int, str]], debug: bool = False) -> int:
    """Turn a level name such as ``"warning"`` or a number into a logging level.

    Unknown names fall back to DEBUG or INFO depending on ``debug``.
    """
    fallback = logging.DEBUG if debug else logging.INFO
    if level is None:
        return fallback
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else fallback


def configure_logging(debug: bool = False, *, level: Optional[Union[int, str]] = None) -> None:
    """Configure process-wide logging with Rich handler."""
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    resolved_level = resolve_level(level, debug)
    logging.basicConfig(
        level=resolved_level,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=debug, show_path=debug, markup=False)],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved_level, logging.WARNING))
    logging.getLogger("astock_analytics").debug("Logging configured at %s", logging.getLevelName(resolved_level))
    _LOGGER_CONFIGURED = True
