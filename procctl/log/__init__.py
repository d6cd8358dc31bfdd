"""
Logging for procctl.

Extends Python's standard logging with:
- A TRACE level below DEBUG for per-syscall detail
- Structured extra fields rendered as [key:value]
- The process id on every line, so forked children are distinguishable
- Derived "view" loggers that share the package root's handlers

The package root logger is ``/procctl``. It defaults to "warning" so the
library stays quiet unless the embedding program raises the level, either
through configure() or by passing its own logger to a component.
"""

import logging
import threading

from .config import InvalidLogLevelError, LogConfig, resolve_level
from .constants import LogConstants
from .factory import LoggerFactory
from .formatters import LogFormatter
from .logger import Logger

logging.TRACE = LogConstants.CUSTOM_LEVELS["TRACE"]  # type: ignore[attr-defined]
logging.addLevelName(logging.TRACE, "TRACE")  # type: ignore[attr-defined]

_root_lock = threading.Lock()


def create_lg(
    name: str, level: str | int | bool = "info", micros: bool = False
) -> Logger:
    """
    Create a logger with the specified configuration.

    Example:
        >>> lg = create_lg("/myapp", "debug")
    """
    return LoggerFactory.create(name, LogConfig.from_params(level, micros))


def root_lg() -> Logger:
    """Return the package root logger, creating it on first use."""
    with _root_lock:
        return LoggerFactory.create(
            LogConstants.ROOT_NAME, LogConfig.from_params(LogConstants.DEFAULT_LEVEL)
        )


def derive_lg(lg: Logger | None, tags: str | list[str]) -> Logger:
    """
    Derive a tagged logger from lg, or from the package root if lg is None.

    Example:
        >>> derive_lg(None, "reaper").name
        '/procctl/reaper'
    """
    return LoggerFactory.derive(lg if lg is not None else root_lg(), tags)


__all__ = [
    "Logger",
    "LoggerFactory",
    "LogConfig",
    "LogConstants",
    "LogFormatter",
    "InvalidLogLevelError",
    "resolve_level",
    "create_lg",
    "root_lg",
    "derive_lg",
]
