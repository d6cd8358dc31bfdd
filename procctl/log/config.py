"""
Configuration for procctl loggers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigError
from .constants import LogConstants


class InvalidLogLevelError(ConfigError):
    """Raised when an invalid log level is specified."""

    def __init__(self, level: Any) -> None:
        self.level = level
        super().__init__(f"Invalid log level: {level}")


def resolve_level(level: str | int | bool) -> int | bool:
    """
    Resolve a log level from a name, a numeric value or a boolean.

    Args:
        level: Level name ("debug", "trace", ...), number, or False to disable

    Returns:
        Numeric level, or False when logging is disabled

    Raises:
        InvalidLogLevelError: If the level name is unknown
    """
    if isinstance(level, bool):
        return logging.INFO if level else False
    if isinstance(level, int):
        return level
    if level.isnumeric():
        return int(level)
    name = level.lower()
    if name in LogConstants.LEVEL_NAMES:
        return LogConstants.LEVEL_NAMES[name]
    raise InvalidLogLevelError(level)


@dataclass(frozen=True)
class LogConfig:
    """
    Immutable logger configuration.

    level is an int for normal levels, or False to disable logging entirely.
    """

    level: int | bool = logging.WARNING
    micros: bool = False
    colors: bool = True

    @classmethod
    def from_params(
        cls, level: str | int | bool, micros: bool = False, colors: bool = True
    ) -> LogConfig:
        """Create LogConfig from individual parameters."""
        return cls(level=resolve_level(level), micros=micros, colors=colors)
