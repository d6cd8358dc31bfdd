"""
Log formatter for procctl.

Renders records as::

    [12:34:56,789] [D] reaped child        [pid:4242] [status:0] [4241] [/procctl/reaper]

The process id column is always present so that output written by a parent
and by its forked children can be told apart.
"""

import logging
from typing import Any

from .config import LogConfig
from .constants import LogConstants


def _format_extra(extra: dict[str, Any] | None) -> str:
    """Format extra fields as sorted [key:value] pairs."""
    if not extra:
        return ""
    parts = []
    for key in sorted(extra):
        value = extra[key]
        if isinstance(value, BaseException):
            value = value.__class__.__name__
        parts.append(f"[{key}:{value}]")
    return " ".join(parts)


class LogFormatter(logging.Formatter):
    """Formatter with optional colors, microseconds and structured extras."""

    def __init__(self, config: LogConfig) -> None:
        super().__init__(LogConstants.DEFAULT_FORMAT)
        self.config = config

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        s = super().formatTime(record, datefmt)
        if self.config.micros:
            micros = int((record.created % 1) * 1000000) % 1000
            s += f".{micros:03d}"
        return s

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        width = len(line)
        extra = _format_extra(getattr(record, "__procctl__extra", None))

        if "\n" not in line:
            line += " " * max(1, LogConstants.DEFAULT_RULE_WIDTH - width)
        else:
            line += " "
        if extra:
            line += extra + " "
        line += f"[{record.process}] [{record.name}]"

        if self.config.colors:
            color = LogConstants.COLORS.get(record.levelno, "")
            if color:
                line = color + line + LogConstants.RESET
        return line
