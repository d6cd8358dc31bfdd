"""
Logger class for procctl.

Extends the standard logger with pre-populated extra fields, a TRACE level,
and the ability to disable logging entirely.
"""

import logging
import sys
from typing import Any

from .config import LogConfig
from .constants import LogConstants


class Logger(logging.Logger):
    """
    Enhanced logger with structured extra fields.

    Extra fields (both those given at creation and those passed per call) are
    attached to each record as ``__procctl__extra`` so the formatter can
    render them as ``[key:value]`` pairs.
    """

    def __init__(
        self,
        name: str,
        config: LogConfig | None = None,
        extra: dict[str, Any] | None = None,
    ):
        if config is None:
            config = LogConfig()

        if config.level is False:
            super().__init__(name, logging.CRITICAL + 1)
            self._logging_disabled = True
        else:
            super().__init__(name, config.level)
            self._logging_disabled = False

        self._config = config
        self._extra = extra or {}
        # Set for derived "view" loggers
        self._root_logger: Logger | None = None

    @property
    def config(self) -> LogConfig:
        return self._config

    @property
    def disabled(self) -> bool:
        return self._logging_disabled

    @disabled.setter
    def disabled(self, value: bool) -> None:
        self._logging_disabled = value

    def reconfigure(self, config: LogConfig) -> None:
        """Apply a new configuration in place."""
        self._config = config
        self._logging_disabled = config.level is False
        self.setLevel(logging.CRITICAL + 1 if config.level is False else config.level)
        for handler in self.handlers:
            handler.setLevel(self.level)
            formatter = handler.formatter
            if hasattr(formatter, "config"):
                formatter.config = config  # type: ignore[union-attr]

    def makeRecord(  # type: ignore[override]
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: dict[str, Any] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        """Create log record carrying merged extra fields."""
        merged = dict(self._extra)
        if extra:
            merged.update(extra)
        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func=func, sinfo=sinfo
        )
        setattr(record, "__procctl__extra", merged)
        return record

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a TRACE level message."""
        level = LogConstants.CUSTOM_LEVELS["TRACE"]
        if self.isEnabledFor(level):
            self._log(level, msg, args, **kwargs)

    def isEnabledFor(self, level: int) -> bool:
        if self._logging_disabled:
            return False
        # Derived loggers follow the root's level so reconfigure() reaches them
        if self._root_logger is not None:
            return self._root_logger.isEnabledFor(level)
        return super().isEnabledFor(level)

    def _log(self, level: int, msg: object, args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        if self._logging_disabled:
            return
        try:
            super()._log(level, msg, args, **kwargs)
        except (TypeError, ValueError) as e:
            sys.stderr.write(
                f"LOG_FORMAT_ERROR [{self.name}]: {e.__class__.__name__}: {e} "
                f"| msg={msg!r} args={args!r}\n"
            )

    def callHandlers(self, record: logging.LogRecord) -> None:
        """Derived loggers delegate to the root logger's handlers."""
        if self._root_logger is not None:
            for handler in self._root_logger.handlers:
                if record.levelno >= handler.level:
                    handler.handle(record)
        else:
            super().callHandlers(record)
