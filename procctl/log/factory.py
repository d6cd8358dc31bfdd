"""
Factory for creating and configuring procctl loggers.
"""

import logging
import sys
from dataclasses import replace
from typing import Any

from .config import LogConfig
from .formatters import LogFormatter
from .logger import Logger


class LoggerFactory:
    """Factory for creating and configuring loggers."""

    @staticmethod
    def create(
        name: str,
        config: LogConfig,
        extra: dict[str, Any] | None = None,
        stream: Any = None,
    ) -> Logger:
        """
        Create a logger with a console handler.

        Returns the existing logger if one with this name was already created.

        Example:
            >>> lg = LoggerFactory.create("/procctl", LogConfig.from_params("debug"))
            >>> lg.debug("forked", extra={"child": 4242})
            [12:34:56,789] [D] forked                 [child:4242] [4241] [/procctl]
        """
        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger):
            return existing

        lg = Logger(name, config, extra)
        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setLevel(lg.level)
        handler.setFormatter(LogFormatter(config))
        lg.addHandler(handler)
        lg.propagate = False
        lg.parent = logging.root

        # Registered so that setLevel() cache clearing reaches it
        logging.root.manager.loggerDict[name] = lg

        lg.trace("created logger", extra={"level": logging.getLevelName(lg.level)})
        return lg

    @staticmethod
    def derive(parent: Logger, tags: str | list[str]) -> Logger:
        """
        Derive a "view" logger that delegates to the root's handlers.

        Examples:
            >>> root = LoggerFactory.create("/procctl", config)
            >>> LoggerFactory.derive(root, "reaper").name
            '/procctl/reaper'
            >>> LoggerFactory.derive(root, ["privilege", "uid"]).name
            '/procctl/privilege/uid'
        """
        if isinstance(tags, str):
            tags = [tags]

        name = parent.name.rstrip("/") + "/" + "/".join(tags)
        existing = logging.root.manager.loggerDict.get(name)
        if isinstance(existing, Logger):
            return existing

        root = parent._root_logger if parent._root_logger else parent
        config = replace(root.config, level=logging.NOTSET)
        lg = Logger(name, config, dict(parent._extra))
        lg._root_logger = root
        lg.propagate = False
        lg.parent = root
        logging.root.manager.loggerDict[name] = lg
        return lg
