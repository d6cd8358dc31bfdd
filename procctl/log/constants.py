"""
Constants for the procctl logging system.
"""

import logging


class LogConstants:
    """Constants for the logging system."""

    DEFAULT_FORMAT: str = "[%(asctime)s] [%(levelname).1s] %(message)s"

    # Message column width before extra fields are appended
    DEFAULT_RULE_WIDTH: int = 60

    # Library default: quiet unless the embedding program asks for more
    DEFAULT_LEVEL: str = "warning"

    ROOT_NAME: str = "/procctl"

    CUSTOM_LEVELS: dict[str, int] = {"TRACE": 5}

    LEVEL_NAMES: dict[str, int | bool] = {
        "critical": logging.CRITICAL,
        "error": logging.ERROR,
        "warning": logging.WARNING,
        "info": logging.INFO,
        "debug": logging.DEBUG,
        "trace": 5,
        "false": False,
    }

    RESET: str = "\x1b[0m"

    COLORS: dict[int, str] = {
        5: "\x1b[38;5;240m",
        logging.DEBUG: "\x1b[38;5;32m",
        logging.INFO: "\x1b[36m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[35m",
    }
