"""
Argument coercion helpers.
"""

import operator
from typing import Any

from .exceptions import InvalidArgumentError


def is_int(n: Any) -> bool:
    """
    Check if a value is usable as an integer id.

    bools are rejected even though they subclass int.
    """
    if isinstance(n, bool):
        return False
    try:
        operator.index(n)
        return True
    except TypeError:
        pass
    return False


def coerce_int(value: Any, name: str = "pid") -> int:
    """
    Return value as an int.

    Args:
        value: Value to coerce (int or anything implementing __index__)
        name: Argument name used in the error message

    Raises:
        InvalidArgumentError: If value is not an integer
    """
    if not is_int(value):
        raise InvalidArgumentError(
            f"{name} must be an integer", **{name: repr(value)}
        )
    return operator.index(value)
