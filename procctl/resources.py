"""
Resource limits and scheduling priority.

Resources and priority kinds may be given as numbers or by name:

    getrlimit("NOFILE")           # same as getrlimit(resource.RLIMIT_NOFILE)
    setrlimit("core", 0)          # soft and hard limit both 0
    getpriority("process", 0)     # niceness of the calling process
"""

from __future__ import annotations

import os
import resource as _resource

from .exceptions import InvalidArgumentError
from .posix import Posix, default_posix
from .utils import coerce_int, is_int

RLIM_INFINITY = _resource.RLIM_INFINITY

PRIORITY_KINDS = {
    "process": os.PRIO_PROCESS,
    "pgrp": os.PRIO_PGRP,
    "user": os.PRIO_USER,
}


def resolve_rlimit(resource: int | str) -> int:
    """
    Resolve a resource name or number to an RLIMIT_* constant.

    Accepts "CPU", "cpu" and "RLIMIT_CPU" alike.

    Raises:
        InvalidArgumentError: Unknown name or unsupported type
    """
    if is_int(resource):
        return coerce_int(resource, "resource")
    if not isinstance(resource, str):
        raise InvalidArgumentError(
            "resource must be a number or a name", resource=repr(resource)
        )

    name = resource.upper()
    if not name.startswith("RLIMIT_"):
        name = "RLIMIT_" + name
    value = getattr(_resource, name, None)
    if not isinstance(value, int):
        raise InvalidArgumentError(f"invalid resource name: {name}")
    return value


def resolve_priority_kind(kind: int | str) -> int:
    """Resolve "process", "pgrp" or "user" (or a PRIO_* number)."""
    if is_int(kind):
        return coerce_int(kind, "kind")
    if isinstance(kind, str):
        name = kind.lower().removeprefix("prio_")
        if name in PRIORITY_KINDS:
            return PRIORITY_KINDS[name]
    raise InvalidArgumentError("invalid priority kind", kind=repr(kind))


class Resources:
    """Resource limit and priority accessors over a Posix binding."""

    def __init__(self, posix: Posix | None = None) -> None:
        self._posix = posix if posix is not None else default_posix

    def getrlimit(self, resource: int | str) -> tuple[int, int]:
        """Return the (soft, hard) limits of resource."""
        soft, hard = self._posix.call("getrlimit", resolve_rlimit(resource))
        return soft, hard

    def setrlimit(
        self, resource: int | str, soft: int, hard: int | None = None
    ) -> None:
        """Set the limits of resource; hard defaults to soft."""
        soft = coerce_int(soft, "soft")
        hard = soft if hard is None else coerce_int(hard, "hard")
        self._posix.call("setrlimit", resolve_rlimit(resource), (soft, hard))

    def getpriority(self, kind: int | str, who: int) -> int:
        return self._posix.call(
            "getpriority", resolve_priority_kind(kind), coerce_int(who, "who")
        )

    def setpriority(self, kind: int | str, who: int, priority: int) -> None:
        self._posix.call(
            "setpriority",
            resolve_priority_kind(kind),
            coerce_int(who, "who"),
            coerce_int(priority, "priority"),
        )


_resources = Resources()

getrlimit = _resources.getrlimit
setrlimit = _resources.setrlimit
getpriority = _resources.getpriority
setpriority = _resources.setpriority
