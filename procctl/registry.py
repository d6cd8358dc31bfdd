"""
Process-wide record of reaped children.
"""

from __future__ import annotations

import os
import threading

from .status import StatusCode


class LastStatus:
    """
    Holder for the most recent wait result.

    Mirrors the "last child status" side channel that callers of wait may
    rely on. The reaper writes it; anyone may read it. Pass a fresh holder to
    a Reaper to isolate it from the process-wide one.
    """

    def __init__(self) -> None:
        self._value: StatusCode | None = None

    def get(self) -> StatusCode | None:
        return self._value

    def set(self, status: StatusCode) -> None:
        self._value = status

    def clear(self) -> None:
        self._value = None


class ChildRegistry:
    """
    Map from child pid to the latest StatusCode observed for it.

    ``lock`` guards the consuming half of every reap (issue the reaping wait,
    decode, store). Holding it across those three steps means two reapers can
    never interleave at the syscall boundary.

    Entries are never de-duplicated: the kernel reports each exit at most
    once, so a pid is written once per exit event (and again only if it was
    stopped and later continued or exited).
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._statuses: dict[int, StatusCode] = {}

    def record(self, status: StatusCode) -> None:
        """Store status as the newest entry for its pid. Caller holds lock."""
        self._statuses[status.pid] = status

    def get(self, pid: int) -> StatusCode | None:
        return self._statuses.get(pid)

    def pids(self) -> list[int]:
        return list(self._statuses)

    def forget(self, pid: int) -> StatusCode | None:
        """Drop and return the entry for pid."""
        with self.lock:
            return self._statuses.pop(pid, None)

    def __contains__(self, pid: object) -> bool:
        return pid in self._statuses

    def __len__(self) -> int:
        return len(self._statuses)

    def _reset_after_fork(self) -> None:
        # A forked child has no children yet, and the lock may have been held
        # by a parent thread that does not exist in the child.
        self.lock = threading.Lock()
        self._statuses = {}


default_registry = ChildRegistry()
default_last_status = LastStatus()

os.register_at_fork(after_in_child=default_registry._reset_after_fork)
os.register_at_fork(after_in_child=default_last_status.clear)
