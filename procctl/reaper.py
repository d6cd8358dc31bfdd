"""
Reaping of child processes.

A reap consumes a child's state change through the wait family of syscalls,
decodes it into a StatusCode, stores it in a ChildRegistry and mirrors it
into a LastStatus holder.

Blocking reaps wait in two phases. The thread first blocks in
``waitid(..., WNOWAIT)``, which reports a state change without consuming it,
so no lock is held while the thread sleeps. It then takes the registry lock
and consumes exactly the reported child with a non-blocking ``waitpid``. If
another reaper consumed that child in between, the wait starts over. On a
platform without waitid the blocking waitpid runs under the lock instead.

Neither phase has a timeout: a blocking reap returns only when a matching
child changes state or no matching child remains. Bound it from outside
(e.g. with a signal) if needed.
"""

from __future__ import annotations

import os
import threading

from .exceptions import NoChildProcessesError, UnsupportedOperationError
from .log import Logger, derive_lg
from .posix import Posix, default_posix
from .registry import (
    ChildRegistry,
    LastStatus,
    default_last_status,
    default_registry,
)
from .status import StatusCode
from .utils import coerce_int

ANY_CHILD = -1

ReapResult = tuple[int, StatusCode]


class Reaper:
    """
    Waits for children and publishes their status.

    Args:
        registry: Registry to record statuses in (default: process-wide)
        last: Holder for the most recent result (default: process-wide)
        posix: Syscall binding (default: the real one)
        lg: Parent logger; the reaper logs under ``<lg>/reaper``

    Example:
        reaper = Reaper()
        pid, status = reaper.reap(child_pid)
        if status.success():
            ...
    """

    def __init__(
        self,
        registry: ChildRegistry | None = None,
        last: LastStatus | None = None,
        posix: Posix | None = None,
        lg: Logger | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.last = last if last is not None else default_last_status
        self._posix = posix if posix is not None else default_posix
        self._lg = derive_lg(lg, "reaper")

    def reap(
        self, pid: int = ANY_CHILD, non_blocking: bool = False, untraced: bool = False
    ) -> ReapResult | None:
        """
        Wait for a child to change state.

        Args:
            pid: Child pid, ANY_CHILD, 0 for any child in the caller's process
                 group, or -pgid for any child in that group
            non_blocking: Return None at once if no matching child has changed
                 state
            untraced: Also report children that were stopped

        Returns:
            (pid, StatusCode), or None in non-blocking mode when nothing is
            ready. A child that exited with status 0 is never reported as None.

        Raises:
            NoChildProcessesError: No matching child exists
        """
        pid = coerce_int(pid)
        options = os.WUNTRACED if untraced else 0

        if non_blocking:
            return self._consume(pid, options | os.WNOHANG)

        while True:
            try:
                ready = self._await_state_change(pid, untraced)
            except UnsupportedOperationError:
                result = self._consume(pid, options)
            else:
                try:
                    result = self._consume(ready, options | os.WNOHANG)
                except NoChildProcessesError:
                    # Reaped elsewhere between the two phases
                    if ready == pid:
                        raise
                    result = None
            if result is not None:
                return result
            self._lg.trace(
                "state change consumed elsewhere, waiting again", extra={"pid": pid}
            )

    def wait(
        self, pid: int = ANY_CHILD, non_blocking: bool = False, untraced: bool = False
    ) -> int | None:
        """Like reap(), but return only the pid (or None)."""
        result = self.reap(pid, non_blocking, untraced)
        return result[0] if result is not None else None

    def waitall(self) -> list[ReapResult]:
        """
        Reap every child until none remain.

        Results are in the order the kernel reports them. Children created by
        other threads while this runs are collected too: the loop only stops
        once the kernel reports that no child is left.
        """
        results: list[ReapResult] = []
        while True:
            try:
                result = self.reap(ANY_CHILD)
            except NoChildProcessesError:
                break
            if result is not None:
                results.append(result)
        self._lg.debug("reaped all children", extra={"count": len(results)})
        return results

    def _await_state_change(self, pid: int, untraced: bool) -> int:
        """Block until a matching child has a reportable state; return its pid."""
        if not self._posix.available("waitid"):
            raise UnsupportedOperationError("waitid")

        if pid == ANY_CHILD:
            idtype, ident = os.P_ALL, 0
        elif pid > 0:
            idtype, ident = os.P_PID, pid
        else:
            idtype = os.P_PGID
            ident = -pid if pid < 0 else self._posix.call("getpgrp")

        flags = os.WEXITED | os.WNOWAIT
        if untraced:
            flags |= os.WSTOPPED
        info = self._posix.waitid(idtype, ident, flags)
        return info.si_pid

    def _consume(self, pid: int, options: int) -> ReapResult | None:
        """Reap pid, decode and publish. One critical section."""
        with self.registry.lock:
            got, raw = self._posix.waitpid(pid, options)
            if got == 0:
                return None
            status = StatusCode.from_wait_status(got, raw)
            self.registry.record(status)
            self.last.set(status)

        self._lg.debug(
            "reaped child",
            extra={
                "pid": got,
                "status": status.status,
                "termsig": status.termsig,
                "stopsig": status.stopsig,
            },
        )
        return got, status


_default_reaper: Reaper | None = None
_default_lock = threading.Lock()


def default_reaper() -> Reaper:
    """Return the process-wide reaper, creating it on first use."""
    global _default_reaper
    with _default_lock:
        if _default_reaper is None:
            _default_reaper = Reaper()
        return _default_reaper


def wait2(pid: int = ANY_CHILD, non_blocking: bool = False) -> ReapResult | None:
    """Reap a child with the process-wide reaper; see Reaper.reap()."""
    return default_reaper().reap(pid, non_blocking)


def wait(pid: int = ANY_CHILD, non_blocking: bool = False) -> int | None:
    """Reap a child with the process-wide reaper and return its pid."""
    return default_reaper().wait(pid, non_blocking)


def waitall() -> list[ReapResult]:
    """Reap all children with the process-wide reaper."""
    return default_reaper().waitall()


def last_status() -> StatusCode | None:
    """Status of the most recent reap made through the process-wide holder."""
    return default_last_status.get()


waitpid = wait
waitpid2 = wait2
