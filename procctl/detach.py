"""
Background reaping of a single child.
"""

from __future__ import annotations

import threading

from .exceptions import InvalidArgumentError, ProcError
from .log import Logger, derive_lg
from .reaper import Reaper, default_reaper
from .status import StatusCode
from .utils import coerce_int

DEFAULT_THREAD_NAME = "procctl-detach"

_thread_name = DEFAULT_THREAD_NAME


def set_default_thread_name(name: str) -> None:
    """Set the thread name prefix used by detach() when none is given."""
    global _thread_name
    _thread_name = name


class DetachedChild(threading.Thread):
    """
    Daemon thread that blocks until one child exits and keeps its status.

    The thread is the only intended reaper of its pid. A direct reap of the
    same pid from elsewhere races with it; which one wins is unspecified.
    """

    def __init__(
        self, pid: int, reaper: Reaper, lg: Logger, name: str = DEFAULT_THREAD_NAME
    ) -> None:
        super().__init__(name=f"{name}-{pid}", daemon=True)
        self._pid = pid
        self._reaper = reaper
        self._lg = lg
        self._status: StatusCode | None = None
        self._error: ProcError | None = None

    @property
    def pid(self) -> int:
        """Pid of the child being watched."""
        return self._pid

    @property
    def status(self) -> StatusCode | None:
        """The child's StatusCode once reaped, else None."""
        return self._status

    def done(self) -> bool:
        return self.ident is not None and not self.is_alive()

    def run(self) -> None:
        try:
            result = self._reaper.reap(self._pid)
        except ProcError as e:
            self._lg.debug(
                "detached reap failed", extra={"pid": self._pid, "exception": e}
            )
            self._error = e
            return
        if result is not None:
            self._status = result[1]

    def value(self, timeout: float | None = None) -> StatusCode | None:
        """
        Wait for the child and return its StatusCode.

        Returns None if timeout expires first. Re-raises the reap failure
        (e.g. NoChildProcessesError) if the child could not be reaped.
        """
        self.join(timeout)
        if self._error is not None:
            raise self._error
        return self._status


def detach(
    pid: int,
    reaper: Reaper | None = None,
    lg: Logger | None = None,
    thread_name: str | None = None,
) -> DetachedChild:
    """
    Reap pid in the background.

    Args:
        pid: A specific child pid (must be positive)
        reaper: Reaper to use (default: process-wide)
        lg: Parent logger; logs under ``<lg>/detach``
        thread_name: Prefix of the watcher thread's name (default: configured)

    Returns:
        A started DetachedChild handle

    Raises:
        InvalidArgumentError: pid is not a positive integer
    """
    pid = coerce_int(pid)
    if pid <= 0:
        raise InvalidArgumentError("only positive pids may be detached", pid=pid)

    handle = DetachedChild(
        pid,
        reaper if reaper is not None else default_reaper(),
        derive_lg(lg, "detach"),
        thread_name if thread_name is not None else _thread_name,
    )
    handle.start()
    handle._lg.debug("detached child", extra={"pid": pid, "thread": handle.name})
    return handle
