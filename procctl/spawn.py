"""
Process creation.

Spawner.fork() duplicates the calling process and returns a ForkOutcome that
tells each copy which side it is on. Spawner.fork_with(body) runs body only
in the child and guarantees the child never returns into the parent's
control flow:

1. body runs; normal completion means status 0, SystemExit carries its own
   code, and any other exception is printed to stderr and means status 1;
2. the exit finalizer queue is drained once (a finalizer raising SystemExit
   replaces the status);
3. the child terminates through exit_now(), which runs no finalizers, no
   ``finally`` blocks and no atexit hooks a second time.

Two termination primitives exist for that reason: exit() unwinds the stack
and lets atexit drain the finalizer queue, exit_now() ends the process on the
spot.
"""

from __future__ import annotations

import atexit
import contextlib
import os
import sys
import threading
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, NoReturn

from .exceptions import InvalidArgumentError
from .log import Logger, derive_lg
from .posix import Posix, default_posix

DEFAULT_SHELL = "/bin/sh"

FORK_FAILURE_HEADER = "An exception occurred in a forked block"


@dataclass(frozen=True)
class ParentSide:
    """fork() result in the parent: the new child's pid."""

    child_pid: int


@dataclass(frozen=True)
class ChildSide:
    """fork() result in the child."""


ForkOutcome = ParentSide | ChildSide


def exit_status(code: object) -> int:
    """Map a SystemExit code to a process exit status, as the interpreter does."""
    if code is None:
        return 0
    if isinstance(code, int):
        return int(code)
    print(code, file=sys.stderr)
    return 1


def _flush_stdio() -> None:
    for stream in (sys.stdout, sys.stderr):
        with contextlib.suppress(AttributeError, OSError, ValueError):
            stream.flush()


def _report_failure(header: str) -> None:
    with contextlib.suppress(OSError, ValueError):
        sys.stderr.write(f"{header}:\n")
        traceback.print_exc(file=sys.stderr)


class ExitFinalizers:
    """
    Ordered queue of zero-argument callbacks to run at process exit.

    Finalizers run last-registered-first. drain() empties the queue, so each
    finalizer runs at most once no matter how the process ends.

    Example:
        finalizers = ExitFinalizers()

        @finalizers.register
        def remove_pidfile():
            os.unlink(PIDFILE)
    """

    def __init__(self) -> None:
        self._queue: list[Callable[[], Any]] = []
        self._lock = threading.Lock()

    def register(self, fn: Callable[[], Any]) -> Callable[[], Any]:
        """Add fn to the queue and return it (usable as a decorator)."""
        with self._lock:
            self._queue.append(fn)
        return fn

    def unregister(self, fn: Callable[[], Any]) -> None:
        with self._lock:
            self._queue = [f for f in self._queue if f is not fn]

    def empty(self) -> bool:
        return not self._queue

    def __len__(self) -> int:
        return len(self._queue)

    def drain(self, status: int = 0) -> int:
        """
        Run and remove every queued finalizer.

        Args:
            status: Exit status before finalizers run

        Returns:
            The final exit status: the code of the last finalizer that raised
            SystemExit, or status if none did. Other finalizer failures are
            printed to stderr and do not stop the drain.
        """
        while True:
            with self._lock:
                if not self._queue:
                    return status
                fn = self._queue.pop()
            try:
                fn()
            except SystemExit as e:
                status = exit_status(e.code)
            except Exception:
                _report_failure("Error in exit finalizer")

    def _reset_after_fork(self) -> None:
        self._lock = threading.Lock()


default_finalizers = ExitFinalizers()

atexit.register(default_finalizers.drain)
os.register_at_fork(after_in_child=default_finalizers._reset_after_fork)


class Spawner:
    """
    Creates processes.

    Args:
        posix: Syscall binding (default: the real one)
        finalizers: Exit finalizer queue drained by fork_with() children
        lg: Parent logger; the spawner logs under ``<lg>/spawn``
        flush_stdio: Flush stdout/stderr before forking so buffered output is
            not written twice
        shell: Shell used for single-string commands
    """

    def __init__(
        self,
        posix: Posix | None = None,
        finalizers: ExitFinalizers | None = None,
        lg: Logger | None = None,
        flush_stdio: bool = True,
        shell: str = DEFAULT_SHELL,
    ) -> None:
        self._posix = posix if posix is not None else default_posix
        self.finalizers = finalizers if finalizers is not None else default_finalizers
        self._lg = derive_lg(lg, "spawn")
        self.flush_stdio = flush_stdio
        self.shell = shell

    def fork(self) -> ForkOutcome:
        """Duplicate the calling process."""
        if self.flush_stdio:
            _flush_stdio()
        pid = self._posix.fork()
        if pid == 0:
            return ChildSide()
        self._lg.debug("forked child", extra={"child": pid})
        return ParentSide(pid)

    def fork_with(self, body: Callable[[], Any] | None = None) -> ForkOutcome:
        """
        Fork, optionally running body in the child.

        Without body both sides return. With body only the parent returns
        (always a ParentSide); the child runs body and terminates.
        """
        outcome = self.fork()
        if body is None or isinstance(outcome, ParentSide):
            return outcome
        self._run_child(body)

    def _run_child(self, body: Callable[[], Any]) -> NoReturn:
        status = 1
        try:
            try:
                body()
                status = 0
            except SystemExit as e:
                status = exit_status(e.code)
            except BaseException:
                # The child must never unwind into the parent's frames
                _report_failure(FORK_FAILURE_HEADER)
                status = 1
            status = self.finalizers.drain(status)
        finally:
            self.exit_now(status)

    def exit_now(self, status: int = 0) -> NoReturn:
        """Terminate immediately: no finalizers, no unwinding."""
        _flush_stdio()
        self._posix.exit_now(status)
        raise AssertionError("exit_now returned")  # pragma: no cover

    def exec_replace(self, *args: Any, env: dict[str, str] | None = None) -> NoReturn:
        """
        Replace the current process image.

        A single string is run through the shell; otherwise the arguments (or
        a single sequence) form the argv, and argv[0] is looked up on PATH.
        """
        argv = self._argv(args)
        self._lg.debug("exec", extra={"argv": argv})
        _flush_stdio()
        if env is None:
            self._posix.call("execvp", argv[0], argv)
        else:
            self._posix.call("execvpe", argv[0], argv, env)
        raise AssertionError("exec returned")  # pragma: no cover

    def spawn_detached(self, *args: Any, env: dict[str, str] | None = None) -> int:
        """
        Start a new process without waiting for it; return its pid.

        Arguments are interpreted as for exec_replace(). Reap the child with a
        Reaper or detach() it.
        """
        argv = self._argv(args)
        pid = self._posix.call(
            "posix_spawnp", argv[0], argv, env if env is not None else os.environ
        )
        self._lg.debug("spawned", extra={"child": pid, "argv": argv})
        return pid

    def daemon(self, stay_in_dir: bool = False, keep_stdio_open: bool = False) -> int:
        """
        Turn the calling process into a daemon.

        Forks twice around setsid(); each intermediate process leaves through
        exit_now(0), so the caller's finalizers run only in the daemon.
        Returns 0 in the daemon.
        """
        if isinstance(self.fork(), ParentSide):
            self.exit_now(0)
        self._posix.call("setsid")
        if isinstance(self.fork(), ParentSide):
            self.exit_now(0)

        if not stay_in_dir:
            self._posix.call("chdir", "/")
        if not keep_stdio_open:
            fd = self._posix.call("open", os.devnull, os.O_RDWR)
            for target in (0, 1, 2):
                self._posix.call("dup2", fd, target)
            if fd > 2:
                self._posix.call("close", fd)
        return 0

    def _argv(self, args: Sequence[Any]) -> list[str]:
        if len(args) == 1 and isinstance(args[0], (list, tuple)):
            args = args[0]
        if not args:
            raise InvalidArgumentError("a command is required")
        if len(args) == 1 and isinstance(args[0], str):
            return [self.shell, "-c", args[0]]
        try:
            return [os.fspath(a) for a in args]
        except TypeError:
            raise InvalidArgumentError("arguments must be strings", argv=args) from None


def exit(status: int = 0) -> NoReturn:  # noqa: A001
    """Terminate by unwinding: finally blocks and exit finalizers run."""
    raise SystemExit(status)


def abort(msg: str | None = None) -> NoReturn:
    """Print msg (if any) to stderr and exit with status 1 by unwinding."""
    if msg is not None:
        print(msg, file=sys.stderr)
    raise SystemExit(1)


_default_spawner: Spawner | None = None
_default_lock = threading.Lock()


def default_spawner() -> Spawner:
    """Return the process-wide spawner, creating it on first use."""
    global _default_spawner
    with _default_lock:
        if _default_spawner is None:
            _default_spawner = Spawner()
        return _default_spawner


def set_default_spawner(spawner: Spawner) -> None:
    global _default_spawner
    with _default_lock:
        _default_spawner = spawner


def fork_with(body: Callable[[], Any] | None = None) -> ForkOutcome:
    """Fork with the process-wide spawner; see Spawner.fork_with()."""
    return default_spawner().fork_with(body)


def exit_now(status: int = 0) -> NoReturn:
    """Terminate immediately: no finalizers, no unwinding."""
    default_spawner().exit_now(status)


def exec_replace(*args: Any, env: dict[str, str] | None = None) -> NoReturn:
    default_spawner().exec_replace(*args, env=env)


def spawn_detached(*args: Any, env: dict[str, str] | None = None) -> int:
    return default_spawner().spawn_detached(*args, env=env)


def daemon(stay_in_dir: bool = False, keep_stdio_open: bool = False) -> int:
    return default_spawner().daemon(stay_in_dir, keep_stdio_open)


def at_exit(fn: Callable[[], Any]) -> Callable[[], Any]:
    """Register fn on the process-wide exit finalizer queue."""
    return default_finalizers.register(fn)
