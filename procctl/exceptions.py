"""
Unified exception hierarchy for process control.

Every failure raised by procctl derives from ProcError, so callers can catch
all library errors with a single except clause. OS-level failures only enter
the library through procctl.posix, which translates them into OSCallError.
"""

import errno as _errno
import os
from typing import Any


class ProcError(Exception):
    """
    Base exception for all procctl errors.

    Example:
        try:
            procctl.kill("TERM", pid)
        except ProcError as e:
            lg.error("signal failed", extra={"exception": e})
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class OSCallError(ProcError):
    """
    A wrapped syscall failed.

    Carries the OS errno, its symbolic name as the category (e.g. "EPERM")
    and the name of the failing call. Never retried by the library.
    """

    def __init__(
        self, call: str, errno: int, message: str | None = None, **context: Any
    ):
        self.call = call
        self.errno = errno
        self.category = _errno.errorcode.get(errno, "EUNKNOWN")
        super().__init__(
            message or os.strerror(errno),
            call=call,
            errno=self.category,
            **context,
        )

    @classmethod
    def from_oserror(cls, call: str, exc: OSError, **context: Any) -> "OSCallError":
        """Build the matching OSCallError subclass from an OSError."""
        code = exc.errno if exc.errno is not None else 0
        if code == _errno.ECHILD:
            return NoChildProcessesError(call, **context)
        return cls(call, code, exc.strerror, **context)


class NoChildProcessesError(OSCallError):
    """
    No waitable child matches the request (ECHILD).

    Used as the terminal condition of waitall().
    """

    def __init__(self, call: str = "waitpid", **context: Any) -> None:
        super().__init__(call, _errno.ECHILD, "No child processes", **context)


class InvalidArgumentError(ProcError, ValueError):
    """
    A malformed argument was rejected before any syscall was attempted.

    Examples:
        - Unknown signal name
        - Empty target pid list
        - Non-positive pid passed to detach()
        - Unknown resource or priority kind name
    """

    pass


class UnsupportedOperationError(ProcError, NotImplementedError):
    """
    A primitive is not available on this platform.

    Identity setters raise this only once every fallback has been tried.
    """

    def __init__(self, call: str, **context: Any) -> None:
        self.call = call
        super().__init__(f"{call} is not implemented on this platform", **context)


class ConfigError(ProcError):
    """
    Configuration-related errors.

    Examples:
        - Config file not found or too large
        - Invalid YAML syntax
        - Unknown configuration key
        - Invalid configuration value type
    """

    pass
