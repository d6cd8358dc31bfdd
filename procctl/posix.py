"""
Raw syscall binding.

Posix is the only place where procctl touches the kernel. Every call goes
through Posix.call(), which:

- reports a primitive missing from this platform as UnsupportedOperationError
  (identity setters use this to walk their fallback chains);
- translates OSError into OSCallError, or NoChildProcessesError for ECHILD.

Components accept a Posix instance so tests can substitute a recording fake.
Interrupted syscalls are retried by the interpreter itself (PEP 475), so no
retry logic lives here.
"""

import os
import resource
from collections.abc import Callable
from typing import Any

from .exceptions import OSCallError, UnsupportedOperationError

_MODULES = (os, resource)


class Posix:
    """Thin, stateless wrapper over the os and resource modules."""

    def resolve(self, name: str) -> Callable[..., Any] | None:
        """Return the primitive called name, or None if the platform lacks it."""
        for module in _MODULES:
            fn = getattr(module, name, None)
            if fn is not None:
                return fn
        return None

    def available(self, name: str) -> bool:
        return self.resolve(name) is not None

    def call(self, name: str, *args: Any) -> Any:
        """
        Invoke the primitive called name with args.

        Raises:
            UnsupportedOperationError: The platform lacks the primitive
            OSCallError: The primitive failed
        """
        fn = self.resolve(name)
        if fn is None:
            raise UnsupportedOperationError(name)
        try:
            return fn(*args)
        except OSError as e:
            raise OSCallError.from_oserror(name, e) from e

    # Process lifecycle

    def fork(self) -> int:
        return self.call("fork")

    def waitpid(self, pid: int, options: int) -> tuple[int, int]:
        return self.call("waitpid", pid, options)

    def waitid(self, idtype: int, ident: int, options: int) -> Any:
        return self.call("waitid", idtype, ident, options)

    def kill(self, pid: int, sig: int) -> None:
        self.call("kill", pid, sig)

    def exit_now(self, status: int) -> None:
        os._exit(status)

    # Credentials

    def getuid(self) -> int:
        return self.call("getuid")

    def geteuid(self) -> int:
        return self.call("geteuid")

    def getgid(self) -> int:
        return self.call("getgid")

    def getegid(self) -> int:
        return self.call("getegid")


default_posix = Posix()
