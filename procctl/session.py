"""
Process group and session helpers.

One-shot wrappers only; procctl does not model groups or sessions.
"""

from __future__ import annotations

import os

from .posix import Posix, default_posix
from .utils import coerce_int


class Session:
    def __init__(self, posix: Posix | None = None) -> None:
        self._posix = posix if posix is not None else default_posix

    def setsid(self) -> int:
        """Start a new session; returns the new session (and group) id."""
        return self._posix.call("setsid")

    def getpgid(self, pid: int) -> int:
        return self._posix.call("getpgid", coerce_int(pid))

    def setpgid(self, pid: int, pgid: int) -> int:
        self._posix.call("setpgid", coerce_int(pid), coerce_int(pgid, "pgid"))
        return 0

    def getpgrp(self) -> int:
        return self._posix.call("getpgrp")

    def setpgrp(self) -> int:
        """Make the calling process a process group leader."""
        return self.setpgid(0, 0)

    def times(self) -> os.times_result:
        return self._posix.call("times")


_session = Session()

setsid = _session.setsid
getpgid = _session.getpgid
setpgid = _session.setpgid
getpgrp = _session.getpgrp
setpgrp = _session.setpgrp
times = _session.times
