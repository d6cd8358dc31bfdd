"""
Decoded wait status of a child process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, eq=False)
class StatusCode:
    """
    Immutable outcome of one wait observation.

    Exactly one of ``status`` (normal exit), ``termsig`` (killed by a signal)
    and ``stopsig`` (stopped, not exited) is set. ``status`` holds the exit
    code, so ``status == 0`` reads as "exited successfully".

    Instances are produced by the reaper from a raw kernel wait status; use
    from_wait_status() rather than the constructor.
    """

    pid: int
    status: int | None = None
    termsig: int | None = None
    stopsig: int | None = None

    @classmethod
    def from_wait_status(cls, pid: int, raw: int) -> StatusCode:
        """
        Decode a raw wait status as returned by waitpid().

        Args:
            pid: Process id the status belongs to
            raw: Raw status integer

        Raises:
            ValueError: If raw encodes none of exited, signaled or stopped
        """
        if os.WIFEXITED(raw):
            return cls(pid, status=os.WEXITSTATUS(raw))
        if os.WIFSIGNALED(raw):
            return cls(pid, termsig=os.WTERMSIG(raw))
        if os.WIFSTOPPED(raw):
            return cls(pid, stopsig=os.WSTOPSIG(raw))
        raise ValueError(f"undecodable wait status 0x{raw:x} for pid {pid}")

    @property
    def exitstatus(self) -> int | None:
        return self.status

    def exit_code(self) -> int | None:
        """Exit code, or None if the process did not exit normally."""
        return self.status

    def exited(self) -> bool:
        return self.status is not None

    def signaled(self) -> bool:
        return self.termsig is not None

    def stopped(self) -> bool:
        return self.stopsig is not None

    def core_dumped(self) -> bool:
        # Not surfaced from the raw status.
        return False

    def success(self) -> bool | None:
        """
        True if exited with code 0, False if exited non-zero, None if the
        process was signaled or is stopped.
        """
        if not self.exited():
            return None
        return self.status == 0

    def __int__(self) -> int:
        if self.status is None:
            raise TypeError(f"process {self.pid} has no exit status")
        return self.status

    def __str__(self) -> str:
        return str(self.status)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StatusCode):
            return self.status == other.status
        if isinstance(other, int):
            return self.status == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.status)

    def __and__(self, mask: int) -> int:
        return int(self) & mask

    def __rshift__(self, bits: int) -> int:
        return int(self) >> bits
