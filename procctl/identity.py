"""
Process identity: ids, raw id setters and supplementary groups.

set_uid and set_euid go through the UID switcher's fallback chains. set_gid
and set_egid issue a single setgid or setegid call. The Sys class exposes
each raw primitive on its own, with errno translation and nothing else.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from .exceptions import UnsupportedOperationError
from .posix import Posix, default_posix
from .privilege import GID, UID, UNCHANGED
from .utils import coerce_int

DEFAULT_MAXGROUPS = 32


def pid() -> int:
    return default_posix.call("getpid")


def ppid() -> int:
    return default_posix.call("getppid")


def uid() -> int:
    return UID.real_id()


def euid() -> int:
    return UID.effective_id()


def gid() -> int:
    return GID.real_id()


def egid() -> int:
    return GID.effective_id()


def set_uid(new_uid: int) -> int:
    """Set the real user id; returns new_uid."""
    return UID.set_real_id(new_uid)


def set_euid(new_uid: int) -> int:
    """Set the effective user id; returns new_uid."""
    return UID.set_effective_id(new_uid)


def set_gid(new_gid: int) -> int:
    """Set the group id with a single setgid call; returns new_gid."""
    new_gid = coerce_int(new_gid, "gid")
    sys_calls.setgid(new_gid)
    return new_gid


def set_egid(new_gid: int) -> int:
    """Set the effective group id with a single setegid call; returns new_gid."""
    new_gid = coerce_int(new_gid, "gid")
    sys_calls.setegid(new_gid)
    return new_gid


class Sys:
    """
    Raw identity primitives.

    Each method issues exactly one syscall. Use the UID and GID switchers
    for anything that needs a fallback or a restore.
    """

    def __init__(self, posix: Posix | None = None) -> None:
        self._posix = posix if posix is not None else default_posix

    def getuid(self) -> int:
        return self._posix.call("getuid")

    def geteuid(self) -> int:
        return self._posix.call("geteuid")

    def getgid(self) -> int:
        return self._posix.call("getgid")

    def getegid(self) -> int:
        return self._posix.call("getegid")

    def setuid(self, new_uid: int) -> None:
        self._posix.call("setuid", coerce_int(new_uid, "uid"))

    def setgid(self, new_gid: int) -> None:
        self._posix.call("setgid", coerce_int(new_gid, "gid"))

    def seteuid(self, new_uid: int) -> None:
        self._posix.call("seteuid", coerce_int(new_uid, "uid"))

    def setegid(self, new_gid: int) -> None:
        self._posix.call("setegid", coerce_int(new_gid, "gid"))

    def setruid(self, new_uid: int) -> None:
        self.setreuid(new_uid, UNCHANGED)

    def setrgid(self, new_gid: int) -> None:
        self.setregid(new_gid, UNCHANGED)

    def setreuid(self, real: int, effective: int) -> None:
        self._posix.call(
            "setreuid", coerce_int(real, "real"), coerce_int(effective, "effective")
        )

    def setregid(self, real: int, effective: int) -> None:
        self._posix.call(
            "setregid", coerce_int(real, "real"), coerce_int(effective, "effective")
        )

    def setresuid(self, real: int, effective: int, saved: int) -> None:
        self._posix.call(
            "setresuid",
            coerce_int(real, "real"),
            coerce_int(effective, "effective"),
            coerce_int(saved, "saved"),
        )

    def setresgid(self, real: int, effective: int, saved: int) -> None:
        self._posix.call(
            "setresgid",
            coerce_int(real, "real"),
            coerce_int(effective, "effective"),
            coerce_int(saved, "saved"),
        )

    def issetugid(self) -> bool:
        raise UnsupportedOperationError("issetugid")


class Groups:
    """
    Supplementary group list of the calling process.

    maxgroups is the size of the buffer set_groups() is prepared to pass; it
    grows to fit a longer list.
    """

    def __init__(self, posix: Posix | None = None) -> None:
        self._posix = posix if posix is not None else default_posix
        self._maxgroups = DEFAULT_MAXGROUPS
        self._lock = threading.Lock()

    @property
    def maxgroups(self) -> int:
        return self._maxgroups

    @maxgroups.setter
    def maxgroups(self, value: int) -> None:
        self._maxgroups = coerce_int(value, "maxgroups")

    def get(self) -> list[int]:
        return list(self._posix.call("getgroups"))

    def set(self, groups: Iterable[int]) -> list[int]:
        """Replace the supplementary group list; returns it."""
        group_list = [coerce_int(g, "gid") for g in groups]
        with self._lock:
            if len(group_list) > self._maxgroups:
                self._maxgroups = len(group_list)
        self._posix.call("setgroups", group_list)
        return group_list

    def initgroups(self, username: str, base_gid: int) -> list[int]:
        """Initialize the group list from the group database; returns it."""
        self._posix.call("initgroups", str(username), coerce_int(base_gid, "gid"))
        return self.get()


sys_calls = Sys()
_groups = Groups()


def groups() -> list[int]:
    return _groups.get()


def set_groups(group_list: Iterable[int]) -> list[int]:
    return _groups.set(group_list)


def initgroups(username: str, base_gid: int) -> list[int]:
    return _groups.initgroups(username, base_gid)


def maxgroups() -> int:
    return _groups.maxgroups


def set_maxgroups(value: int) -> None:
    _groups.maxgroups = value
