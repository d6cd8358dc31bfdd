"""
Real/effective identity switching for user and group ids.

The UID and GID switchers implement the exchange-and-restore protocol:
exchange() swaps the real and effective ids in one setre*id() call, so a
process started with elevated rights can drop them for a while and take them
back later:

    with UID.switched():
        ...  # runs with real and effective uid swapped
    # original arrangement restored, also if the block raised

Every query goes to the kernel; nothing is cached. Swaps are not serialized
between threads: two threads calling switch() concurrently on the same
process race, and need an external lock if they must not.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from .exceptions import UnsupportedOperationError
from .log import Logger, derive_lg
from .posix import Posix, default_posix
from .utils import coerce_int

T = TypeVar("T")

UNCHANGED = -1


@dataclass(frozen=True)
class IdCalls:
    """Names of the primitives that read and set one kind of id."""

    kind: str
    get_real: str
    get_effective: str
    set_plain: str
    set_effective: str
    set_re: str
    set_res: str


UID_CALLS = IdCalls(
    "uid", "getuid", "geteuid", "setuid", "seteuid", "setreuid", "setresuid"
)
GID_CALLS = IdCalls(
    "gid", "getgid", "getegid", "setgid", "setegid", "setregid", "setresgid"
)


def run_fallback_chain(
    posix: Posix,
    candidates: Sequence[tuple[str, tuple[Any, ...]]],
    last_resort: Callable[[], Any],
) -> Any:
    """
    Call the first available primitive among candidates.

    A candidate the platform lacks falls through to the next one; a candidate
    that exists but fails raises at once. When none is available last_resort
    decides, typically by checking a precondition and either calling a
    coarser primitive or raising UnsupportedOperationError.
    """
    for name, args in candidates:
        try:
            return posix.call(name, *args)
        except UnsupportedOperationError:
            continue
    return last_resort()


class IdSwitcher:
    """
    Reads and changes the real and effective id of one kind (uid or gid).

    Args:
        kind: "uid" or "gid"
        posix: Syscall binding (default: the real one)
        lg: Parent logger; logs under ``<lg>/privilege/<kind>``
    """

    def __init__(
        self,
        kind: Literal["uid", "gid"],
        posix: Posix | None = None,
        lg: Logger | None = None,
    ) -> None:
        self.calls = UID_CALLS if kind == "uid" else GID_CALLS
        self._posix = posix if posix is not None else default_posix
        self._lg = derive_lg(lg, ["privilege", kind])

    @property
    def kind(self) -> str:
        return self.calls.kind

    def real_id(self) -> int:
        return self._posix.call(self.calls.get_real)

    def effective_id(self) -> int:
        return self._posix.call(self.calls.get_effective)

    rid = real_id
    eid = effective_id

    def set_effective_id(self, new_id: int) -> int:
        """
        Set the effective id, trying the most precise primitive first.

        Falls back from setres*id to setre*id to sete*id, and finally to the
        plain set*id when the real id already equals new_id.
        """
        new_id = coerce_int(new_id, "id")
        c = self.calls

        def last_resort() -> Any:
            if self.real_id() == new_id:
                return self._posix.call(c.set_plain, new_id)
            raise UnsupportedOperationError(f"set effective {c.kind}", id=new_id)

        run_fallback_chain(
            self._posix,
            [
                (c.set_res, (UNCHANGED, new_id, UNCHANGED)),
                (c.set_re, (UNCHANGED, new_id)),
                (c.set_effective, (new_id,)),
            ],
            last_resort,
        )
        self._lg.debug(f"set effective {c.kind}", extra={"id": new_id})
        return new_id

    grant_privilege = set_effective_id

    def set_real_id(self, new_id: int) -> int:
        """
        Set the real id, trying the most precise primitive first.

        Falls back from setres*id to setre*id, and finally to the plain
        set*id when the effective id already equals new_id.
        """
        new_id = coerce_int(new_id, "id")
        c = self.calls

        def last_resort() -> Any:
            if self.effective_id() == new_id:
                return self._posix.call(c.set_plain, new_id)
            raise UnsupportedOperationError(f"set real {c.kind}", id=new_id)

        run_fallback_chain(
            self._posix,
            [
                (c.set_res, (new_id, UNCHANGED, UNCHANGED)),
                (c.set_re, (new_id, UNCHANGED)),
            ],
            last_resort,
        )
        self._lg.debug(f"set real {c.kind}", extra={"id": new_id})
        return new_id

    def change_privilege(self, new_id: int) -> int:
        """
        Set both real and effective id to new_id.

        This is a one-way drop: once both slots hold an unprivileged id the
        process cannot regain the previous identity.
        """
        new_id = coerce_int(new_id, "id")
        self._posix.call(self.calls.set_re, new_id, new_id)
        self._lg.debug(f"changed {self.kind} privilege", extra={"id": new_id})
        return new_id

    def exchange(self) -> int:
        """
        Swap the real and effective ids.

        Returns:
            The effective id before the swap
        """
        real = self.real_id()
        effective = self.effective_id()
        self._posix.call(self.calls.set_re, effective, real)
        self._lg.trace(
            f"exchanged real and effective {self.kind}",
            extra={"real": effective, "effective": real},
        )
        return effective

    re_exchange = exchange

    def re_exchangeable(self) -> bool:
        return True

    def sid_available(self) -> bool:
        return True

    def switch(self, body: Callable[[], T] | None = None) -> T | int:
        """
        Swap real and effective ids, optionally around body.

        With body, the swap is undone after body returns or raises, and body's
        result is returned. Without body, the pre-swap effective id is
        returned and the swap stays in effect; call exchange() to undo it.
        """
        effective = self.exchange()
        if body is None:
            return effective
        try:
            return body()
        finally:
            self.exchange()

    @contextlib.contextmanager
    def switched(self) -> Iterator[int]:
        """Context manager form of switch(body); yields the pre-swap effective id."""
        effective = self.exchange()
        try:
            yield effective
        finally:
            self.exchange()


UID = IdSwitcher("uid")
GID = IdSwitcher("gid")
