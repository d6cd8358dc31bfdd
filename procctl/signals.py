"""
Signal delivery.

A signal identifier is a number or a name. Names may carry a ``SIG`` prefix
and a leading ``-``; the dash, like a negative number, addresses the process
group of each target instead of the process itself:

    send("TERM", pid)       # kill(pid, SIGTERM)
    send("-SIGTERM", pid)   # kill(-pid, SIGTERM)
    send(-15, pid)          # kill(-pid, SIGTERM)
"""

from __future__ import annotations

import functools
import signal as _signal

from .exceptions import InvalidArgumentError
from .log import Logger, derive_lg
from .posix import Posix, default_posix
from .utils import coerce_int


@functools.cache
def signal_names() -> dict[str, int]:
    """
    Map of signal names (without the SIG prefix) to numbers on this platform.

    Includes EXIT (0), which checks that a target exists without signalling it.
    """
    names = {"EXIT": 0}
    # __members__ includes aliases such as IOT and CLD
    for name, sig in _signal.Signals.__members__.items():
        if name.startswith("SIG") and not name.startswith("SIG_"):
            names[name[3:]] = int(sig)
    return names


def resolve_signal(identifier: int | str) -> tuple[int, bool]:
    """
    Resolve identifier to (signal number, target process group).

    Raises:
        InvalidArgumentError: Unknown name or unsupported identifier type
    """
    use_group = False

    if isinstance(identifier, str):
        name = identifier
        if name.startswith("-"):
            name = name[1:]
            use_group = True
        if name.startswith("SIG"):
            name = name[3:]
        number = signal_names().get(name)
        if number is None:
            raise InvalidArgumentError("unknown signal name", signal=identifier)
    elif isinstance(identifier, int) and not isinstance(identifier, bool):
        number = int(identifier)
    else:
        raise InvalidArgumentError(
            "signal must be a number or a name", signal=repr(identifier)
        )

    if number < 0:
        number = -number
        use_group = True
    return number, use_group


class SignalSender:
    """
    Delivers signals to one or more processes.

    Args:
        posix: Syscall binding (default: the real one)
        lg: Parent logger; the sender logs under ``<lg>/signals``
    """

    def __init__(self, posix: Posix | None = None, lg: Logger | None = None) -> None:
        self._posix = posix if posix is not None else default_posix
        self._lg = derive_lg(lg, "signals")

    def send(self, identifier: int | str, *pids: int) -> int:
        """
        Send a signal to each pid in turn.

        All arguments are validated before the first delivery. A failed
        delivery raises and skips the remaining pids; signals already
        delivered stay delivered.

        Returns:
            The number of pids given

        Raises:
            InvalidArgumentError: No pids, bad pid, or unknown signal
            OSCallError: A delivery failed (e.g. ESRCH, EPERM)
        """
        if not pids:
            raise InvalidArgumentError("at least one pid is required")

        number, use_group = resolve_signal(identifier)
        targets = [coerce_int(pid) for pid in pids]

        for pid in targets:
            target = -pid if use_group else pid
            self._lg.debug(
                "sending signal", extra={"signal": number, "target": target}
            )
            self._posix.kill(target, number)

        return len(pids)


_default_sender: SignalSender | None = None


def kill(identifier: int | str, *pids: int) -> int:
    """Send a signal with the process-wide sender; see SignalSender.send()."""
    global _default_sender
    if _default_sender is None:
        _default_sender = SignalSender()
    return _default_sender.send(identifier, *pids)
