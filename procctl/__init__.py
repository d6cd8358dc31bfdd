from importlib.metadata import PackageNotFoundError, version

from .config import ProcConfig, configure
from .detach import DetachedChild, detach
from .exceptions import (
    ConfigError,
    InvalidArgumentError,
    NoChildProcessesError,
    OSCallError,
    ProcError,
    UnsupportedOperationError,
)
from .posix import Posix
from .privilege import GID, UID, IdSwitcher
from .reaper import (
    ANY_CHILD,
    Reaper,
    last_status,
    wait,
    wait2,
    waitall,
    waitpid,
    waitpid2,
)
from .registry import ChildRegistry, LastStatus
from .signals import SignalSender, kill, resolve_signal, signal_names
from .spawn import (
    ChildSide,
    ExitFinalizers,
    ForkOutcome,
    ParentSide,
    Spawner,
    abort,
    at_exit,
    daemon,
    exec_replace,
    exit,
    exit_now,
    fork_with,
    spawn_detached,
)
from .status import StatusCode

# Version is read from package metadata (pyproject.toml)
try:
    __version__ = version("procctl")
except PackageNotFoundError:
    # Package not installed, use fallback (development mode)
    __version__ = "0.1.0-dev"

# Explicit public API
__all__ = [
    # Version
    "__version__",
    # Status and bookkeeping
    "StatusCode",
    "ChildRegistry",
    "LastStatus",
    # Reaping
    "ANY_CHILD",
    "Reaper",
    "wait",
    "wait2",
    "waitpid",
    "waitpid2",
    "waitall",
    "last_status",
    "DetachedChild",
    "detach",
    # Process creation and termination
    "Spawner",
    "ForkOutcome",
    "ParentSide",
    "ChildSide",
    "ExitFinalizers",
    "fork_with",
    "exec_replace",
    "spawn_detached",
    "daemon",
    "at_exit",
    "exit",
    "exit_now",
    "abort",
    # Signals
    "SignalSender",
    "kill",
    "resolve_signal",
    "signal_names",
    # Privilege
    "IdSwitcher",
    "UID",
    "GID",
    # Syscall binding and configuration
    "Posix",
    "ProcConfig",
    "configure",
    # Exceptions
    "ProcError",
    "OSCallError",
    "NoChildProcessesError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "ConfigError",
]
