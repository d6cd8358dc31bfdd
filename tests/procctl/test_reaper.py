"""
Tests for Reaper against a scripted syscall binding.

Tests key reaping features including:
- Non-blocking reaps that find nothing ready
- Two-phase blocking reaps (waitid WNOWAIT, then waitpid WNOHANG)
- Recovery when another reaper wins the race
- waitall() termination on ECHILD
- Registry and last-status publication
"""

import os
import signal

import pytest

from procctl.exceptions import InvalidArgumentError, NoChildProcessesError
from procctl.reaper import ANY_CHILD, Reaper
from procctl.registry import ChildRegistry, LastStatus
from tests.helpers.fakes import FakePosix, echild, waitid_result


def make_reaper(posix: FakePosix) -> Reaper:
    return Reaper(registry=ChildRegistry(), last=LastStatus(), posix=posix)


# =============================================================================
# Test Non-Blocking Reaps
# =============================================================================


@pytest.mark.unit
class TestNonBlocking:
    """Test reap(non_blocking=True)."""

    def test_nothing_ready_returns_none(self):
        """Test a live child yields no result and no registry entry."""
        posix = FakePosix({"waitpid": (0, 0)})
        reaper = make_reaper(posix)

        assert reaper.reap(42, non_blocking=True) is None
        assert posix.calls == [("waitpid", (42, os.WNOHANG))]
        assert len(reaper.registry) == 0
        assert reaper.last.get() is None

    def test_zero_exit_is_a_result(self):
        """Test exit status 0 is distinguishable from nothing ready."""
        posix = FakePosix({"waitpid": (42, 0)})
        reaper = make_reaper(posix)

        pid, status = reaper.reap(ANY_CHILD, non_blocking=True)
        assert pid == 42
        assert status == 0
        assert status.success() is True

    def test_no_children(self):
        """Test ECHILD surfaces as NoChildProcessesError."""
        posix = FakePosix({"waitpid": echild()})
        with pytest.raises(NoChildProcessesError):
            make_reaper(posix).reap(non_blocking=True)

    def test_wait_returns_pid(self):
        """Test wait() returns only the pid."""
        posix = FakePosix({"waitpid": [(0, 0), (42, 1 << 8)]})
        reaper = make_reaper(posix)
        assert reaper.wait(42, non_blocking=True) is None
        assert reaper.wait(42, non_blocking=True) == 42


# =============================================================================
# Test Blocking Reaps
# =============================================================================


@pytest.mark.unit
class TestBlocking:
    """Test the two-phase blocking reap."""

    def test_waits_then_consumes(self):
        """Test waitid peeks and waitpid consumes the reported child."""
        posix = FakePosix(
            {"waitid": waitid_result(42), "waitpid": (42, 3 << 8)}
        )
        reaper = make_reaper(posix)

        pid, status = reaper.reap()
        assert pid == 42
        assert status.exit_code() == 3
        assert posix.calls == [
            ("waitid", (os.P_ALL, 0, os.WEXITED | os.WNOWAIT)),
            ("waitpid", (42, os.WNOHANG)),
        ]

    def test_publishes_to_registry_and_last(self):
        """Test the result is stored and mirrored."""
        posix = FakePosix({"waitid": waitid_result(42), "waitpid": (42, 0)})
        reaper = make_reaper(posix)

        _, status = reaper.reap(42)
        assert reaper.registry.get(42) is status
        assert reaper.last.get() is status

    def test_specific_pid(self):
        """Test a positive pid waits on exactly that child."""
        posix = FakePosix({"waitid": waitid_result(42), "waitpid": (42, 0)})
        make_reaper(posix).reap(42)
        assert posix.args_of("waitid") == [(os.P_PID, 42, os.WEXITED | os.WNOWAIT)]

    def test_process_group(self):
        """Test a negative pid waits on that process group."""
        posix = FakePosix({"waitid": waitid_result(43), "waitpid": (43, 0)})
        make_reaper(posix).reap(-77)
        assert posix.args_of("waitid") == [(os.P_PGID, 77, os.WEXITED | os.WNOWAIT)]

    def test_own_process_group(self):
        """Test pid 0 waits on the caller's process group."""
        posix = FakePosix(
            {"getpgrp": 55, "waitid": waitid_result(43), "waitpid": (43, 0)}
        )
        make_reaper(posix).reap(0)
        assert posix.args_of("waitid") == [(os.P_PGID, 55, os.WEXITED | os.WNOWAIT)]

    def test_untraced_reports_stopped(self):
        """Test untraced reaps ask for and decode stopped children."""
        raw = (signal.SIGSTOP << 8) | 0x7F
        posix = FakePosix({"waitid": waitid_result(42), "waitpid": (42, raw)})

        _, status = make_reaper(posix).reap(42, untraced=True)
        assert status.stopped()
        assert status.stopsig == signal.SIGSTOP
        assert posix.args_of("waitid") == [
            (os.P_PID, 42, os.WEXITED | os.WNOWAIT | os.WSTOPPED)
        ]
        assert posix.args_of("waitpid") == [(42, os.WNOHANG | os.WUNTRACED)]

    def test_lost_race_waits_again(self):
        """Test a child consumed by another reaper restarts the wait."""
        posix = FakePosix(
            {
                "waitid": [waitid_result(42), waitid_result(43)],
                "waitpid": [echild(), (43, 0)],
            }
        )
        pid, _ = make_reaper(posix).reap()
        assert pid == 43
        assert posix.names() == ["waitid", "waitpid", "waitid", "waitpid"]

    def test_lost_race_retry_when_not_ready(self):
        """Test waitpid finding nothing after the peek waits again."""
        posix = FakePosix(
            {
                "waitid": [waitid_result(42), waitid_result(42)],
                "waitpid": [(0, 0), (42, 0)],
            }
        )
        pid, _ = make_reaper(posix).reap(42)
        assert pid == 42
        assert len(posix.args_of("waitid")) == 2

    def test_lost_race_for_specific_pid_raises(self):
        """Test a specific pid reaped elsewhere is reported as gone."""
        posix = FakePosix({"waitid": waitid_result(42), "waitpid": echild()})
        with pytest.raises(NoChildProcessesError):
            make_reaper(posix).reap(42)

    def test_no_children(self):
        """Test waitid ECHILD propagates."""
        posix = FakePosix({"waitid": echild()})
        with pytest.raises(NoChildProcessesError):
            make_reaper(posix).reap()

    def test_without_waitid(self):
        """Test the blocking waitpid fallback."""
        posix = FakePosix({"waitpid": (42, 0)}, unsupported=["waitid"])
        pid, _ = make_reaper(posix).reap()
        assert pid == 42
        assert posix.calls == [("waitpid", (ANY_CHILD, 0))]

    def test_invalid_pid(self):
        """Test a non-integer pid is rejected before any syscall."""
        posix = FakePosix()
        with pytest.raises(InvalidArgumentError):
            make_reaper(posix).reap("42")
        assert posix.calls == []


# =============================================================================
# Test waitall
# =============================================================================


@pytest.mark.unit
class TestWaitAll:
    """Test waitall()."""

    def test_collects_in_kernel_order(self):
        """Test every child is returned in the order reported."""
        posix = FakePosix(
            {
                "waitid": [waitid_result(9), waitid_result(3), echild()],
                "waitpid": [(9, 0), (3, signal.SIGTERM)],
            }
        )
        reaper = make_reaper(posix)

        results = reaper.waitall()
        assert [pid for pid, _ in results] == [9, 3]
        assert results[0][1].exit_code() == 0
        assert results[1][1].termsig == signal.SIGTERM
        assert sorted(reaper.registry.pids()) == [3, 9]

    def test_no_children(self):
        """Test waitall() with nothing to reap."""
        posix = FakePosix({"waitid": echild()})
        assert make_reaper(posix).waitall() == []
