"""
Tests for the one-shot syscall wrappers: identity, groups, resource limits,
priorities and sessions.
"""

import errno
import os
import resource

import pytest

from procctl import identity
from procctl.exceptions import (
    InvalidArgumentError,
    OSCallError,
    UnsupportedOperationError,
)
from procctl.identity import DEFAULT_MAXGROUPS, Groups, Sys
from procctl.posix import Posix
from procctl.resources import Resources, resolve_priority_kind, resolve_rlimit
from procctl.session import Session
from tests.helpers.fakes import FakePosix, os_error

# =============================================================================
# Test Posix
# =============================================================================


@pytest.mark.unit
class TestPosix:
    """Test the real binding's lookup and translation."""

    def test_resolves_from_os_and_resource(self):
        posix = Posix()
        assert posix.resolve("getpid") is os.getpid
        assert posix.resolve("getrlimit") is resource.getrlimit
        assert posix.resolve("no_such_call") is None

    def test_missing_primitive(self):
        with pytest.raises(UnsupportedOperationError):
            Posix().call("no_such_call")

    def test_oserror_translated(self):
        """Test a failing call surfaces as OSCallError with its errno."""
        with pytest.raises(OSCallError) as exc_info:
            Posix().call("close", -1)
        assert exc_info.value.errno == errno.EBADF
        assert exc_info.value.call == "close"

    def test_real_call(self):
        assert Posix().call("getpid") == os.getpid()


# =============================================================================
# Test Identity
# =============================================================================


@pytest.mark.unit
class TestSys:
    """Test the raw identity primitives."""

    def test_each_setter_is_one_call(self):
        posix = FakePosix()
        calls = Sys(posix)
        calls.setuid(1)
        calls.setegid(2)
        calls.setreuid(3, 4)
        calls.setresgid(5, 6, 7)
        assert posix.calls == [
            ("setuid", (1,)),
            ("setegid", (2,)),
            ("setreuid", (3, 4)),
            ("setresgid", (5, 6, 7)),
        ]

    def test_setruid_leaves_effective(self):
        posix = FakePosix()
        Sys(posix).setruid(9)
        assert posix.calls == [("setreuid", (9, -1))]

    def test_rejects_non_integer(self):
        posix = FakePosix()
        with pytest.raises(InvalidArgumentError):
            Sys(posix).setgid("wheel")
        assert posix.calls == []

    def test_issetugid_unsupported(self):
        with pytest.raises(UnsupportedOperationError):
            Sys(FakePosix()).issetugid()

    def test_group_setters_issue_single_call(self, monkeypatch):
        posix = FakePosix()
        monkeypatch.setattr(identity, "sys_calls", Sys(posix))
        assert identity.set_gid(5) == 5
        assert identity.set_egid(6) == 6
        assert posix.calls == [("setgid", (5,)), ("setegid", (6,))]

    def test_group_setter_failure_propagates(self, monkeypatch):
        posix = FakePosix(results={"setgid": os_error("EPERM")})
        monkeypatch.setattr(identity, "sys_calls", Sys(posix))
        with pytest.raises(OSCallError) as exc_info:
            identity.set_gid(0)
        assert exc_info.value.category == "EPERM"
        assert posix.names() == ["setgid"]


@pytest.mark.unit
class TestGroups:
    """Test supplementary group management."""

    def test_get(self):
        posix = FakePosix({"getgroups": lambda: [4, 24]})
        assert Groups(posix).get() == [4, 24]

    def test_set(self):
        posix = FakePosix()
        assert Groups(posix).set([4, 24]) == [4, 24]
        assert posix.calls == [("setgroups", ([4, 24],))]

    def test_set_grows_maxgroups(self):
        groups = Groups(FakePosix())
        assert groups.maxgroups == DEFAULT_MAXGROUPS
        groups.set(range(DEFAULT_MAXGROUPS + 8))
        assert groups.maxgroups == DEFAULT_MAXGROUPS + 8

    def test_maxgroups_setter(self):
        groups = Groups(FakePosix())
        groups.maxgroups = 64
        assert groups.maxgroups == 64
        with pytest.raises(InvalidArgumentError):
            groups.maxgroups = "many"

    def test_initgroups(self):
        posix = FakePosix({"getgroups": lambda: [100, 4]})
        assert Groups(posix).initgroups("alice", 100) == [100, 4]
        assert posix.args_of("initgroups") == [("alice", 100)]

    def test_set_failure(self):
        posix = FakePosix({"setgroups": os_error("EPERM")})
        with pytest.raises(OSCallError):
            Groups(posix).set([1])


# =============================================================================
# Test Resources
# =============================================================================


@pytest.mark.unit
class TestResolveRlimit:
    """Test resource name resolution."""

    @pytest.mark.parametrize("name", ["CPU", "cpu", "RLIMIT_CPU", "rlimit_cpu"])
    def test_names(self, name):
        assert resolve_rlimit(name) == resource.RLIMIT_CPU

    def test_number(self):
        assert resolve_rlimit(resource.RLIMIT_NOFILE) == resource.RLIMIT_NOFILE

    def test_unknown_name(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            resolve_rlimit("BOGUS")
        assert "RLIMIT_BOGUS" in str(exc_info.value)

    def test_wrong_type(self):
        with pytest.raises(InvalidArgumentError):
            resolve_rlimit(1.0)

    @pytest.mark.parametrize(
        "kind,expected",
        [
            ("process", os.PRIO_PROCESS),
            ("PRIO_PGRP", os.PRIO_PGRP),
            ("user", os.PRIO_USER),
            (os.PRIO_USER, os.PRIO_USER),
        ],
    )
    def test_priority_kinds(self, kind, expected):
        assert resolve_priority_kind(kind) == expected

    def test_unknown_priority_kind(self):
        with pytest.raises(InvalidArgumentError):
            resolve_priority_kind("thread")


@pytest.mark.unit
class TestResources:
    """Test rlimit and priority calls."""

    def test_getrlimit(self):
        posix = FakePosix({"getrlimit": (256, 1024)})
        assert Resources(posix).getrlimit("nofile") == (256, 1024)
        assert posix.args_of("getrlimit") == [(resource.RLIMIT_NOFILE,)]

    def test_setrlimit_hard_defaults_to_soft(self):
        posix = FakePosix()
        Resources(posix).setrlimit("core", 0)
        assert posix.args_of("setrlimit") == [(resource.RLIMIT_CORE, (0, 0))]

    def test_setrlimit_both(self):
        posix = FakePosix()
        Resources(posix).setrlimit("nofile", 256, 4096)
        assert posix.args_of("setrlimit") == [(resource.RLIMIT_NOFILE, (256, 4096))]

    def test_priority(self):
        posix = FakePosix({"getpriority": 5})
        res = Resources(posix)
        assert res.getpriority("process", 0) == 5
        res.setpriority("pgrp", 12, 10)
        assert posix.calls == [
            ("getpriority", (os.PRIO_PROCESS, 0)),
            ("setpriority", (os.PRIO_PGRP, 12, 10)),
        ]

    def test_real_getrlimit(self):
        soft, hard = Resources().getrlimit("NOFILE")
        assert (soft, hard) == resource.getrlimit(resource.RLIMIT_NOFILE)


# =============================================================================
# Test Session
# =============================================================================


@pytest.mark.unit
class TestSession:
    """Test process group and session wrappers."""

    def test_setpgrp(self):
        posix = FakePosix()
        assert Session(posix).setpgrp() == 0
        assert posix.calls == [("setpgid", (0, 0))]

    def test_setsid(self):
        posix = FakePosix({"setsid": 321})
        assert Session(posix).setsid() == 321

    def test_getpgid_validates(self):
        posix = FakePosix()
        with pytest.raises(InvalidArgumentError):
            Session(posix).getpgid(None)
        assert posix.calls == []

    def test_setsid_failure(self):
        posix = FakePosix({"setsid": os_error("EPERM")})
        with pytest.raises(OSCallError) as exc_info:
            Session(posix).setsid()
        assert exc_info.value.category == "EPERM"

    def test_real_getpgrp(self):
        assert Session().getpgrp() == os.getpgrp()
