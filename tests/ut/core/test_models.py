"""数据模型测试: 身份判定、两态依赖、记录序列化"""

from __future__ import annotations

import dataclasses

import pytest

from ads.core.exceptions import ValidationError
from ads.core.models import (
    Identity,
    LockedDependency,
    MutableDependency,
    ScanReport,
    Severity,
    author_name,
    dependency_from_record,
)


class TestIdentity:
    def test_author_string_with_email(self) -> None:
        assert author_name("Alice Zhang <alice@example.com> (https://a.dev)") == "Alice Zhang"

    def test_author_object(self) -> None:
        assert author_name({"name": "bob", "email": "b@x"}) == "bob"
        assert author_name(None) == ""

    def test_maintainer_matches_author(self) -> None:
        ident = Identity.from_manifest("alice", {"author": "alice <a@x>"})
        assert ident.is_package_maintainer

    def test_other_user_is_not_maintainer(self) -> None:
        assert not Identity.from_manifest("bob", {"author": "alice"}).is_package_maintainer

    def test_missing_author_or_manifest(self) -> None:
        assert not Identity.from_manifest("alice", {}).is_package_maintainer
        assert not Identity.from_manifest("alice", None).is_package_maintainer
        assert not Identity.from_manifest("", {"author": ""}).is_package_maintainer


class TestDependencyStates:
    def test_mutable_update_version(self) -> None:
        dep = MutableDependency("lodash", "4.17.20")
        dep.update_version("4.17.21", automated=True)
        assert dep.version == "4.17.21"
        assert dep.resolved_by_automation

    def test_lock_converts(self) -> None:
        locked = MutableDependency("lodash", "4.17.21", maintainer="alice").lock()
        assert isinstance(locked, LockedDependency)
        assert locked.read_only
        assert locked.maintainer == "alice"
        assert locked.lock() is locked

    def test_locked_has_no_version_setter(self) -> None:
        locked = LockedDependency("lodash", "4.17.21")
        assert not hasattr(locked, "update_version")
        with pytest.raises(dataclasses.FrozenInstanceError):
            locked.version = "5.0.0"  # type: ignore[misc]

    def test_touch_returns_copy(self) -> None:
        dep = MutableDependency("a", "1.0.0", last_used=10.0)
        touched = dep.touch(20.0)
        assert touched.last_used == 20.0
        assert dep.last_used == 10.0
        assert isinstance(LockedDependency("a", "1.0.0").touch(5.0), LockedDependency)


class TestRecords:
    def test_to_record_camel_case_ms(self) -> None:
        rec = LockedDependency("a", "1.0.0", last_used=1.5).to_record()
        assert rec == {
            "name": "a",
            "version": "1.0.0",
            "maintainer": None,
            "readOnly": True,
            "isLocal": False,
            "lastUsed": 1500,
            "resolvedByAutomation": False,
        }

    def test_from_record_picks_state(self) -> None:
        locked = dependency_from_record({"name": "a", "version": "1.0.0", "readOnly": True, "lastUsed": 2000})
        mutable = dependency_from_record({"name": "b", "version": "2.0.0"})
        assert isinstance(locked, LockedDependency)
        assert locked.last_used == 2.0
        assert isinstance(mutable, MutableDependency)

    def test_legacy_automation_flag(self) -> None:
        dep = dependency_from_record({"name": "a", "version": "1.0.0", "resolvedByGPT": True})
        assert dep.resolved_by_automation

    def test_missing_fields(self) -> None:
        with pytest.raises(ValidationError):
            dependency_from_record({"version": "1.0.0"})


class TestScanReport:
    def test_vulnerable(self) -> None:
        assert ScanReport(Severity.HIGH).vulnerable
        assert ScanReport(Severity.CRITICAL).vulnerable
        assert not ScanReport(Severity.FIXED, "2.0.0").vulnerable
        assert not ScanReport().vulnerable
