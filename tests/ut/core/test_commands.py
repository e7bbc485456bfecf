"""命令类型与负载测试"""

from __future__ import annotations

import pytest

from ads.core.commands import (
    COMMON_COMMANDS,
    PAYLOAD_TYPES,
    PROTECTED_COMMANDS,
    Command,
    CommandType,
    DependencyPayload,
    EmptyPayload,
    InstallPayload,
    NamePayload,
    ResolvePayload,
)
from ads.core.exceptions import UnknownCommandError, ValidationError


class TestCommandSets:
    def test_disjoint_and_complete(self) -> None:
        assert COMMON_COMMANDS.isdisjoint(PROTECTED_COMMANDS)
        assert COMMON_COMMANDS | PROTECTED_COMMANDS == set(CommandType)

    def test_protected_members(self) -> None:
        assert PROTECTED_COMMANDS == {CommandType.ADD, CommandType.REMOVE, CommandType.REPLACE}
        assert CommandType.CHANGE_VERSION in COMMON_COMMANDS

    def test_every_type_has_payload(self) -> None:
        assert set(PAYLOAD_TYPES) == set(CommandType)

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownCommandError, match="命令不存在: drop-table"):
            CommandType.parse("drop-table")


class TestPayloads:
    def test_name_payload_accepts_legacy_key(self) -> None:
        assert NamePayload.from_raw({"depName": "lodash"}) == NamePayload("lodash")
        assert NamePayload.from_raw("lodash") == NamePayload("lodash")

    def test_dependency_payload(self) -> None:
        p = DependencyPayload.from_raw({"name": " lodash ", "version": "4.17.21"})
        assert p == DependencyPayload("lodash", "4.17.21")
        legacy = DependencyPayload.from_raw({"depName": "a", "depVersion": "1.0.0"})
        assert legacy == DependencyPayload("a", "1.0.0")

    def test_dependency_payload_missing_version(self) -> None:
        with pytest.raises(ValidationError) as exc:
            DependencyPayload.from_raw({"name": "lodash"})
        assert exc.value.details == ["version"]

    def test_install_payload_forms(self) -> None:
        assert InstallPayload.from_raw(None).args == ()
        assert InstallPayload.from_raw(["lodash", "--save"]).args == ("lodash", "--save")
        assert InstallPayload.from_raw({"args": "a b"}).args == ("a", "b")
        with pytest.raises(ValidationError):
            InstallPayload.from_raw([1, 2])

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EmptyPayload.from_raw(["x"])

    def test_resolve_payload(self) -> None:
        assert ResolvePayload.from_raw({"write": True}).write
        assert not ResolvePayload.from_raw(None).write


class TestCommand:
    def test_parse(self) -> None:
        cmd = Command.parse("add", {"name": "lodash", "version": "4.17.21"})
        assert cmd.type is CommandType.ADD
        assert cmd.describe() == {
            "type": "add",
            "payload": {"name": "lodash", "version": "4.17.21"},
        }

    def test_payload_type_mismatch(self) -> None:
        with pytest.raises(ValidationError):
            Command(CommandType.ADD, EmptyPayload())

    def test_direct_construction_with_unknown_type(self) -> None:
        with pytest.raises(UnknownCommandError, match="bogus"):
            Command(type="bogus")

    def test_direct_construction_normalizes_type(self) -> None:
        cmd = Command(type="check")
        assert cmd.type is CommandType.CHECK
        assert isinstance(cmd.payload, EmptyPayload)

    def test_default_payload(self) -> None:
        assert Command(CommandType.CHECK).payload == EmptyPayload()
