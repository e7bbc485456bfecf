"""命令定义

命令类型分为两个互不相交的集合:
  - 通用命令: 任何用户可执行
  - 受保护命令: 仅项目维护者可执行

每个命令类型对应唯一的负载结构（PAYLOAD_TYPES），新增类型必须同时补充负载和处理器。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from ads.core.exceptions import UnknownCommandError, ValidationError


class CommandType(str, Enum):
    # 通用命令
    INIT = "init"
    CHECK = "check"
    RESOLVE = "resolve"
    ALLOWED_VERSIONS = "allowed-versions"
    CHANGE_VERSION = "change-version"
    INSTALL = "install"
    CLEAN_INSTALL = "clean-install"
    BUILD = "build"
    START = "start"
    GET_MAINTAINER = "maintainer"

    # 受保护命令
    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"

    @classmethod
    def parse(cls, value: object) -> CommandType:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownCommandError(value) from None


PROTECTED_COMMANDS: frozenset[CommandType] = frozenset({
    CommandType.ADD,
    CommandType.REMOVE,
    CommandType.REPLACE,
})

COMMON_COMMANDS: frozenset[CommandType] = frozenset(CommandType) - PROTECTED_COMMANDS


# =========================================================================
# 负载
# =========================================================================

def _require_mapping(raw: Any, kind: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError(f"{kind} 负载必须是对象，实际为 {type(raw).__name__}")
    return raw


def _require_str(data: dict[str, Any], key: str, kind: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{kind} 负载缺少字段 '{key}'", details=[key])
    return value.strip()


@dataclass(frozen=True)
class EmptyPayload:
    kind: ClassVar[str] = "empty"

    @classmethod
    def from_raw(cls, raw: Any) -> EmptyPayload:
        _require_mapping(raw, cls.kind)
        return cls()


@dataclass(frozen=True)
class NamePayload:
    name: str
    kind: ClassVar[str] = "name"

    @classmethod
    def from_raw(cls, raw: Any) -> NamePayload:
        if isinstance(raw, str):
            raw = {"name": raw}
        data = _require_mapping(raw, cls.kind)
        # 兼容旧的 depName 字段
        if "name" not in data and "depName" in data:
            data = {"name": data["depName"]}
        return cls(name=_require_str(data, "name", cls.kind))


@dataclass(frozen=True)
class DependencyPayload:
    name: str
    version: str
    kind: ClassVar[str] = "dependency"

    @classmethod
    def from_raw(cls, raw: Any) -> DependencyPayload:
        data = _require_mapping(raw, cls.kind)
        if "name" not in data and "depName" in data:
            data = {"name": data["depName"], "version": data.get("depVersion")}
        return cls(
            name=_require_str(data, "name", cls.kind),
            version=_require_str(data, "version", cls.kind),
        )


@dataclass(frozen=True)
class InstallPayload:
    args: tuple[str, ...] = field(default_factory=tuple)
    kind: ClassVar[str] = "install"

    @classmethod
    def from_raw(cls, raw: Any) -> InstallPayload:
        if raw is None:
            return cls()
        if isinstance(raw, dict):
            raw = raw.get("args", [])
        if isinstance(raw, str):
            raw = raw.split()
        if not isinstance(raw, (list, tuple)) or not all(isinstance(a, str) for a in raw):
            raise ValidationError("install 负载必须是字符串列表")
        return cls(args=tuple(a for a in raw if a))


@dataclass(frozen=True)
class ResolvePayload:
    write: bool = False
    kind: ClassVar[str] = "resolve"

    @classmethod
    def from_raw(cls, raw: Any) -> ResolvePayload:
        data = _require_mapping(raw, cls.kind)
        return cls(write=bool(data.get("write", False)))


Payload = Union[EmptyPayload, NamePayload, DependencyPayload, InstallPayload, ResolvePayload]

PAYLOAD_TYPES: dict[CommandType, type] = {
    CommandType.INIT: EmptyPayload,
    CommandType.CHECK: EmptyPayload,
    CommandType.RESOLVE: ResolvePayload,
    CommandType.ALLOWED_VERSIONS: NamePayload,
    CommandType.CHANGE_VERSION: DependencyPayload,
    CommandType.INSTALL: InstallPayload,
    CommandType.CLEAN_INSTALL: EmptyPayload,
    CommandType.BUILD: EmptyPayload,
    CommandType.START: EmptyPayload,
    CommandType.GET_MAINTAINER: EmptyPayload,
    CommandType.ADD: DependencyPayload,
    CommandType.REMOVE: NamePayload,
    CommandType.REPLACE: DependencyPayload,
}


@dataclass(frozen=True)
class Command:
    """命令 = 类型 + 与类型匹配的负载"""

    type: CommandType
    payload: Payload = field(default_factory=EmptyPayload)

    def __post_init__(self) -> None:
        # 冻结实例，规范化后的类型只能经 object.__setattr__ 回填
        object.__setattr__(self, "type", CommandType.parse(self.type))
        expected = PAYLOAD_TYPES[self.type]
        if not isinstance(self.payload, expected):
            raise ValidationError(
                f"命令 '{self.type.value}' 需要 {expected.__name__} 负载，"
                f"实际为 {type(self.payload).__name__}"
            )

    @classmethod
    def parse(cls, type_name: object, raw_payload: Any = None) -> Command:
        """从外部输入构造命令（CLI / HTTP），类型未知抛 UnknownCommandError"""
        ctype = CommandType.parse(type_name)
        payload = PAYLOAD_TYPES[ctype].from_raw(raw_payload)
        return cls(type=ctype, payload=payload)

    def describe(self) -> dict[str, Any]:
        return {"type": self.type.value, "payload": asdict(self.payload)}
