"""核心数据模型

- Identity:           当前操作者及其是否为项目维护者
- MutableDependency:  可变依赖（仅存在于同步后、锁定前的修复窗口）
- LockedDependency:   已锁定依赖，不提供版本修改方法
- Severity / ScanReport: 漏洞扫描结果
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, ClassVar, Union

from ads.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

# npm author 字符串: "Name <email> (url)"
_AUTHOR_RE = re.compile(r"^\s*([^<(]+?)\s*(?:<[^>]*>)?\s*(?:\([^)]*\))?\s*$")


# =========================================================================
# 身份
# =========================================================================

def author_name(author: Any) -> str:
    """从清单的 author 字段提取名称（支持字符串和 {name, email} 两种写法）"""
    if isinstance(author, dict):
        return str(author.get("name", "")).strip()
    if isinstance(author, str):
        m = _AUTHOR_RE.match(author)
        return m.group(1).strip() if m else author.strip()
    return ""


@dataclass(frozen=True)
class Identity:
    """当前操作者

    is_package_maintainer 在构造时确定，会话期间不可变；切换用户需重新创建。
    """

    name: str
    is_package_maintainer: bool = False

    @classmethod
    def from_manifest(cls, name: str, manifest: dict[str, Any] | None) -> Identity:
        """对比清单中声明的 author 判定维护者身份，无 author 时视为非维护者"""
        if not manifest:
            return cls(name=name, is_package_maintainer=False)
        declared = author_name(manifest.get("author"))
        if not declared:
            logger.warning("清单未声明 author 字段，%s 按非维护者处理", name)
            return cls(name=name, is_package_maintainer=False)
        return cls(name=name, is_package_maintainer=bool(name) and declared == name)


# =========================================================================
# 依赖记录（两态）
# =========================================================================

def _now() -> float:
    return time.time()


@dataclass
class MutableDependency:
    """未锁定的依赖

    只有这一态提供 update_version。lock() 返回 LockedDependency，之后无法再改版本。
    """

    name: str
    version: str
    maintainer: str | None = None
    is_local: bool = False
    last_used: float = field(default_factory=_now)
    resolved_by_automation: bool = False

    read_only: ClassVar[bool] = False

    def update_version(self, new_version: str, *, automated: bool = False) -> None:
        self.version = new_version
        if automated:
            self.resolved_by_automation = True

    def touch(self, now: float | None = None) -> MutableDependency:
        """返回刷新 last_used 后的副本"""
        return replace(self, last_used=_now() if now is None else now)

    def lock(self) -> LockedDependency:
        return LockedDependency(**{f.name: getattr(self, f.name) for f in fields(self)})

    def to_record(self) -> dict[str, Any]:
        return _to_record(self)


@dataclass(frozen=True)
class LockedDependency:
    """已锁定的依赖（不可变）

    版本变更只能通过删除记录后重新插入完成。
    """

    name: str
    version: str
    maintainer: str | None = None
    is_local: bool = False
    last_used: float = field(default_factory=_now)
    resolved_by_automation: bool = False

    read_only: ClassVar[bool] = True

    def touch(self, now: float | None = None) -> LockedDependency:
        return replace(self, last_used=_now() if now is None else now)

    def lock(self) -> LockedDependency:
        return self

    def to_record(self) -> dict[str, Any]:
        return _to_record(self)


Dependency = Union[MutableDependency, LockedDependency]


def _to_record(dep: Dependency) -> dict[str, Any]:
    """序列化为持久化记录（lastUsed 为毫秒时间戳）"""
    return {
        "name": dep.name,
        "version": dep.version,
        "maintainer": dep.maintainer,
        "readOnly": dep.read_only,
        "isLocal": dep.is_local,
        "lastUsed": int(dep.last_used * 1000),
        "resolvedByAutomation": dep.resolved_by_automation,
    }


def dependency_from_record(record: dict[str, Any]) -> Dependency:
    """从持久化记录恢复依赖，readOnly 决定恢复为哪一态

    Raises:
        ValidationError: 缺少 name/version
    """
    name = str(record.get("name") or "").strip()
    version = record.get("version")
    if not name or version is None:
        raise ValidationError(f"依赖记录缺少 name 或 version: {record}")

    last_used = record.get("lastUsed")
    kwargs = {
        "name": name,
        "version": str(version),
        "maintainer": record.get("maintainer"),
        "is_local": bool(record.get("isLocal", False)),
        "last_used": float(last_used) / 1000 if last_used is not None else _now(),
        "resolved_by_automation": bool(
            record.get("resolvedByAutomation", record.get("resolvedByGPT", False)),
        ),
    }
    if record.get("readOnly", False):
        return LockedDependency(**kwargs)
    return MutableDependency(**kwargs)


# =========================================================================
# 漏洞扫描
# =========================================================================

class Severity(str, Enum):
    NONE = "none"
    HIGH = "high"
    CRITICAL = "critical"
    FIXED = "fixed"


@dataclass(frozen=True)
class ScanReport:
    """单个依赖的扫描结果"""

    severity: Severity = Severity.NONE
    fixed_version: str | None = None

    @property
    def vulnerable(self) -> bool:
        return self.severity in (Severity.HIGH, Severity.CRITICAL)
