"""版本约束收集

来源:
  - 直接约束: 清单自身的 dependencies / devDependencies / peerDependencies
  - 传递约束: 每个直接依赖解析出的具体版本在注册表中声明的 peerDependencies

本地路径、git 等非注册表描述以及无法解析的范围不参与求解，记入 skipped。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ads.core.versioning import InvalidRangeError, VersionRange, is_local_spec, parse_range

logger = logging.getLogger(__name__)

DIRECT_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


@dataclass(frozen=True)
class Constraint:
    """一条版本约束"""

    range: VersionRange
    source: str
    direct: bool = True

    @property
    def text(self) -> str:
        return self.range.text

    def describe(self) -> str:
        return f"{self.text} ({self.source})"


@dataclass
class ConstraintSet:
    """包名 -> 约束列表"""

    by_package: dict[str, list[Constraint]] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def add(self, name: str, constraint: Constraint) -> None:
        self.by_package.setdefault(name, []).append(constraint)

    def direct(self, name: str) -> list[Constraint]:
        return [c for c in self.by_package.get(name, []) if c.direct]

    def names(self) -> list[str]:
        return sorted(self.by_package)


def _parse(name: str, spec: Any, source: str) -> VersionRange | None:
    if not isinstance(spec, str):
        logger.warning("忽略非字符串版本声明 %s: %r (%s)", name, spec, source)
        return None
    if is_local_spec(spec):
        logger.debug("跳过本地依赖 %s: %s", name, spec)
        return None
    try:
        return parse_range(spec)
    except InvalidRangeError:
        logger.warning("无法解析版本范围 %s: %s (%s)", name, spec, source)
        return None


def collect_direct(manifest: dict[str, Any]) -> ConstraintSet:
    result = ConstraintSet()
    for section in DIRECT_SECTIONS:
        for name, spec in (manifest.get(section) or {}).items():
            parsed = _parse(name, spec, section)
            if parsed is None:
                if name not in result.skipped:
                    result.skipped.append(name)
                continue
            result.add(name, Constraint(range=parsed, source=section, direct=True))
    return result


def collect_transitive(
    result: ConstraintSet, owner: str, version: str, metadata: dict[str, Any],
) -> None:
    """把 owner@version 声明的 peerDependencies 作为非直接约束并入 result"""
    info = (metadata.get("versions") or {}).get(version) or {}
    source = f"peerDependencies of {owner}@{version}"
    for name, spec in (info.get("peerDependencies") or {}).items():
        if name in result.skipped:
            continue
        parsed = _parse(name, spec, source)
        if parsed is not None:
            result.add(name, Constraint(range=parsed, source=source, direct=False))
