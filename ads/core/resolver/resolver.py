"""版本冲突解析

对每个包:
  1. 从注册表取已发布版本
  2. 取同时满足所有约束的最高版本
  3. 无解时去掉非直接约束（来自其他包的 peerDependencies）重试；
     有解则推荐该版本并记录一条冲突
  4. 仍无解则标记为不可解析

任何不可解析的包或任何冲突都会阻止回写清单。
注册表请求失败的包记入 failed 并跳过，不影响其他包。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable

from ads.core.exceptions import ADSError
from ads.core.protocols import RegistryAPI
from ads.core.resolver.constraints import (
    Constraint,
    ConstraintSet,
    collect_direct,
    collect_transitive,
)
from ads.core.versioning import is_strict_release, max_satisfying, parse_range

logger = logging.getLogger(__name__)

_FETCH_ERRORS = (ADSError, ConnectionError, OSError, ValueError)


@dataclass(frozen=True)
class ConflictEntry:
    """约束冲突: 原始约束、放宽后的约束、建议的清单修改"""

    current: str
    suggested_range: str
    suggestion: str

    def to_dict(self) -> dict[str, str]:
        return {
            "current": self.current,
            "suggestedRange": self.suggested_range,
            "suggestion": self.suggestion,
        }


@dataclass
class ResolutionResult:
    recommended: dict[str, str] = field(default_factory=dict)
    conflicts: dict[str, ConflictEntry] = field(default_factory=dict)
    unresolvable: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def resolvable(self) -> bool:
        return not self.unresolvable

    @property
    def writable(self) -> bool:
        """可以回写清单: 无不可解析的包且无冲突"""
        return self.resolvable and not self.conflicts

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommended": dict(self.recommended),
            "conflicts": {k: v.to_dict() for k, v in self.conflicts.items()},
            "unresolvable": list(self.unresolvable),
            "failed": list(self.failed),
            "skipped": list(self.skipped),
        }


class ConflictResolver:
    """基于注册表已发布版本的约束求解"""

    def __init__(self, registry: RegistryAPI, *, max_workers: int = 8) -> None:
        self.registry = registry
        self.max_workers = max_workers

    def resolve(self, manifest: dict[str, Any]) -> ResolutionResult:
        # 每次解析都从注册表重新取元数据
        self.registry.refresh()
        constraints = collect_direct(manifest)
        result = ResolutionResult(skipped=list(constraints.skipped))

        versions = self._fetch_versions(constraints.names(), result)
        self._add_peer_constraints(constraints, versions, result)
        missing = [n for n in constraints.names() if n not in versions and n not in result.failed]
        versions.update(self._fetch_versions(missing, result))

        for name in constraints.names():
            if name in result.failed:
                continue
            self._solve(name, constraints.by_package[name], versions.get(name, []), result)

        if result.unresolvable:
            logger.error("无法解析，存在冲突的声明: %s", ", ".join(result.unresolvable))
        elif result.conflicts:
            logger.warning("发现 %d 个约束冲突: %s", len(result.conflicts), ", ".join(result.conflicts))
        else:
            logger.info("冲突解析完成: %d 个包", len(result.recommended))
        return result

    # ------------------------------------------------------------------
    # 注册表请求（并发，单包失败不影响其他包）
    # ------------------------------------------------------------------

    def _map(self, func, names: list[str], result: ResolutionResult, what: str) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if not names:
            return out
        workers = max(1, min(self.max_workers, len(names)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(func, n) for n in names]
            for name, future in zip(names, futures):
                try:
                    out[name] = future.result()
                except _FETCH_ERRORS as e:
                    logger.warning("%s失败，跳过 %s: %s", what, name, e)
                    if name not in result.failed:
                        result.failed.append(name)
        return out

    def _fetch_versions(self, names: list[str], result: ResolutionResult) -> dict[str, list[str]]:
        return self._map(self.registry.list_versions, names, result, "获取版本列表")

    def _add_peer_constraints(
        self,
        constraints: ConstraintSet,
        versions: dict[str, list[str]],
        result: ResolutionResult,
    ) -> None:
        concrete: dict[str, str] = {}
        for name in constraints.names():
            direct = constraints.direct(name)
            if not direct or name not in versions:
                continue
            best = max_satisfying(versions[name], [c.range for c in direct])
            if best is not None:
                concrete[name] = best

        owners = sorted(concrete)
        metadata = self._map(self.registry.fetch_metadata, owners, result, "获取元数据")
        for owner in owners:
            if owner in metadata:
                collect_transitive(constraints, owner, concrete[owner], metadata[owner])

    # ------------------------------------------------------------------
    # 求解
    # ------------------------------------------------------------------

    @staticmethod
    def _solve(
        name: str, constraints: list[Constraint], versions: list[str], result: ResolutionResult,
    ) -> None:
        best = max_satisfying(versions, [c.range for c in constraints])
        if best is not None:
            result.recommended[name] = best
            return

        direct = [c for c in constraints if c.direct]
        peers = [c for c in constraints if not c.direct]
        if peers:
            relaxed = max_satisfying(versions, [c.range for c in direct])
            if relaxed is not None:
                result.recommended[name] = relaxed
                result.conflicts[name] = _conflict_entry(name, relaxed, direct, peers)
                logger.warning(
                    "%s 的约束冲突，放宽后推荐 %s（忽略 %s）",
                    name, relaxed, ", ".join(c.describe() for c in peers),
                )
                return

        logger.warning(
            "%s 无可用版本满足: %s", name, ", ".join(c.describe() for c in constraints),
        )
        result.unresolvable.append(name)


def _conflict_entry(
    name: str, recommended: str, direct: list[Constraint], peers: list[Constraint],
) -> ConflictEntry:
    current = " ".join(c.text for c in direct + peers)
    suggested = " ".join(c.text for c in direct) or "*"
    owners = ", ".join(c.source for c in peers)
    return ConflictEntry(
        current=current,
        suggested_range=suggested,
        suggestion=(
            f"{name}@{recommended} 不满足 {owners} 的要求"
            f" ({' '.join(c.text for c in peers)})；"
            f"请调整清单中 {name} 的声明或升级引入该约束的依赖"
        ),
    )


# =========================================================================
# 回写
# =========================================================================

def rewrite_manifest(
    manifest: dict[str, Any],
    recommended: dict[str, str],
    sections: Iterable[str] = ("dependencies", "devDependencies"),
) -> list[str]:
    """把推荐版本写入清单（原地修改），返回发生变化的包名

    ^ / ~ 前缀保留；精确版本直接替换；其他范围表达式（推荐版本已满足）保持不变。
    """
    changed: list[str] = []
    for section in sections:
        entries = manifest.get(section)
        if not isinstance(entries, dict):
            continue
        for name, spec in entries.items():
            version = recommended.get(name)
            if version is None or not isinstance(spec, str):
                continue
            new_spec = _rewrite_spec(spec, version)
            if new_spec != spec:
                entries[name] = new_spec
                if name not in changed:
                    changed.append(name)
    return changed


def _rewrite_spec(spec: str, version: str) -> str:
    stripped = spec.strip()
    if stripped[:1] in ("^", "~") and not stripped.startswith("~>"):
        body = stripped[1:].strip()
        if " " not in body and "||" not in body:
            try:
                parse_range(body)
            except ValueError:
                return spec
            return f"{stripped[0]}{version}"
        return spec
    if is_strict_release(stripped.lstrip("v=")):
        return version
    return spec
