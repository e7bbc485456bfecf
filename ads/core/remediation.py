"""漏洞修复策略

决策表（每个依赖）:
  - 本地依赖:              直接删除记录，不扫描
  - high/critical + 可变:  安全降级（次版本号减一，保留补丁号）
  - high/critical + 锁定:  版本不变，告警
  - fixed + 可变:          升级到修复版本
  - fixed + 锁定:          版本不变，告警
  - none:                  不变

扫描并发执行（有界线程池），结果按依赖名顺序串行回存。
每个被扫描的依赖无论走哪个分支都会刷新 last_used。单个依赖扫描失败按 none 处理:
记日志并列入 failed，版本不变，last_used 照常刷新。
每轮开始前调用 scanner.refresh()，不复用上一轮的审计结果。
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from ads.core.exceptions import ADSError
from ads.core.models import Dependency, ScanReport, Severity
from ads.core.protocols import CveSource
from ads.core.versioning import secure_downgrade
from ads.core.store import DependencyStore

logger = logging.getLogger(__name__)


class Action(str, Enum):
    KEEP = "keep"
    DOWNGRADE = "downgrade"
    UPGRADE = "upgrade"
    BLOCKED = "blocked"


def decide(dep: Dependency, report: ScanReport) -> tuple[Action, str | None]:
    """根据扫描结果决定动作，返回 (动作, 新版本)"""
    if report.vulnerable:
        if dep.read_only:
            return Action.BLOCKED, None
        target = secure_downgrade(dep.version)
        if target == dep.version:
            return Action.KEEP, None
        return Action.DOWNGRADE, target

    if report.severity is Severity.FIXED:
        if dep.read_only:
            return Action.BLOCKED, None
        if not report.fixed_version or report.fixed_version == dep.version:
            return Action.KEEP, None
        return Action.UPGRADE, report.fixed_version

    return Action.KEEP, None


@dataclass
class RemediationOutcome:
    """一次修复的汇总"""

    removed_local: list[str] = field(default_factory=list)
    downgraded: dict[str, str] = field(default_factory=dict)
    upgraded: dict[str, str] = field(default_factory=dict)
    blocked: list[str] = field(default_factory=list)
    vulnerable: list[str] = field(default_factory=list)
    deprecated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    scanned: int = 0

    @property
    def found_vulnerabilities(self) -> bool:
        return bool(self.vulnerable)

    def to_dict(self) -> dict:
        return {
            "removedLocal": self.removed_local,
            "downgraded": self.downgraded,
            "upgraded": self.upgraded,
            "blocked": self.blocked,
            "vulnerable": self.vulnerable,
            "deprecated": self.deprecated,
            "failed": self.failed,
            "scanned": self.scanned,
        }


@dataclass
class _ScanResult:
    dep: Dependency
    report: ScanReport
    deprecated: bool = False


class VulnerabilityRemediationPolicy:
    """对存储中的依赖执行扫描 + 修复"""

    def __init__(
        self,
        scanner: CveSource,
        *,
        max_workers: int = 8,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.scanner = scanner
        self.max_workers = max_workers
        self.clock = clock

    def apply(self, store: DependencyStore) -> RemediationOutcome:
        outcome = RemediationOutcome()

        # 本地依赖不参与扫描；清单中的路径条目保留
        for dep in store.all():
            if dep.is_local:
                store.remove(dep.name, keep_manifest=True)
                outcome.removed_local.append(dep.name)
        if outcome.removed_local:
            logger.info("已移除本地依赖记录: %s", ", ".join(outcome.removed_local))

        candidates = sorted(store.all(), key=lambda d: d.name)
        if not candidates:
            return outcome

        self.scanner.refresh()
        results = self._scan_all(candidates, outcome)
        now = self.clock()
        updated: list[Dependency] = []
        for result in results:
            updated.append(self._remediate(result, now, outcome))
        outcome.scanned = len(results)

        store.put_all(updated)
        logger.info(
            "漏洞扫描完成: %d 个依赖, %d 个存在漏洞, %d 个失败",
            outcome.scanned, len(outcome.vulnerable), len(outcome.failed),
        )
        return outcome

    def _scan_all(self, deps: list[Dependency], outcome: RemediationOutcome) -> list[_ScanResult]:
        workers = max(1, min(self.max_workers, len(deps)))
        results: list[_ScanResult] = []
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._scan_one, d) for d in deps]
            for dep, future in zip(deps, futures):
                try:
                    results.append(future.result())
                except (ADSError, ConnectionError, OSError, ValueError) as e:
                    logger.warning(
                        "扫描失败，%s@%s 按无漏洞处理: %s", dep.name, dep.version, e,
                        extra={"ads_dependency": dep.name},
                    )
                    outcome.failed.append(dep.name)
                    results.append(_ScanResult(dep=dep, report=ScanReport(Severity.NONE)))
        return results

    def _scan_one(self, dep: Dependency) -> _ScanResult:
        report = self.scanner.scan(dep)
        try:
            deprecated = self.scanner.is_deprecated(dep.name, dep.version)
        except (ADSError, ConnectionError, OSError, ValueError) as e:
            logger.debug("弃用检查失败 %s: %s", dep.name, e)
            deprecated = False
        return _ScanResult(dep=dep, report=report, deprecated=deprecated)

    def _remediate(self, result: _ScanResult, now: float, outcome: RemediationOutcome) -> Dependency:
        dep, report = result.dep, result.report
        if result.deprecated:
            logger.warning("依赖 %s@%s 已被弃用", dep.name, dep.version)
            outcome.deprecated.append(dep.name)
        if report.severity is not Severity.NONE:
            outcome.vulnerable.append(dep.name)

        action, target = decide(dep, report)
        touched = dep.touch(now)

        if action is Action.BLOCKED:
            logger.warning(
                "依赖 %s@%s 存在漏洞 (%s)，但已锁定，版本保持不变",
                dep.name, dep.version, report.severity.value,
                extra={"ads_dependency": dep.name},
            )
            outcome.blocked.append(dep.name)
        elif action is Action.DOWNGRADE:
            logger.warning("依赖 %s 存在 %s 漏洞，安全降级 %s -> %s",
                           dep.name, report.severity.value, dep.version, target)
            touched.update_version(target, automated=True)  # type: ignore[union-attr]
            outcome.downgraded[dep.name] = target  # type: ignore[assignment]
        elif action is Action.UPGRADE:
            logger.info("依赖 %s 有修复版本，升级 %s -> %s", dep.name, dep.version, target)
            touched.update_version(target, automated=True)  # type: ignore[union-attr]
            outcome.upgraded[dep.name] = target  # type: ignore[assignment]
        elif report.vulnerable:
            logger.warning("依赖 %s@%s 存在 %s 漏洞，无法再降级",
                           dep.name, dep.version, report.severity.value)
        return touched
