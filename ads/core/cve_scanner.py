"""漏洞扫描 - 基于 npm audit

每轮扫描只执行一次 `npm audit --json`，成功的报告缓存供本轮其余依赖复用，
refresh() 开始新一轮。失败不缓存，下一次 scan 重新执行 audit。

支持两种报告格式:
  - 旧格式 (npm 6):  {"advisories": {id: {module_name, severity, patched_versions}}}
  - 新格式 (npm 7+): {"vulnerabilities": {name: {severity, fixAvailable}}}

high/critical 漏洞若已有修复版本（当前版本不在 patched 范围内 / fixAvailable 给出版本），
报告为 fixed 并携带注册表最新版本或修复版本。
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from ads.core.exceptions import ExecutionError
from ads.core.models import Dependency, ScanReport, Severity
from ads.core.protocols import RegistryAPI
from ads.core.versioning import InvalidRangeError, coerce_version, parse_range
from ads.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)

_SEVERE = ("high", "critical")


class AuditScanner:
    """npm audit 扫描器"""

    def __init__(
        self,
        executor: CommandExecutor,
        registry: RegistryAPI,
        *,
        package_manager: str = "npm",
        timeout: float = 1800.0,
        cwd: str = ".",
    ) -> None:
        self.executor = executor
        self.registry = registry
        self.package_manager = package_manager
        self.timeout = timeout
        self.cwd = cwd
        self._report: dict[str, Any] | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # audit 报告
    # ------------------------------------------------------------------

    def audit_report(self) -> dict[str, Any]:
        """执行（或复用本轮的）npm audit，失败抛 ExecutionError"""
        with self._lock:
            if self._report is None:
                self._report = self._run_audit()
            return self._report

    def refresh(self) -> None:
        with self._lock:
            self._report = None

    def _run_audit(self) -> dict[str, Any]:
        cmd = [self.package_manager, "audit", "--json"]
        logger.info("执行漏洞审计: %s", " ".join(cmd))
        # 存在漏洞时 npm audit 返回非零退出码，以 stdout 内容为准
        result = self.executor.execute(cmd, cwd=self.cwd, timeout=self.timeout)
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ExecutionError(
                f"npm audit 输出不是合法 JSON (exit={result.returncode}): {result.stderr.strip()[:200]}"
            ) from e
        if not isinstance(data, dict):
            raise ExecutionError("npm audit 输出格式不正确")
        return data

    # ------------------------------------------------------------------
    # CveSource
    # ------------------------------------------------------------------

    def scan(self, dependency: Dependency) -> ScanReport:
        """扫描单个依赖

        Raises:
            ExecutionError: audit 执行失败
            ConnectionError: 查询修复版本时注册表不可达
        """
        report = self.audit_report()

        for advisory in (report.get("advisories") or {}).values():
            if advisory.get("module_name") != dependency.name:
                continue
            if advisory.get("severity") in _SEVERE:
                return self._from_advisory(dependency, advisory)

        vuln = (report.get("vulnerabilities") or {}).get(dependency.name)
        if vuln and vuln.get("severity") in _SEVERE:
            return self._from_vulnerability(dependency, vuln)

        return ScanReport(Severity.NONE)

    def _from_advisory(self, dependency: Dependency, advisory: dict[str, Any]) -> ScanReport:
        severity = Severity(advisory["severity"])
        patched = advisory.get("patched_versions")
        if not patched:
            return ScanReport(severity)
        current = coerce_version(dependency.version)
        try:
            in_patched = current is not None and parse_range(patched).satisfies(current)
        except InvalidRangeError:
            logger.warning("无法解析修复范围 %s: %s", dependency.name, patched)
            return ScanReport(severity)
        if in_patched:
            return ScanReport(severity)
        latest = self.registry.latest_version(dependency.name)
        if not latest:
            return ScanReport(severity)
        return ScanReport(Severity.FIXED, fixed_version=latest)

    @staticmethod
    def _from_vulnerability(dependency: Dependency, vuln: dict[str, Any]) -> ScanReport:
        severity = Severity(vuln["severity"])
        fix = vuln.get("fixAvailable")
        if isinstance(fix, dict) and fix.get("name") == dependency.name and fix.get("version"):
            return ScanReport(Severity.FIXED, fixed_version=str(fix["version"]))
        return ScanReport(severity)

    def is_deprecated(self, name: str, version: str) -> bool:
        meta = self.registry.fetch_metadata(name)
        current = coerce_version(version)
        key = str(current) if current is not None else version
        info = meta.get("versions", {}).get(key) or {}
        return bool(info.get("deprecated"))
