"""检查报告"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ads.core.remediation import RemediationOutcome
from ads.core.resolver import ResolutionResult


@dataclass
class CheckReport:
    """一次通用检查的执行报告"""

    steps: list[dict[str, Any]] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    remediation: RemediationOutcome | None = None
    resolution: ResolutionResult | None = None
    manifest_written: list[str] = field(default_factory=list)
    synced: list[str] = field(default_factory=list)
    locked: list[str] = field(default_factory=list)

    @property
    def vulnerabilities_found(self) -> bool:
        return self.remediation is not None and self.remediation.found_vulnerabilities

    @property
    def conflicts_found(self) -> bool:
        r = self.resolution
        return r is not None and (bool(r.conflicts) or bool(r.unresolvable))

    @property
    def unresolvable(self) -> list[str]:
        return list(self.resolution.unresolvable) if self.resolution else []

    def summary(self) -> list[str]:
        lines = [
            f"清理闲置依赖: {len(self.pruned)}",
            f"发现漏洞: {'是' if self.vulnerabilities_found else '否'}",
            f"存在冲突: {'是' if self.conflicts_found else '否'}",
        ]
        if self.unresolvable:
            lines.append(f"无法解析: {', '.join(self.unresolvable)}")
        if self.manifest_written:
            lines.append(f"清单已更新: {', '.join(self.manifest_written)}")
        lines.append(f"新增记录: {len(self.synced)}，本次锁定: {len(self.locked)}")
        return lines

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": self.steps,
            "pruned": self.pruned,
            "remediation": self.remediation.to_dict() if self.remediation else None,
            "resolution": self.resolution.to_dict() if self.resolution else None,
            "manifestWritten": self.manifest_written,
            "synced": self.synced,
            "locked": self.locked,
            "vulnerabilitiesFound": self.vulnerabilities_found,
            "conflictsFound": self.conflicts_found,
        }
