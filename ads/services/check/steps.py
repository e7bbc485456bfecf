"""通用检查步骤 - 5 步流水线

步骤顺序（不可调换，每一步依赖上一步的结果）:
1. prune     - 清理超过闲置阈值的依赖
2. remediate - 漏洞扫描与修复
3. resolve   - 冲突解析，可解析时回写清单
4. resync    - 从（可能刚更新的）清单重新同步
5. lock      - 锁定全部未锁定依赖
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ads.services.check.models import CheckReport
    from ads.services.lifecycle import LifecycleService

logger = logging.getLogger(__name__)


class CheckSteps:
    """检查步骤集合"""

    def __init__(self, service: LifecycleService) -> None:
        self.svc = service

    def prune(self, report: CheckReport) -> None:
        """步骤1: 清理闲置依赖"""
        report.pruned = self.svc.prune_unused()
        report.steps.append({"step": "prune", "status": "done", "removed": report.pruned})
        logger.info("[Step 1] 闲置清理完成: %d 个", len(report.pruned),
                    extra={"ads_step": "prune"})

    def remediate(self, report: CheckReport) -> None:
        """步骤2: 漏洞扫描与修复"""
        outcome = self.svc.remediation.apply(self.svc.store)
        report.remediation = outcome
        report.steps.append({
            "step": "remediate", "status": "done",
            "scanned": outcome.scanned, "vulnerable": len(outcome.vulnerable),
            "failed": len(outcome.failed),
        })
        logger.info(
            "[Step 2] 漏洞修复完成: 降级 %d, 升级 %d, 锁定未改 %d",
            len(outcome.downgraded), len(outcome.upgraded), len(outcome.blocked),
            extra={"ads_step": "remediate"},
        )

    def resolve(self, report: CheckReport) -> None:
        """步骤3: 冲突解析 + 回写"""
        result = self.svc.resolve_conflicts()
        report.resolution = result
        if result.writable:
            report.manifest_written = self.svc.write_back(result)
            status = "done"
        else:
            status = "blocked"
        report.steps.append({
            "step": "resolve", "status": status,
            "conflicts": sorted(result.conflicts), "unresolvable": result.unresolvable,
            "written": report.manifest_written,
        })
        logger.info("[Step 3] 冲突解析: %s", status, extra={"ads_step": "resolve"})

    def resync(self, report: CheckReport) -> None:
        """步骤4: 从清单重新同步"""
        report.synced = self.svc.sync_from_manifest()
        report.steps.append({"step": "resync", "status": "done", "added": report.synced})
        logger.info("[Step 4] 清单同步完成: 新增 %d", len(report.synced),
                    extra={"ads_step": "resync"})

    def lock(self, report: CheckReport) -> None:
        """步骤5: 锁定"""
        report.locked = self.svc.lock_all()
        report.steps.append({"step": "lock", "status": "done", "locked": report.locked})
        logger.info("[Step 5] 锁定完成: %d 个", len(report.locked),
                    extra={"ads_step": "lock"})
