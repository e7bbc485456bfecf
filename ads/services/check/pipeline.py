"""通用检查流水线 - 按固定顺序协调 5 个步骤"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ads.services.check.models import CheckReport
from ads.services.check.steps import CheckSteps

if TYPE_CHECKING:
    from ads.services.lifecycle import LifecycleService


class CommonCheck:
    """5 步通用检查，任一步骤抛出的致命错误直接向上传播"""

    def __init__(self, service: LifecycleService) -> None:
        self.steps = CheckSteps(service)

    def run(self) -> CheckReport:
        report = CheckReport()
        self.steps.prune(report)
        self.steps.remediate(report)
        self.steps.resolve(report)
        self.steps.resync(report)
        self.steps.lock(report)
        return report
