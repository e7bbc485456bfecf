"""通用检查流水线

- models.py:   CheckReport
- steps.py:    5 个有序步骤
- pipeline.py: 流水线协调器
"""

from ads.services.check.models import CheckReport
from ads.services.check.pipeline import CommonCheck
from ads.services.check.steps import CheckSteps

__all__ = ["CheckReport", "CommonCheck", "CheckSteps"]
