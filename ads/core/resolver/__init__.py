"""版本冲突解析

- constraints.py: 约束收集（直接声明 + 传递 peerDependencies）
- resolver.py:    求解、放宽、结果与清单回写
"""

from ads.core.resolver.constraints import Constraint, ConstraintSet, collect_direct, collect_transitive
from ads.core.resolver.resolver import (
    ConflictEntry,
    ConflictResolver,
    ResolutionResult,
    rewrite_manifest,
)

__all__ = [
    "Constraint",
    "ConstraintSet",
    "collect_direct",
    "collect_transitive",
    "ConflictEntry",
    "ConflictResolver",
    "ResolutionResult",
    "rewrite_manifest",
]
