"""依赖存储

以包名为键的依赖记录集合，每次变更（add / add_all / remove / replace / put_all）后立即持久化。

忽略列表规则:
  - 忽略列表中的包名不能新插入
  - 持久化时会把本次删除/变更的包同步回清单；被删除的包若在忽略列表中，
    清单中原有的条目保留，不随记录一起消失

所有变更在进程内串行（RLock），写文件走原子替换。
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from ads.core.exceptions import (
    ADSError,
    DependencyNotFoundError,
    LockedDependencyError,
    ValidationError,
)
from ads.core.models import Dependency, dependency_from_record
from ads.core.protocols import DependencyFileIO, ManifestIO

logger = logging.getLogger(__name__)

# 持久化时会同步回写的清单段
_RECONCILED_SECTIONS = ("dependencies", "devDependencies")

# 待同步到清单的变更: 包名 -> 新版本，None 表示删除
_Pending = dict[str, "str | None"]


class DependencyStore:
    """依赖记录存储"""

    def __init__(
        self,
        dep_file: DependencyFileIO,
        *,
        manifest: ManifestIO | None = None,
        ignore_list: Iterable[str] = (),
    ) -> None:
        self._file = dep_file
        self._manifest = manifest
        self.ignore_list: frozenset[str] = frozenset(ignore_list)
        self._deps: dict[str, Dependency] = {}
        self._pending: _Pending = {}
        self._lock = threading.RLock()
        self.load()

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    def load(self) -> None:
        """从记录文件加载，损坏的单条记录跳过"""
        with self._lock:
            self._deps.clear()
            for record in self._file.read_records():
                try:
                    dep = dependency_from_record(record)
                except (ValidationError, TypeError, ValueError) as e:
                    logger.warning("跳过无效依赖记录: %s", e)
                    continue
                self._deps[dep.name] = dep
            logger.debug("已加载 %d 条依赖记录", len(self._deps))

    def get(self, name: str) -> Dependency | None:
        return self._deps.get(name)

    def all(self) -> list[Dependency]:
        with self._lock:
            return list(self._deps.values())

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._deps)

    def is_ignored(self, name: str) -> bool:
        return name in self.ignore_list

    def __contains__(self, name: object) -> bool:
        return name in self._deps

    def __len__(self) -> int:
        return len(self._deps)

    # ------------------------------------------------------------------
    # 变更
    # ------------------------------------------------------------------

    def add(self, dep: Dependency) -> bool:
        """插入单条依赖并同步到清单，同名已存在或在忽略列表中时不做任何事"""
        with self._lock:
            if not self._insert(dep):
                return False
            self._pending[dep.name] = dep.version
            self.persist()
            return True

    def add_all(self, deps: Iterable[Dependency]) -> list[str]:
        """批量插入（来自清单同步，不回写清单），返回新插入的包名"""
        with self._lock:
            added = [dep.name for dep in deps if self._insert(dep)]
            if added:
                self.persist()
            return added

    def remove(self, name: str, *, keep_manifest: bool = False) -> None:
        """删除记录；keep_manifest=True 时只删记录，不动清单条目"""
        with self._lock:
            if name not in self._deps:
                raise DependencyNotFoundError(name)
            del self._deps[name]
            if not keep_manifest:
                self._pending[name] = None
            self.persist()
            logger.info("依赖已删除: %s", name)

    def remove_many(self, names: Iterable[str]) -> list[str]:
        """批量删除已存在的依赖，不存在的名字忽略，返回实际删除的包名"""
        with self._lock:
            removed = []
            for name in names:
                if self._deps.pop(name, None) is not None:
                    self._pending[name] = None
                    removed.append(name)
            if removed:
                self.persist()
                logger.info("依赖已删除: %s", ", ".join(removed))
            return removed

    def replace(self, dep: Dependency) -> None:
        """删除旧记录并插入新记录（一次持久化）"""
        with self._lock:
            if dep.name not in self._deps:
                raise DependencyNotFoundError(dep.name)
            self._deps[dep.name] = dep
            self._pending[dep.name] = dep.version
            self.persist()
            logger.info("依赖已替换: %s@%s", dep.name, dep.version)

    def put_all(self, deps: Iterable[Dependency]) -> None:
        """覆盖已存在的记录（修复策略刷新 last_used / 修改版本后回存）

        期间已被删除的记录不会被复活；已锁定记录的版本只能经 replace 变更。
        """
        with self._lock:
            changed = False
            for dep in deps:
                current = self._deps.get(dep.name)
                if current is None:
                    continue
                if current.read_only and current.version != dep.version:
                    raise LockedDependencyError(dep.name)
                if current.read_only and not dep.read_only:
                    # 快照取自锁定之前，锁定状态不回退
                    dep = dep.lock()
                if current.version != dep.version:
                    self._pending[dep.name] = dep.version
                self._deps[dep.name] = dep
                changed = True
            if changed:
                self.persist()

    def lock_all(self) -> list[str]:
        """锁定所有未锁定的依赖（忽略列表中的除外），返回本次锁定的包名"""
        with self._lock:
            locked = []
            for name, dep in self._deps.items():
                if dep.read_only or self.is_ignored(name):
                    continue
                self._deps[name] = dep.lock()
                locked.append(name)
            if locked:
                self.persist()
            return locked

    def _insert(self, dep: Dependency) -> bool:
        if not dep.name:
            raise ValidationError("依赖名称不能为空")
        if self.is_ignored(dep.name):
            logger.warning("依赖 %s 在忽略列表中，拒绝插入", dep.name)
            return False
        if dep.name in self._deps:
            logger.info("依赖 %s 已存在，跳过", dep.name)
            return False
        self._deps[dep.name] = dep
        logger.info(
            "依赖已登记: %s@%s%s", dep.name, dep.version,
            "（只读）" if dep.read_only else "",
        )
        return True

    # ------------------------------------------------------------------
    # 持久化
    # ------------------------------------------------------------------

    def persist(self) -> None:
        """写记录文件，再把待同步的变更回写到清单"""
        with self._lock:
            records = [d.to_record() for d in sorted(self._deps.values(), key=lambda d: d.name)]
            self._file.write_records(records)
            self._reconcile_manifest()

    def _reconcile_manifest(self) -> None:
        if not self._pending or self._manifest is None:
            return
        pending, self._pending = self._pending, {}
        if not self._manifest.exists():
            logger.debug("清单不存在，跳过回写")
            return
        try:
            data = self._manifest.read()
        except ADSError:
            # 记录文件已写入；清单损坏时由需要清单的操作报告 InvalidManifestError
            logger.warning("清单无法读取，本次变更未同步到清单")
            return

        changed = False
        for name, version in pending.items():
            if version is None:
                changed |= self._drop_from_manifest(data, name)
            else:
                changed |= self._set_in_manifest(data, name, version)
        if changed:
            self._manifest.write(data)

    def _drop_from_manifest(self, data: dict, name: str) -> bool:
        declared = [s for s in _RECONCILED_SECTIONS if name in (data.get(s) or {})]
        if not declared:
            return False
        if self.is_ignored(name):
            logger.info("依赖 %s 在忽略列表中，保留清单条目", name)
            return False
        for section in declared:
            del data[section][name]
        return True

    @staticmethod
    def _set_in_manifest(data: dict, name: str, version: str) -> bool:
        section = "devDependencies" if name in (data.get("devDependencies") or {}) else "dependencies"
        entries = data.setdefault(section, {})
        if entries.get(name) == version:
            return False
        entries[name] = version
        return True
