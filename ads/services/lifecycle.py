"""依赖生命周期服务

每个命令类型对应一个操作。维护者变更类操作（add / remove / install / build）
先执行通用检查（见 services/check），保证变更不会落在未扫描、未解析的依赖集合上。

权限: 分发器负责拦截受保护命令；add / remove / replace 在此处再校验一次，
绕过分发器直接调用服务的代码得到同样的 RestrictedAccessError。

并发: 会写入存储或清单的操作在服务级可重入锁内执行，同一服务的两个操作不会交错写入。
for_identity() 派生的会话实例共享这把锁。
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Any, Callable, Sequence

from ads.core.commands import CommandType
from ads.core.config import Config
from ads.core.exceptions import (
    ADSError,
    RestrictedAccessError,
    VersionNotAllowedError,
)
from ads.core.models import Dependency, Identity, MutableDependency, author_name
from ads.core.protocols import ManifestIO, PackageManagerAPI, RegistryAPI
from ads.core.remediation import VulnerabilityRemediationPolicy
from ads.core.resolver import ConflictResolver, ResolutionResult, rewrite_manifest
from ads.core.store import DependencyStore
from ads.core.versioning import is_local_spec, is_strict_release, sort_releases
from ads.services.check import CheckReport, CommonCheck

logger = logging.getLogger(__name__)

# 从清单同步到存储的段；peerDependencies 只参与冲突解析
SYNC_SECTIONS = ("dependencies", "devDependencies")


class LifecycleService:
    """生命周期编排"""

    def __init__(
        self,
        *,
        identity: Identity,
        store: DependencyStore,
        manifest: ManifestIO,
        registry: RegistryAPI,
        package_manager: PackageManagerAPI,
        remediation: VulnerabilityRemediationPolicy,
        resolver: ConflictResolver,
        config: Config | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.identity = identity
        self.store = store
        self.manifest = manifest
        self.registry = registry
        self.package_manager = package_manager
        self.remediation = remediation
        self.resolver = resolver
        self.config = config or Config()
        self.clock = clock
        self._op_lock = threading.RLock()

    def for_identity(self, identity: Identity) -> LifecycleService:
        """以另一个调用方身份派生服务实例，存储、协作者与操作锁共享"""
        session = copy.copy(self)
        session.identity = identity
        return session

    # ---- 身份 ----

    def get_maintainer(self) -> dict[str, Any]:
        return {
            "user": self.identity.name,
            "isPackageMaintainer": self.identity.is_package_maintainer,
        }

    def _require_maintainer(self, command: CommandType) -> None:
        if not self.identity.is_package_maintainer:
            logger.warning("非维护者 %s 尝试执行受保护操作 %s", self.identity.name, command.value)
            raise RestrictedAccessError(command.value, self.identity.name)

    # ---- 同步 / 检查 ----

    def sync_from_manifest(self) -> list[str]:
        """把清单中尚未登记的依赖插入存储（可变态），返回新登记的包名

        重复执行只会插入真正新增的条目。清单缺失或无法解析抛 InvalidManifestError。
        """
        with self._op_lock:
            data = self.manifest.read()
            maintainer = author_name(data.get("author")) or None
            now = self.clock()
            incoming: list[Dependency] = []
            seen: set[str] = set()
            for section in SYNC_SECTIONS:
                for name, spec in (data.get(section) or {}).items():
                    if name in seen or not isinstance(spec, str):
                        continue
                    seen.add(name)
                    incoming.append(MutableDependency(
                        name=name,
                        version=spec,
                        maintainer=maintainer,
                        is_local=is_local_spec(spec),
                        last_used=now,
                    ))
            added = self.store.add_all(incoming)
        logger.info("清单同步完成: 新增 %d / 清单 %d", len(added), len(incoming))
        return added

    def init_ads(self) -> list[str]:
        return self.sync_from_manifest()

    def common_check(self) -> CheckReport:
        with self._op_lock:
            logger.info("开始通用检查")
            report = CommonCheck(self).run()
        for line in report.summary():
            logger.info("  %s", line)
        return report

    # ---- 受保护操作 ----

    def add(self, name: str, version: str) -> bool:
        """新增依赖（插入即锁定）；同名已存在时不做任何事，返回 False"""
        self._require_maintainer(CommandType.ADD)
        with self._op_lock:
            self.common_check()
            dep = self._new_record(name, version).lock()
            return self.store.add(dep)

    def remove(self, name: str) -> None:
        self._require_maintainer(CommandType.REMOVE)
        with self._op_lock:
            self.common_check()
            self.store.remove(name)

    def replace(self, name: str, version: str) -> Dependency:
        self._require_maintainer(CommandType.REPLACE)
        return self._replace(name, version)

    def _replace(self, name: str, version: str) -> Dependency:
        """删除旧记录并以锁定态重新插入，不存在抛 DependencyNotFoundError"""
        dep = self._new_record(name, version).lock()
        with self._op_lock:
            self.store.replace(dep)
        return dep

    def _new_record(self, name: str, version: str) -> MutableDependency:
        return MutableDependency(
            name=name,
            version=version,
            maintainer=self.identity.name or None,
            is_local=is_local_spec(version),
            last_used=self.clock(),
        )

    # ---- 版本窗口 ----

    def get_allowed_versions(self, name: str) -> list[str]:
        """版本号最高的 N 个正式版本（x.y.z），按语义化版本降序；注册表不可达时返回空列表

        排序不看发布时间，晚发布的旧主版本补丁不会挤进窗口。
        """
        try:
            versions = self.registry.list_versions(name)
        except (ADSError, ConnectionError, OSError, ValueError) as e:
            logger.warning("获取版本列表失败 %s: %s", name, e)
            return []
        strict = sort_releases((v for v in versions if is_strict_release(v)), reverse=True)
        return strict[: self.config.allowed_versions_count]

    def change_to_allowed_version(self, name: str, version: str) -> Dependency:
        allowed = self.get_allowed_versions(name)
        if version not in allowed:
            raise VersionNotAllowedError(name, version, allowed)
        logger.info("切换 %s 到允许版本 %s", name, version)
        return self._replace(name, version)

    # ---- 清理 / 锁定 ----

    def prune_unused(self, now: float | None = None) -> list[str]:
        """删除闲置超过阈值的依赖（严格大于），返回删除的包名"""
        now = self.clock() if now is None else now
        threshold = self.config.unused_threshold_seconds
        with self._op_lock:
            stale = [
                d.name for d in self.store.all()
                if now - d.last_used > threshold and not self.store.is_ignored(d.name)
            ]
            return self.store.remove_many(stale)

    def lock_all(self) -> list[str]:
        with self._op_lock:
            return self.store.lock_all()

    # ---- 冲突解析 ----

    def resolve_conflicts(self) -> ResolutionResult:
        return self.resolver.resolve(self.manifest.read())

    def write_back(self, result: ResolutionResult) -> list[str]:
        """把推荐版本写回清单；存在冲突或不可解析的包时不写任何内容"""
        if not result.writable:
            logger.warning("存在冲突或无法解析的包，跳过清单回写")
            return []
        with self._op_lock:
            data = self.manifest.read()
            changed = rewrite_manifest(data, result.recommended, self.config.write_back_sections)
            if changed:
                self.manifest.write(data)
                logger.info("推荐版本已写回清单: %s", ", ".join(changed))
        return changed

    # ---- 包管理器 ----

    def install(self, args: Sequence[str] = ()) -> int:
        self.package_manager.ensure_allowed("install", args)
        with self._op_lock:
            self.common_check()
            return self.package_manager.run("install", args)

    def clean_install(self) -> int:
        with self._op_lock:
            self.common_check()
            return self.package_manager.run("ci")

    def trigger_build(self) -> int:
        with self._op_lock:
            self.common_check()
            return self.package_manager.run("run", ["build"])

    def start(self) -> int:
        return self.package_manager.run("start")
