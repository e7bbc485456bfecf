"""服务容器 - 统一装配协作者，CLI 与 Web 层通过 get_container() 获取

依赖关系图（→ 表示依赖）:
  dispatcher  → identity, lifecycle（Web 每个请求经 session(user) 新建）
  lifecycle   → store, manifest, registry, package_manager, remediation, resolver
  remediation → scanner → executor, registry
  store       → dependency file, manifest, ignore list

测试可通过构造参数替换 registry / executor / scanner。

用法:
    container = ServiceContainer(config=cfg, user="alice")
    container.dispatcher.dispatch("check")
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ads.core.exceptions import InvalidManifestError

if TYPE_CHECKING:
    from ads.core.config import Config
    from ads.core.dispatcher import CommandDispatcher
    from ads.core.models import Identity
    from ads.core.package_manager import PackageManager
    from ads.core.project_files import ManifestFile
    from ads.core.protocols import CveSource, RegistryAPI
    from ads.core.store import DependencyStore
    from ads.services.lifecycle import LifecycleService
    from ads.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


def current_user() -> str:
    """当前操作者: ADS_MAINTAINER 优先，其次 USER / USERNAME"""
    return os.getenv("ADS_MAINTAINER") or os.getenv("USER") or os.getenv("USERNAME") or ""


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        user: str | None = None,
        root: str | Path = ".",
        registry: RegistryAPI | None = None,
        executor: CommandExecutor | None = None,
        scanner: CveSource | None = None,
    ) -> None:
        if config is None:
            from ads.core.config import get_config
            config = get_config()
        self._config = config
        self._user = current_user() if user is None else user
        self.root = Path(root)
        self._instances: dict[str, Any] = {}
        if registry is not None:
            self._instances["registry"] = registry
        if executor is not None:
            self._instances["executor"] = executor
        if scanner is not None:
            self._instances["scanner"] = scanner

    @property
    def config(self) -> Config:
        return self._config

    def _path(self, relative: str) -> Path:
        return self.root / relative

    # ---- 文件协作者 ----

    @property
    def manifest(self) -> ManifestFile:
        if "manifest" not in self._instances:
            from ads.core.project_files import ManifestFile
            self._instances["manifest"] = ManifestFile(self._path(self._config.manifest))
        return self._instances["manifest"]

    @property
    def store(self) -> DependencyStore:
        if "store" not in self._instances:
            from ads.core.project_files import DependencyFile, IgnoreListFile
            from ads.core.store import DependencyStore
            self._instances["store"] = DependencyStore(
                DependencyFile(self._path(self._config.deps_file)),
                manifest=self.manifest,
                ignore_list=IgnoreListFile(self._path(self._config.ignore_file)).read(),
            )
        return self._instances["store"]

    # ---- 外部进程 / 网络 ----

    @property
    def executor(self) -> CommandExecutor:
        if "executor" not in self._instances:
            from ads.utils.shell import get_executor
            self._instances["executor"] = get_executor()
        return self._instances["executor"]

    @property
    def registry(self) -> RegistryAPI:
        if "registry" not in self._instances:
            from ads.core.registry import RegistryClient
            self._instances["registry"] = RegistryClient(
                self._config.registry_url,
                timeout=self._config.request_timeout,
                cache_ttl=self._config.registry_cache_ttl,
            )
        return self._instances["registry"]

    @property
    def scanner(self) -> CveSource:
        if "scanner" not in self._instances:
            from ads.core.cve_scanner import AuditScanner
            self._instances["scanner"] = AuditScanner(
                self.executor,
                self.registry,
                package_manager=self._config.package_manager,
                timeout=self._config.process_timeout,
                cwd=str(self.root),
            )
        return self._instances["scanner"]

    @property
    def package_manager(self) -> PackageManager:
        if "package_manager" not in self._instances:
            from ads.core.package_manager import PackageManager
            self._instances["package_manager"] = PackageManager(
                self.executor,
                executable=self._config.package_manager,
                timeout=self._config.process_timeout,
                install_manifest_only=self._config.install_manifest_only,
                cwd=str(self.root),
            )
        return self._instances["package_manager"]

    # ---- 身份 / 服务 ----

    def identity_for(self, user: str) -> Identity:
        """按清单作者判定 user 是否为维护者，清单无法解析时按非维护者处理"""
        from ads.core.models import Identity
        try:
            data = self.manifest.read() if self.manifest.exists() else None
        except InvalidManifestError:
            logger.warning("清单无法解析，%s 按非维护者处理", user)
            data = None
        return Identity.from_manifest(user, data)

    @property
    def identity(self) -> Identity:
        if "identity" not in self._instances:
            self._instances["identity"] = self.identity_for(self._user)
        return self._instances["identity"]

    @property
    def lifecycle(self) -> LifecycleService:
        if "lifecycle" not in self._instances:
            from ads.core.remediation import VulnerabilityRemediationPolicy
            from ads.core.resolver import ConflictResolver
            from ads.services.lifecycle import LifecycleService
            self._instances["lifecycle"] = LifecycleService(
                identity=self.identity,
                store=self.store,
                manifest=self.manifest,
                registry=self.registry,
                package_manager=self.package_manager,
                remediation=VulnerabilityRemediationPolicy(
                    self.scanner, max_workers=self._config.max_workers,
                ),
                resolver=ConflictResolver(self.registry, max_workers=self._config.max_workers),
                config=self._config,
            )
        return self._instances["lifecycle"]

    @property
    def dispatcher(self) -> CommandDispatcher:
        if "dispatcher" not in self._instances:
            from ads.core.dispatcher import CommandDispatcher
            self._instances["dispatcher"] = CommandDispatcher(
                self.identity, self.lifecycle, debug=self._config.debug,
            )
        return self._instances["dispatcher"]

    def session(self, user: str) -> CommandDispatcher:
        """为单个调用方构造分发器

        身份按调用方用户名重新判定；生命周期服务的存储、协作者与操作锁与容器共享。
        """
        from ads.core.dispatcher import CommandDispatcher
        identity = self.identity_for(user)
        return CommandDispatcher(
            identity, self.lifecycle.for_identity(identity), debug=self._config.debug,
        )


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def set_container(container: ServiceContainer) -> None:
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = container


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
