"""外部协作者协议定义

核心只依赖这些 Protocol，不依赖具体的文件、网络、子进程实现，
测试中可直接注入内存替身。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence

if TYPE_CHECKING:
    from ads.core.models import Dependency, ScanReport


# =========================================================================
# 文件协作者
# =========================================================================

class ManifestIO(Protocol):
    """项目清单读写（package.json）"""

    def exists(self) -> bool:
        ...

    def read(self) -> dict[str, Any]:
        """读取清单，缺失或无法解析时抛 InvalidManifestError"""
        ...

    def write(self, data: dict[str, Any]) -> None:
        ...


class DependencyFileIO(Protocol):
    """依赖记录持久化"""

    def read_records(self) -> list[dict[str, Any]]:
        ...

    def write_records(self, records: Sequence[dict[str, Any]]) -> None:
        ...


# =========================================================================
# 网络 / 子进程协作者
# =========================================================================

class RegistryAPI(Protocol):
    """包注册表客户端"""

    def list_versions(self, name: str) -> list[str]:
        ...

    def fetch_metadata(self, name: str) -> dict[str, Any]:
        """返回 {"versions": {version: {"peerDependencies": {...}, "deprecated": ...}}}"""
        ...

    def latest_version(self, name: str) -> str | None:
        ...

    def refresh(self) -> None:
        """丢弃缓存的元数据，之后的查询重新请求注册表"""
        ...


class CveSource(Protocol):
    """漏洞扫描源"""

    def scan(self, dependency: Dependency) -> ScanReport:
        ...

    def is_deprecated(self, name: str, version: str) -> bool:
        ...

    def refresh(self) -> None:
        """开始新一轮扫描前调用，丢弃上一轮的审计结果"""
        ...


class PackageManagerAPI(Protocol):
    """包管理器进程"""

    def ensure_allowed(self, command: str, args: Sequence[str] = ()) -> None:
        """策略检查，不允许时抛 InstallBlockedError"""
        ...

    def run(self, command: str, args: Sequence[str] = ()) -> int:
        ...
