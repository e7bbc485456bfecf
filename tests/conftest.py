"""测试公共替身与夹具

注册表、漏洞扫描、子进程均使用内存替身；清单、依赖记录、忽略列表使用 tmp_path 下的真实文件。
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import pytest

from ads.core.config import Config
from ads.core.dispatcher import CommandDispatcher
from ads.core.models import Dependency, Identity, ScanReport
from ads.core.package_manager import PackageManager
from ads.core.project_files import DependencyFile, IgnoreListFile, ManifestFile
from ads.core.remediation import VulnerabilityRemediationPolicy
from ads.core.resolver import ConflictResolver
from ads.core.store import DependencyStore
from ads.services.lifecycle import LifecycleService
from ads.utils.shell import CommandResult

NOW = 1_700_000_000.0


class FakeRegistry:
    """内存注册表: 包名 -> {版本: 元数据}，版本按发布顺序插入"""

    def __init__(self) -> None:
        self.packages: dict[str, dict[str, dict[str, Any]]] = {}
        self.failing: set[str] = set()
        self.requests: list[str] = []
        self.refreshes = 0
        self._lock = threading.Lock()

    def publish(
        self,
        name: str,
        *versions: str,
        peer_dependencies: dict[str, str] | None = None,
        deprecated: bool = False,
    ) -> None:
        entry = self.packages.setdefault(name, {})
        for v in versions:
            info: dict[str, Any] = {}
            if peer_dependencies:
                info["peerDependencies"] = dict(peer_dependencies)
            if deprecated:
                info["deprecated"] = "no longer supported"
            entry[v] = info

    def _get(self, name: str) -> dict[str, dict[str, Any]]:
        with self._lock:
            self.requests.append(name)
        if name in self.failing:
            raise ConnectionError(f"请求失败: {name}")
        if name not in self.packages:
            raise ConnectionError(f"请求失败 (HTTP 404): {name}")
        return self.packages[name]

    def list_versions(self, name: str) -> list[str]:
        return list(self._get(name))

    def fetch_metadata(self, name: str) -> dict[str, Any]:
        versions = self._get(name)
        tags = {"latest": list(versions)[-1]} if versions else {}
        return {"versions": versions, "time": {}, "dist-tags": tags}

    def latest_version(self, name: str) -> str | None:
        return self.fetch_metadata(name)["dist-tags"].get("latest")

    def refresh(self) -> None:
        self.refreshes += 1


class FakeScanner:
    """按包名返回预设扫描结果，failing 中的包抛 ConnectionError"""

    def __init__(self) -> None:
        self.reports: dict[str, ScanReport] = {}
        self.failing: set[str] = set()
        self.deprecated: set[str] = set()
        self.scanned: list[str] = []
        self.refreshes = 0
        self._lock = threading.Lock()

    def scan(self, dependency: Dependency) -> ScanReport:
        with self._lock:
            self.scanned.append(dependency.name)
        if dependency.name in self.failing:
            raise ConnectionError(f"扫描失败: {dependency.name}")
        return self.reports.get(dependency.name, ScanReport())

    def is_deprecated(self, name: str, version: str) -> bool:
        return name in self.deprecated

    def refresh(self) -> None:
        self.refreshes += 1


class FakeExecutor:
    """记录调用的命令执行器，可按子命令预设结果"""

    def __init__(self, returncode: int = 0, stdout: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.outputs: dict[str, CommandResult] = {}
        self.calls: list[dict[str, Any]] = []

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: float | None = None,
        capture: bool = True,
    ) -> CommandResult:
        args = cmd.split() if isinstance(cmd, str) else list(cmd)
        self.calls.append({"cmd": args, "cwd": cwd, "timeout": timeout, "capture": capture})
        if len(args) > 1 and args[1] in self.outputs:
            return self.outputs[args[1]]
        return CommandResult(returncode=self.returncode, stdout=self.stdout)

    @property
    def commands(self) -> list[list[str]]:
        return [c["cmd"] for c in self.calls]


class Project:
    """tmp_path 下的一个 npm 项目 + 内存替身"""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.registry = FakeRegistry()
        self.scanner = FakeScanner()
        self.executor = FakeExecutor()
        self.manifest = ManifestFile(root / "package.json")
        self.deps_file = DependencyFile(root / ".ads" / "dependencies.yml")
        self.ignore_path = root / ".adsignore"
        self.config = Config(max_workers=2)
        self.now = NOW

    def clock(self) -> float:
        return self.now

    def write_manifest(self, author: str = "alice", **sections: dict[str, str]) -> None:
        data: dict[str, Any] = {"name": "demo-app", "version": "1.0.0", "author": author}
        data.update(sections)
        self.manifest.write(data)

    def read_manifest(self) -> dict[str, Any]:
        return self.manifest.read()

    def write_ignore(self, *names: str) -> None:
        self.ignore_path.write_text("\n".join(names) + "\n", encoding="utf-8")

    def store(self) -> DependencyStore:
        return DependencyStore(
            self.deps_file,
            manifest=self.manifest,
            ignore_list=IgnoreListFile(self.ignore_path).read(),
        )

    def service(self, user: str = "alice", store: DependencyStore | None = None) -> LifecycleService:
        data = self.manifest.read() if self.manifest.exists() else None
        return LifecycleService(
            identity=Identity.from_manifest(user, data),
            store=store or self.store(),
            manifest=self.manifest,
            registry=self.registry,
            package_manager=PackageManager(self.executor, executable="npm", timeout=60),
            remediation=VulnerabilityRemediationPolicy(
                self.scanner, max_workers=2, clock=self.clock,
            ),
            resolver=ConflictResolver(self.registry, max_workers=2),
            config=self.config,
            clock=self.clock,
        )

    def dispatcher(self, user: str = "alice") -> CommandDispatcher:
        svc = self.service(user)
        return CommandDispatcher(svc.identity, svc, debug=True)


@pytest.fixture()
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture()
def scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture()
def executor() -> FakeExecutor:
    return FakeExecutor()
