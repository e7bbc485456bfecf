"""ServiceContainer 单元测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ads.core.config import Config
from ads.services.container import (
    ServiceContainer,
    current_user,
    get_container,
    reset_container,
    set_container,
)


@pytest.fixture(autouse=True)
def _reset():
    reset_container()
    yield
    reset_container()


def _container(tmp_path: Path, registry, executor, scanner, user: str = "alice") -> ServiceContainer:
    return ServiceContainer(
        Config(max_workers=2), user=user, root=tmp_path,
        registry=registry, executor=executor, scanner=scanner,
    )


def _manifest(tmp_path: Path, text: str) -> None:
    (tmp_path / "package.json").write_text(text, encoding="utf-8")


class TestServiceContainer:
    def test_lazy_loading(self, tmp_path, registry, executor, scanner) -> None:
        c = _container(tmp_path, registry, executor, scanner)
        assert "store" not in c._instances
        _ = c.store
        assert "store" in c._instances

    def test_shared_instances(self, tmp_path, registry, executor, scanner) -> None:
        c = _container(tmp_path, registry, executor, scanner)
        assert c.store is c.store
        assert c.lifecycle.store is c.store
        assert c.dispatcher.lifecycle is c.lifecycle

    def test_injected_collaborators(self, tmp_path, registry, executor, scanner) -> None:
        c = _container(tmp_path, registry, executor, scanner)
        assert c.registry is registry
        assert c.lifecycle.remediation.scanner is scanner
        assert c.package_manager.executor is executor

    def test_paths_relative_to_root(self, tmp_path, registry, executor, scanner) -> None:
        c = _container(tmp_path, registry, executor, scanner)
        assert c.manifest.path == tmp_path / "package.json"

    def test_identity_from_manifest_author(self, tmp_path, registry, executor, scanner) -> None:
        _manifest(tmp_path, json.dumps({"name": "demo", "author": "alice"}))
        assert _container(tmp_path, registry, executor, scanner).identity.is_package_maintainer
        other = _container(tmp_path, registry, executor, scanner, user="bob")
        assert not other.identity.is_package_maintainer

    def test_broken_manifest_means_non_maintainer(self, tmp_path, registry, executor, scanner) -> None:
        _manifest(tmp_path, "{not json")
        identity = _container(tmp_path, registry, executor, scanner).identity
        assert identity.name == "alice"
        assert not identity.is_package_maintainer

    def test_dispatcher_end_to_end(self, tmp_path, registry, executor, scanner) -> None:
        _manifest(tmp_path, json.dumps({"name": "demo", "author": "alice"}))
        c = _container(tmp_path, registry, executor, scanner, user="bob")
        assert c.dispatcher.dispatch("maintainer") == {"user": "bob", "isPackageMaintainer": False}

    def test_session_per_caller(self, tmp_path, registry, executor, scanner) -> None:
        _manifest(tmp_path, json.dumps({"name": "demo", "author": "alice"}))
        c = _container(tmp_path, registry, executor, scanner, user="alice")
        guest = c.session("mallory")
        assert guest.dispatch("maintainer") == {"user": "mallory", "isPackageMaintainer": False}
        assert guest.lifecycle.store is c.store
        assert c.session("alice").identity.is_package_maintainer
        assert c.dispatcher.identity.name == "alice"

    def test_registry_cache_ttl_from_config(self, tmp_path, executor, scanner) -> None:
        c = ServiceContainer(
            Config(registry_cache_ttl=12.0), user="alice", root=tmp_path,
            executor=executor, scanner=scanner,
        )
        assert c.registry.cache_ttl == 12.0


class TestCurrentUser:
    def test_env_priority(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USER", "u1")
        monkeypatch.setenv("ADS_MAINTAINER", "m1")
        assert current_user() == "m1"
        monkeypatch.delenv("ADS_MAINTAINER")
        assert current_user() == "u1"


class TestGlobalContainer:
    def test_singleton(self) -> None:
        assert get_container() is get_container()

    def test_set_and_reset(self, tmp_path, registry, executor, scanner) -> None:
        c = _container(tmp_path, registry, executor, scanner)
        set_container(c)
        assert get_container() is c
        reset_container()
        assert get_container() is not c
