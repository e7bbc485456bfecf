"""清单 / 忽略列表 / 依赖记录文件测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ads.core.exceptions import InvalidManifestError
from ads.core.project_files import DependencyFile, IgnoreListFile, ManifestFile


class TestManifestFile:
    def test_missing(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidManifestError, match="不存在"):
            ManifestFile(tmp_path / "package.json").read()

    def test_unparsable(self, tmp_path: Path) -> None:
        p = tmp_path / "package.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidManifestError, match="无法解析"):
            ManifestFile(p).read()

    def test_section_must_be_object(self, tmp_path: Path) -> None:
        p = tmp_path / "package.json"
        p.write_text(json.dumps({"dependencies": ["lodash"]}), encoding="utf-8")
        with pytest.raises(InvalidManifestError, match="dependencies"):
            ManifestFile(p).read()

    def test_write_keeps_npm_format(self, tmp_path: Path) -> None:
        m = ManifestFile(tmp_path / "package.json")
        m.write({"name": "demo", "dependencies": {"a": "^1.0.0"}})
        text = m.path.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert '\n  "name": "demo"' in text
        assert m.read()["dependencies"] == {"a": "^1.0.0"}


class TestIgnoreListFile:
    def test_crlf_blank_and_comments(self, tmp_path: Path) -> None:
        p = tmp_path / ".adsignore"
        p.write_bytes(b"left-pad\r\n\r\n  @corp/sdk  \r\n# comment\nlodash\n")
        assert IgnoreListFile(p).read() == ["left-pad", "@corp/sdk", "lodash"]

    def test_missing_is_empty(self, tmp_path: Path) -> None:
        assert IgnoreListFile(tmp_path / "none").read() == []


class TestDependencyFile:
    def test_round_trip(self, tmp_path: Path) -> None:
        f = DependencyFile(tmp_path / ".ads" / "dependencies.yml")
        f.write_records([{"name": "a", "version": "1.0.0"}])
        assert f.read_records() == [{"name": "a", "version": "1.0.0"}]

    def test_plain_list_accepted(self, tmp_path: Path) -> None:
        p = tmp_path / "deps.yml"
        p.write_text("- name: a\n  version: 1.0.0\n- junk\n", encoding="utf-8")
        assert DependencyFile(p).read_records() == [{"name": "a", "version": "1.0.0"}]

    def test_wrong_shape(self, tmp_path: Path) -> None:
        p = tmp_path / "deps.yml"
        p.write_text("dependencies: 42\n", encoding="utf-8")
        assert DependencyFile(p).read_records() == []
