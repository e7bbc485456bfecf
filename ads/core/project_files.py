"""项目文件读写

- ManifestFile:    package.json
- IgnoreListFile:  .adsignore（每行一个包名）
- DependencyFile:  .ads/dependencies.yml（依赖记录）
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

import yaml

from ads.core.exceptions import InvalidManifestError
from ads.utils.yaml_io import load_json, load_yaml, save_json, save_yaml

logger = logging.getLogger(__name__)


class ManifestFile:
    """package.json 读写"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> dict[str, Any]:
        if not self.exists():
            raise InvalidManifestError(f"清单文件不存在: {self.path}")
        try:
            data = load_json(self.path)
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            raise InvalidManifestError(f"清单文件无法解析: {self.path} - {e}") from e
        if not isinstance(data, dict):
            raise InvalidManifestError(f"清单文件内容必须是 JSON 对象: {self.path}")
        for section in ("dependencies", "devDependencies", "peerDependencies"):
            if section in data and not isinstance(data[section], dict):
                raise InvalidManifestError(f"清单字段 {section} 必须是对象: {self.path}")
        return data

    def write(self, data: dict[str, Any]) -> None:
        save_json(self.path, data)
        logger.info("清单已写入: %s", self.path)


class IgnoreListFile:
    """忽略列表

    按行读取，兼容 \\n 与 \\r\\n；去除首尾空白，跳过空行和 # 注释行。
    文件不存在时返回空列表。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> list[str]:
        if not self.path.is_file():
            return []
        text = self.path.read_text(encoding="utf-8")
        names: list[str] = []
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                names.append(line)
        return names


class DependencyFile:
    """依赖记录文件（YAML，原子写入）"""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read_records(self) -> list[dict[str, Any]]:
        try:
            data = load_yaml(self.path)
        except yaml.YAMLError:
            logger.exception("依赖记录文件损坏，按空记录处理: %s", self.path)
            return []
        if not data:
            return []
        records = data.get("dependencies") if isinstance(data, dict) else data
        if not isinstance(records, list):
            logger.warning("依赖记录格式不正确，按空记录处理: %s", self.path)
            return []
        return [r for r in records if isinstance(r, dict)]

    def write_records(self, records: Sequence[dict[str, Any]]) -> None:
        save_yaml(self.path, {"dependencies": list(records)})
