"""YAML / JSON 文件统一读写工具

集中管理依赖记录文件（YAML）和清单文件（JSON）的序列化/反序列化。
统一 encoding="utf-8"、空值保护、目录自动创建、原子写入。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 单文件最大大小限制 (10MB)，防止恶意大文件导致内存耗尽
MAX_FILE_SIZE = 10 * 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写同目录临时文件再 rename

    并发启动的进程只会看到旧文件或新文件，不会读到写了一半的内容。
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent), suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _check_size(p: Path) -> None:
    file_size = p.stat().st_size
    if file_size > MAX_FILE_SIZE:
        raise ValueError(
            f"文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_FILE_SIZE} 字节"
        )


def load_yaml(path: str | Path) -> Any:
    """安全读取 YAML 文件

    返回:
        解析后的对象；文件不存在或为空时返回 None

    异常:
        yaml.YAMLError: YAML 格式错误
        OSError: IO 错误
        ValueError: 文件过大
    """
    p = Path(path)
    if not p.exists():
        return None
    _check_size(p)

    try:
        with open(p, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise
    except OSError as e:
        logger.error("读取文件失败: %s, 错误: %s", path, e)
        raise


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML 文件（保持键顺序，允许 Unicode）"""
    p = Path(path)
    try:
        content = yaml.dump(
            data, default_flow_style=False,
            allow_unicode=True, sort_keys=False,
        )
        atomic_write(p, content)
    except yaml.YAMLError as e:
        logger.error("序列化 YAML 数据失败: %s, 错误: %s", path, e)
        raise
    except OSError as e:
        logger.error("写入文件失败: %s, 错误: %s", path, e)
        raise


def load_json(path: str | Path) -> Any:
    """读取 JSON 文件，文件不存在时返回 None

    异常:
        json.JSONDecodeError: JSON 格式错误
        OSError: IO 错误
        ValueError: 文件过大
    """
    p = Path(path)
    if not p.exists():
        return None
    _check_size(p)
    with open(p, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: str | Path, data: Any) -> None:
    """原子写入 JSON 文件，两空格缩进并以换行结尾（与 npm 的格式一致）"""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    atomic_write(Path(path), content)
