"""集中配置管理

所有可调参数（清单路径、闲置阈值、版本窗口大小、超时等）集中于此。
支持从 YAML 文件加载 + 环境变量覆盖 + 编程式覆盖。
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field

from ads.core.exceptions import ConfigError
from ads.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".ads/config.yml"


@dataclass
class Config:
    """ADS 全局配置"""

    # 文件
    manifest: str = "package.json"
    ignore_file: str = ".adsignore"
    deps_file: str = ".ads/dependencies.yml"

    # 策略
    unused_threshold_hours: float = 5.0
    allowed_versions_count: int = 3
    install_manifest_only: bool = True
    write_back_sections: list[str] = field(
        default_factory=lambda: ["dependencies", "devDependencies"],
    )

    # 外部调用
    registry_url: str = "https://registry.npmjs.org"
    package_manager: str = "npm"
    request_timeout: float = 30.0
    process_timeout: float = 1800.0
    max_workers: int = 8
    # 注册表元数据缓存有效期（秒）
    registry_cache_ttl: float = 300.0

    # 调试: 分发前输出命令类型和负载
    debug: bool = False

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @property
    def unused_threshold_seconds(self) -> float:
        return self.unused_threshold_hours * 3600

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            cfg = cls()
        elif not isinstance(data, dict):
            raise ConfigError(f"配置文件内容必须是映射: {path}")
        else:
            known = {f.name for f in cls.__dataclass_fields__.values()}
            matched = {k: v for k, v in data.items() if k in known}
            extra = {k: v for k, v in data.items() if k not in known}
            try:
                cfg = cls(**matched)
            except TypeError as e:
                raise ConfigError(f"配置文件字段无效: {path} - {e}") from e
            cfg.extra = extra
        cfg.apply_env()
        cfg.validate()
        return cfg

    def apply_env(self) -> None:
        """环境变量覆盖"""
        if os.getenv("ADS_DEBUG", "") == "1":
            self.debug = True
        if os.getenv("ADS_REGISTRY_URL"):
            self.registry_url = os.environ["ADS_REGISTRY_URL"]

    def validate(self) -> None:
        if self.unused_threshold_hours <= 0:
            raise ConfigError("unused_threshold_hours 必须为正数")
        if self.allowed_versions_count < 1:
            raise ConfigError("allowed_versions_count 至少为 1")
        if self.max_workers < 1:
            raise ConfigError("max_workers 至少为 1")
        if self.registry_cache_ttl < 0:
            raise ConfigError("registry_cache_ttl 不能为负数")

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI / Web 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
        _current.apply_env()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
