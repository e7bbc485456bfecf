"""npm 注册表客户端

职责:
- 拉取包元数据 GET {registry}/{name}（作用域包名需 URL 编码，保留 @）
- 列出已发布版本（按语义化版本升序，与 `npm view <pkg> versions` 一致）
- 读取 dist-tags.latest

按包名缓存元数据，批量解析时每个包只请求一次。缓存条目超过 cache_ttl 秒失效，
refresh() 立即清空缓存；失败的请求不缓存。
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable
from urllib.parse import quote

from ads.core.versioning import sort_releases
from ads.utils.net import get_json, validate_url_scheme

logger = logging.getLogger(__name__)

_ACCEPT_HEADERS = {"Accept": "application/json"}


class RegistryClient:
    """npm 注册表 JSON API 客户端"""

    def __init__(
        self,
        base_url: str = "https://registry.npmjs.org",
        *,
        timeout: float = 30.0,
        cache_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        validate_url_scheme(base_url, context="registry_url")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.clock = clock
        self._cache: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def refresh(self) -> None:
        """丢弃全部缓存的元数据"""
        with self._lock:
            self._cache.clear()

    def package_url(self, name: str) -> str:
        return f"{self.base_url}/{quote(name, safe='@')}"

    def fetch_metadata(self, name: str) -> dict[str, Any]:
        """返回规范化后的元数据 {"versions": {...}, "time": {...}, "dist-tags": {...}}

        Raises:
            ConnectionError: 网络错误、HTTP 错误或响应不是 JSON 对象
        """
        with self._lock:
            cached = self._cache.get(name)
        if cached is not None and self.clock() - cached[0] < self.cache_ttl:
            return cached[1]

        url = self.package_url(name)
        logger.debug("请求注册表: %s", url)
        raw = get_json(url, timeout=self.timeout, headers=_ACCEPT_HEADERS)
        if not isinstance(raw, dict):
            raise ConnectionError(f"注册表响应格式不正确: {url}")

        meta = {
            "versions": raw.get("versions") or {},
            "time": raw.get("time") or {},
            "dist-tags": raw.get("dist-tags") or {},
        }
        with self._lock:
            self._cache[name] = (self.clock(), meta)
        return meta

    def list_versions(self, name: str) -> list[str]:
        """已发布版本列表，按语义化版本升序；不合法的版本号被忽略"""
        return sort_releases(self.fetch_metadata(name)["versions"])

    def latest_version(self, name: str) -> str | None:
        return self.fetch_metadata(name)["dist-tags"].get("latest")
