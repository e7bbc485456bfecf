"""网络工具 - URL 安全校验与带超时的 JSON 请求"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any
from urllib.parse import urlparse

from ads.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def get_json(url: str, *, timeout: float, headers: dict[str, str] | None = None) -> Any:
    """GET 请求并解析 JSON 响应

    网络错误、超时、非 JSON 响应统一抛 ConnectionError，由批处理调用方在单项边界捕获。
    """
    validate_url_scheme(url, context="registry")
    req = urllib.request.Request(url, headers=headers or {})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        raise ConnectionError(f"请求失败 (HTTP {e.code}): {url}") from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise ConnectionError(f"请求失败: {url} - {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConnectionError(f"响应不是合法 JSON: {url}") from e
