"""请求级调用方身份

调用方用户名取自 X-ADS-User 请求头，每个请求按该用户名与清单 author 重新判定维护者身份，
不继承服务进程的用户。缺少请求头的请求按匿名用户处理，只能执行通用命令。
"""

from __future__ import annotations

from flask import request

from ads.core.dispatcher import CommandDispatcher
from ads.services.container import get_container

USER_HEADER = "X-ADS-User"


def request_user() -> str:
    return request.headers.get(USER_HEADER, "").strip()


def request_dispatcher() -> CommandDispatcher:
    """为当前请求的调用方构造分发器"""
    return get_container().session(request_user())
