"""命令 API Blueprint

POST /api/commands  {"type": "<命令类型>", "payload": {...}}
命令经分发器执行，权限与负载校验与 CLI 一致。
调用方身份取自 X-ADS-User 请求头（见 web/session.py），与服务进程的用户无关。
"""

from __future__ import annotations

from flask import Blueprint, request

from ads.core.commands import CommandType
from ads.web.responses import bad_request, ok, to_json
from ads.web.session import request_dispatcher

commands_bp = Blueprint("commands", __name__, url_prefix="/api/commands")

# 长驻进程不通过 HTTP 触发
_WEB_REJECTED = frozenset({CommandType.START.value})


@commands_bp.route("", methods=["POST"])
def api_submit_command():
    """提交命令"""
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or "type" not in body:
        return bad_request("请求体必须是包含 type 字段的 JSON 对象")
    ctype = body["type"]
    if ctype in _WEB_REJECTED:
        return bad_request(f"命令 '{ctype}' 不支持通过 Web API 执行")
    result = request_dispatcher().dispatch(ctype, body.get("payload"))
    return ok({"type": ctype, "result": to_json(result)})
