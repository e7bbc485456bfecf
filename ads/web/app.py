"""Web API（基于 Flask）

提供：命令提交、依赖记录查询、允许版本窗口、健康检查。

启动方式: ads serve --port 8888
"""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from ads import __version__
from ads.core.exceptions import ADSError
from ads.web.responses import error
from ads.web.routes import commands_bp, deps_bp

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH

app.register_blueprint(commands_bp)
app.register_blueprint(deps_bp)


# =========================================================================
# 全局 JSON 错误处理
# =========================================================================


@app.errorhandler(ADSError)
def handle_ads_error(exc: ADSError):
    logger.warning("请求失败 [%s]: %s", exc.code, exc)
    return error(exc)


@app.errorhandler(HTTPException)
def handle_http_exception(exc):
    """将所有 HTTP 异常统一返回 JSON"""
    return jsonify(error=exc.description), exc.code


@app.errorhandler(Exception)
def handle_generic_exception(exc):  # noqa: ARG001
    """捕获未处理异常，返回 500 JSON"""
    logger.exception("未处理的异常")
    return jsonify(error="服务器内部错误"), 500


@app.route("/api/health")
def api_health():
    return jsonify(status="ok", version=__version__)


def run_server(port: int = 8888, debug: bool = False, host: str = "127.0.0.1") -> None:
    logger.info("ads Web API 已启动: http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug)
