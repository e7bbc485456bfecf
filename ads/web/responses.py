"""Web 层统一响应辅助函数"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

from flask import Response, jsonify

from ads.core.exceptions import ADSError


def ok(data: dict, status: int = 200) -> tuple[Response, int] | Response:
    """成功响应"""
    if status == 200:
        return jsonify(data)
    return jsonify(data), status


def bad_request(message: str) -> tuple[Response, int]:
    """请求参数错误"""
    return jsonify(error=message), 400


def error(exc: ADSError) -> tuple[Response, int]:
    """业务异常 → {error, code}，状态码取自异常的 http_status"""
    return jsonify(error=str(exc), code=exc.code), exc.http_status


def to_json(value: Any) -> Any:
    """把分发结果转换为可 JSON 序列化的结构"""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "to_record"):
        return value.to_record()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value
