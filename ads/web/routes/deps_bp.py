"""依赖记录 API Blueprint

- GET /api/deps                              存储中的依赖记录
- GET /api/deps/<name>                       单条记录
- GET /api/deps/<name>/allowed-versions      允许版本窗口
"""

from __future__ import annotations

from flask import Blueprint

from ads.core.exceptions import DependencyNotFoundError
from ads.services.container import get_container
from ads.web.responses import ok
from ads.web.session import request_dispatcher

deps_bp = Blueprint("deps", __name__, url_prefix="/api/deps")


@deps_bp.route("", methods=["GET"])
def api_deps_list():
    store = get_container().store
    deps = sorted(store.all(), key=lambda d: d.name)
    return ok({"dependencies": [d.to_record() for d in deps]})


@deps_bp.route("/<path:name>/allowed-versions", methods=["GET"])
def api_allowed_versions(name: str):
    versions = request_dispatcher().dispatch("allowed-versions", {"name": name})
    return ok({"name": name, "versions": versions})


@deps_bp.route("/<path:name>", methods=["GET"])
def api_dep_get(name: str):
    dep = get_container().store.get(name)
    if dep is None:
        raise DependencyNotFoundError(name)
    return ok(dep.to_record())
