"""Web API Blueprints"""

from ads.web.routes.commands_bp import commands_bp
from ads.web.routes.deps_bp import deps_bp

__all__ = ["commands_bp", "deps_bp"]
