"""Route blueprints exposed via Flask."""

from .api import api_bp
from .auth import auth_bp
from .health import health_bp

__all__ = [
    "api_bp",
    "auth_bp",
    "health_bp",
]
