"""
Capa de middlewares - Manejo de requests y seguridad
"""
from .gatekeeper import (
    GatekeeperMiddleware,
    gatekeeper_middleware_instance,
    gatekeeper_middleware,
    get_current_user,
    require_permission,
    security
)
from .policy import PermissionChecker, POLICY
from .error_handlers import register_exception_handlers

__all__ = [
    "GatekeeperMiddleware",
    "PermissionChecker",
    "POLICY",
    "gatekeeper_middleware_instance",
    "gatekeeper_middleware",
    "get_current_user",
    "require_permission",
    "register_exception_handlers",
    "security"
]
