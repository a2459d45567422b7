"""
Middleware Gatekeeper y gate de autenticación.

El middleware registra cada request y agrega headers de seguridad a la
respuesta. La autenticación se resuelve por endpoint con get_current_user,
que valida el bearer token contra el store y deja la identidad en
request.state.user.
"""

import logging
import time
from typing import Callable, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import get_db
from app.services.auth_service import authenticate_token
from .policy import PermissionChecker

logger = logging.getLogger(__name__)

# auto_error=False: la falta de token se reporta con nuestro propio formato
security = HTTPBearer(auto_error=False)


class GatekeeperMiddleware:
    """
    Punto de entrada de todas las solicitudes: mide el tiempo de proceso y
    agrega headers de seguridad.
    """

    SECURITY_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "1; mode=block",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    }

    async def __call__(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        for header, value in self.SECURITY_HEADERS.items():
            response.headers[header] = value

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({process_time * 1000:.1f} ms)"
        )
        return response


gatekeeper_middleware_instance = GatekeeperMiddleware()


async def gatekeeper_middleware(request: Request, call_next):
    """
    Función middleware compatible con Starlette BaseHTTPMiddleware.
    """
    return await gatekeeper_middleware_instance(request, call_next)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> dict:
    """
    Dependency de autenticación: devuelve {id, nombre, email, rol} del
    usuario activo dueño del token.
    """
    token = credentials.credentials if credentials else None
    user = authenticate_token(db, token)
    request.state.user = user
    return user


def require_permission(action: str) -> Callable:
    """
    Factory de dependency para acciones que solo dependen del rol.

    Usage:
        @router.post("/", dependencies=[Depends(require_permission("proyectos:create"))])
    """
    def permission_checker(current_user: dict = Depends(get_current_user)) -> dict:
        PermissionChecker.authorize(current_user, action)
        return current_user

    return permission_checker
