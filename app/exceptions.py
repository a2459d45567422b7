"""
Errores de aplicación.

Cada error conoce su código HTTP y el mensaje que ve el cliente; los handlers
registrados en main.py los convierten en {success: false, message, errors?}.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base de todos los errores que se devuelven al cliente."""

    status_code: int = 500
    message: str = "Error interno del servidor"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[Any]] = None):
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return None

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = 400
    message = "Datos inválidos"


class NothingToUpdateError(ValidationError):
    message = "No hay datos para actualizar"


class AuthenticationError(AppError):
    status_code = 401
    message = "Token de acceso requerido"

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class TokenExpiredError(AuthenticationError):
    message = "Token expirado"


class TokenInvalidError(AuthenticationError):
    status_code = 403
    message = "Token inválido"


class AuthorizationError(AppError):
    status_code = 403
    message = "No tienes permisos para esta acción"


class NotFoundError(AppError):
    status_code = 404
    message = "Recurso no encontrado"


class ConflictError(AppError):
    status_code = 400
    message = "El registro ya existe"


class InternalError(AppError):
    pass
