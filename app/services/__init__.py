"""
Capa de servicios - Lógica de negocio y acceso a datos
"""
from .query_builder import (
    SQLStatement,
    FilterBuilder,
    UpdateBuilder,
    load_document,
    serialize_document,
    like_pattern
)

from .auth_service import (
    PasswordService,
    TokenService,
    password_service,
    token_service,
    authenticate_token,
    authenticate_credentials,
    get_password_service,
    get_token_service
)

__all__ = [
    # Query builder
    "SQLStatement",
    "FilterBuilder",
    "UpdateBuilder",
    "load_document",
    "serialize_document",
    "like_pattern",

    # Auth
    "PasswordService",
    "TokenService",
    "password_service",
    "token_service",
    "authenticate_token",
    "authenticate_credentials",
    "get_password_service",
    "get_token_service"
]
