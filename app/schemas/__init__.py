"""
Schemas Pydantic para validación de datos
"""
from .schemas import (
    # Tipos
    RolUsuario,
    RolProyecto,
    EstadoProyecto,

    # Autenticación
    RegisterRequest,
    LoginRequest,
    UserInfo,

    # Proyectos
    ProyectoCreate,
    ProyectoUpdate,
    AsignarUsuarioProyecto,
    DatosAdicionalesUpdate,
    CAMPOS_NO_NULOS,

    # Respuestas genéricas
    ErrorResponse
)

__all__ = [
    "RolUsuario",
    "RolProyecto",
    "EstadoProyecto",
    "RegisterRequest",
    "LoginRequest",
    "UserInfo",
    "ProyectoCreate",
    "ProyectoUpdate",
    "AsignarUsuarioProyecto",
    "DatosAdicionalesUpdate",
    "CAMPOS_NO_NULOS",
    "ErrorResponse"
]
