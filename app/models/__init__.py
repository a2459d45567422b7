"""
Modelos SQLAlchemy para la aplicación
"""
from .models import (
    Usuario,
    Cliente,
    Proyecto,
    ProyectoUsuario,
    TramoProyecto,
    MetaProyecto,
    ROLES_USUARIO,
    ROLES_PROYECTO,
    ESTADOS_PROYECTO
)

__all__ = [
    "Usuario",
    "Cliente",
    "Proyecto",
    "ProyectoUsuario",
    "TramoProyecto",
    "MetaProyecto",
    "ROLES_USUARIO",
    "ROLES_PROYECTO",
    "ESTADOS_PROYECTO"
]
