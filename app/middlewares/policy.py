"""
Política de autorización basada en roles y propiedad del proyecto.

Todas las reglas viven en la tabla POLICY (acción -> regla). Las reglas de
rol son funciones puras; las de visibilidad pueden consultar la tabla de
asignaciones (una consulta de existencia) cuando el rol no alcanza.
"""

import logging
from typing import Any, Callable, NamedTuple, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from app.exceptions import AuthorizationError
from app.services.query_builder import FilterBuilder

logger = logging.getLogger(__name__)

ADMIN = "admin"
PROJECT_MANAGER = "project_manager"

# Condición de visibilidad para consultas sobre proyectos con alias `p`
VISIBILITY_PREDICATE = (
    "(p.manager_id = {0} OR EXISTS ("
    "SELECT 1 FROM proyecto_usuarios pu "
    "WHERE pu.proyecto_id = p.id AND pu.user_id = {0}))"
)


def _get(resource: Any, key: str) -> Any:
    if resource is None:
        return None
    if isinstance(resource, dict):
        return resource.get(key)
    return getattr(resource, key, None)


def is_admin(user: dict, proyecto: Any = None, db: Optional[Session] = None) -> bool:
    return user.get("rol") == ADMIN


def is_admin_or_manager(user: dict, proyecto: Any = None, db: Optional[Session] = None) -> bool:
    return user.get("rol") in (ADMIN, PROJECT_MANAGER)


def is_owner(user: dict, proyecto: Any) -> bool:
    return proyecto is not None and _get(proyecto, "manager_id") == user.get("id")


def is_admin_or_owner(user: dict, proyecto: Any = None, db: Optional[Session] = None) -> bool:
    return is_admin(user) or is_owner(user, proyecto)


def is_assigned(db: Session, proyecto_id: int, user_id: int) -> bool:
    row = db.execute(
        text("SELECT 1 FROM proyecto_usuarios WHERE proyecto_id = :p1 AND user_id = :p2"),
        {"p1": proyecto_id, "p2": user_id}
    ).first()
    return row is not None


def can_view(user: dict, proyecto: Any = None, db: Optional[Session] = None) -> bool:
    """Admin y manager del proyecto pasan siempre; el resto debe estar asignado."""
    if proyecto is None:
        return False
    if is_admin_or_owner(user, proyecto):
        return True
    if db is None:
        return False
    return is_assigned(db, _get(proyecto, "id"), user.get("id"))


def can_edit_datos(user: dict, proyecto: Any = None, db: Optional[Session] = None) -> bool:
    """Admin siempre; un project_manager solo sobre proyectos que puede ver."""
    if is_admin(user):
        return True
    return user.get("rol") == PROJECT_MANAGER and can_view(user, proyecto, db)


def any_user(user: dict, proyecto: Any = None, db: Optional[Session] = None) -> bool:
    return True


class Rule(NamedTuple):
    predicate: Callable[..., bool]
    message: str


POLICY: dict[str, Rule] = {
    # Listados y estadísticas filtran por visibilidad en la propia consulta
    "proyectos:list": Rule(any_user, "No tienes permisos para esta acción"),
    "proyectos:stats": Rule(any_user, "No tienes permisos para esta acción"),
    "proyectos:read": Rule(can_view, "No tienes permisos para ver este proyecto"),
    "proyectos:create": Rule(is_admin_or_manager, "No tienes permisos para esta acción"),
    "proyectos:update": Rule(is_admin_or_owner, "No tienes permisos para editar este proyecto"),
    "proyectos:delete": Rule(is_admin, "Solo administradores pueden eliminar proyectos"),
    "proyectos:assign": Rule(is_admin_or_manager, "No tienes permisos para esta acción"),
    "proyectos:datos": Rule(can_edit_datos, "No tienes permisos para modificar este proyecto"),
    "seguimiento:read": Rule(can_view, "No tienes permisos para ver este proyecto"),
}


class PermissionChecker:
    """
    Verificador de permisos sobre la tabla POLICY.
    """

    @classmethod
    def allow(
        cls,
        user: dict,
        action: str,
        proyecto: Any = None,
        db: Optional[Session] = None
    ) -> bool:
        rule = POLICY.get(action)
        if rule is None:
            return False
        return bool(rule.predicate(user, proyecto, db))

    @classmethod
    def authorize(
        cls,
        user: dict,
        action: str,
        proyecto: Any = None,
        db: Optional[Session] = None
    ) -> None:
        """Como allow, pero lanza AuthorizationError con el mensaje de la regla."""
        if cls.allow(user, action, proyecto, db):
            return
        rule = POLICY.get(action)
        logger.info(
            f"Acceso denegado: usuario={user.get('id')} rol={user.get('rol')} accion={action}"
        )
        raise AuthorizationError(rule.message if rule else None)

    @classmethod
    def apply_visibility(cls, builder: FilterBuilder, user: dict) -> FilterBuilder:
        """Empuja la regla de visibilidad al WHERE para usuarios no admin."""
        if is_admin(user):
            return builder
        return builder.filter(VISIBILITY_PREDICATE, user.get("id"))
