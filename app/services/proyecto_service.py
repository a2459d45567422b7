"""
Acceso a datos de proyectos.

Todas las consultas dinámicas pasan por FilterBuilder / UpdateBuilder; los
routers deciden autenticación y autorización, este módulo solo arma y
ejecuta SQL y da forma a las filas.
"""

import logging
import math
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.middlewares.policy import PermissionChecker, is_admin
from app.models import Proyecto
from app.schemas import ProyectoCreate, ProyectoUpdate
from .query_builder import (
    SQLStatement,
    FilterBuilder,
    UpdateBuilder,
    like_pattern,
    load_document
)

logger = logging.getLogger(__name__)

CAMPOS_ACTUALIZABLES = tuple(ProyectoUpdate.model_fields)
CAMPOS_DOCUMENTO = ("datos_adicionales",)

LISTADO_SQL = """
    SELECT
        p.*,
        c.nombre AS cliente_nombre,
        u.nombre AS manager_nombre,
        (SELECT COUNT(*) FROM proyecto_usuarios pa WHERE pa.proyecto_id = p.id) AS usuarios_asignados
    FROM proyectos p
    LEFT JOIN clientes c ON p.cliente_id = c.id
    LEFT JOIN users u ON p.manager_id = u.id
"""

CONTEO_SQL = "SELECT COUNT(*) AS total FROM proyectos p"

DETALLE_SQL = """
    SELECT
        p.*,
        c.nombre AS cliente_nombre,
        c.contacto AS cliente_contacto,
        c.telefono AS cliente_telefono,
        c.email AS cliente_email,
        u.nombre AS manager_nombre
    FROM proyectos p
    LEFT JOIN clientes c ON p.cliente_id = c.id
    LEFT JOIN users u ON p.manager_id = u.id
"""

USUARIOS_ASIGNADOS_SQL = """
    SELECT u.id, u.nombre, u.email, u.rol, pu.rol_proyecto
    FROM proyecto_usuarios pu
    JOIN users u ON pu.user_id = u.id
    WHERE pu.proyecto_id = :p1 AND u.activo = TRUE
    ORDER BY u.nombre
"""

ESTADISTICAS_SQL = """
    SELECT
        COUNT(CASE WHEN p.estado = 'en_curso' THEN 1 END) AS proyectos_activos,
        COUNT(CASE WHEN p.estado = 'planificacion' THEN 1 END) AS proyectos_planificacion,
        COUNT(CASE WHEN p.estado = 'pausado' THEN 1 END) AS proyectos_pausados,
        COUNT(CASE WHEN p.estado = 'completado' THEN 1 END) AS proyectos_completados,
        COUNT(CASE WHEN p.estado = 'cancelado' THEN 1 END) AS proyectos_cancelados,
        COUNT(*) AS total_proyectos,
        COALESCE(SUM(p.presupuesto_inicial), 0) AS presupuesto_total,
        COALESCE(SUM(p.presupuesto_actual), 0) AS presupuesto_actual_total
    FROM proyectos p
"""

ASIGNACION_SQL = """
    INSERT INTO proyecto_usuarios (proyecto_id, user_id, rol_proyecto, created_at)
    VALUES (:p1, :p2, :p3, CURRENT_TIMESTAMP)
    ON CONFLICT (proyecto_id, user_id)
    DO UPDATE SET rol_proyecto = excluded.rol_proyecto, created_at = CURRENT_TIMESTAMP
"""

SEARCH_PREDICATE = (
    "(LOWER(p.nombre) LIKE {0} ESCAPE '\\' "
    "OR LOWER(COALESCE(p.descripcion, '')) LIKE {0} ESCAPE '\\' "
    "OR LOWER(COALESCE(p.codigo, '')) LIKE {0} ESCAPE '\\')"
)


def _execute(db: Session, statement: SQLStatement):
    return db.execute(text(statement.sql), statement.bind_params())


def _shape_proyecto(row) -> dict:
    proyecto = dict(row._mapping)
    proyecto["datos_adicionales"] = load_document(proyecto.get("datos_adicionales"))
    if "activo" in proyecto and proyecto["activo"] is not None:
        proyecto["activo"] = bool(proyecto["activo"])
    return proyecto


def _conflict(db: Session, exc: IntegrityError, codigo: Optional[str] = None) -> ConflictError:
    db.rollback()
    logger.warning(f"Violación de restricción en proyectos: {exc.orig}")
    if codigo:
        return ConflictError(f"Ya existe un proyecto con el código '{codigo}'")
    return ConflictError("Error de integridad en la base de datos")

# ===== LECTURA =====

def listar_proyectos(
    db: Session,
    user: dict,
    estado: Optional[str] = None,
    manager_id: Optional[int] = None,
    cliente_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10
) -> dict:
    """
    Lista paginada de proyectos activos visibles para el usuario.
    Los no admin solo ven proyectos que gestionan o a los que están asignados.
    """
    builder = FilterBuilder(LISTADO_SQL, ["p.activo = TRUE"])
    builder.filter("p.estado = {}", estado)
    builder.filter("p.manager_id = {}", manager_id)
    builder.filter("p.cliente_id = {}", cliente_id)
    if search and search.strip():
        builder.filter(SEARCH_PREDICATE, like_pattern(search.strip()))
    PermissionChecker.apply_visibility(builder, user)

    offset = (page - 1) * limit
    rows = _execute(
        db,
        builder.build(tail="ORDER BY p.created_at DESC, p.id DESC", limit=limit, offset=offset)
    ).all()
    total = _execute(db, builder.count(CONTEO_SQL)).scalar_one()

    return {
        "proyectos": [_shape_proyecto(row) for row in rows],
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
            "total_records": total,
            "per_page": limit
        }
    }


def obtener_proyecto(db: Session, proyecto_id: int) -> Optional[dict]:
    builder = FilterBuilder(DETALLE_SQL, ["p.activo = TRUE"])
    builder.filter("p.id = {}", proyecto_id)
    row = _execute(db, builder.build()).first()
    return _shape_proyecto(row) if row else None


def get_proyecto_or_404(db: Session, proyecto_id: int) -> dict:
    proyecto = obtener_proyecto(db, proyecto_id)
    if not proyecto:
        raise NotFoundError("Proyecto no encontrado")
    return proyecto


def obtener_usuarios_asignados(db: Session, proyecto_id: int) -> list[dict]:
    rows = db.execute(text(USUARIOS_ASIGNADOS_SQL), {"p1": proyecto_id}).all()
    return [dict(row._mapping) for row in rows]


def estadisticas(db: Session, user: dict) -> dict:
    builder = FilterBuilder(ESTADISTICAS_SQL, ["p.activo = TRUE"])
    PermissionChecker.apply_visibility(builder, user)
    row = _execute(db, builder.build()).first()
    return dict(row._mapping)

# ===== VALIDACIÓN DE REFERENCIAS =====

def usuario_activo_existe(db: Session, user_id: int) -> bool:
    builder = FilterBuilder("SELECT 1 FROM users", ["activo = TRUE"])
    builder.filter("id = {}", user_id)
    return _execute(db, builder.build()).first() is not None


def cliente_existe(db: Session, cliente_id: int) -> bool:
    builder = FilterBuilder("SELECT 1 FROM clientes")
    builder.filter("id = {}", cliente_id)
    return _execute(db, builder.build()).first() is not None


def validar_referencias(db: Session, campos: dict) -> None:
    """Manager y cliente referenciados deben existir antes de escribir."""
    manager_id = campos.get("manager_id")
    if manager_id is not None and not usuario_activo_existe(db, manager_id):
        raise ValidationError("Manager no encontrado o inactivo")

    cliente_id = campos.get("cliente_id")
    if cliente_id is not None and not cliente_existe(db, cliente_id):
        raise ValidationError("Cliente no encontrado")

# ===== ESCRITURA =====

def crear_proyecto(db: Session, user: dict, data: ProyectoCreate) -> dict:
    """
    Crea un proyecto. Un admin puede elegir el manager (por defecto él mismo);
    cualquier otro creador queda como manager.
    """
    if is_admin(user):
        manager_id = data.manager_id or user["id"]
    else:
        manager_id = user["id"]

    valores = data.model_dump(exclude={"manager_id"})
    validar_referencias(db, {
        "manager_id": manager_id if manager_id != user["id"] else None,
        "cliente_id": valores.get("cliente_id")
    })

    proyecto = Proyecto(
        **valores,
        manager_id=manager_id,
        presupuesto_actual=valores.get("presupuesto_inicial")
    )

    try:
        db.add(proyecto)
        db.commit()
    except IntegrityError as e:
        raise _conflict(db, e, data.codigo)

    logger.info(f"Proyecto creado: id={proyecto.id} manager={manager_id}")
    return get_proyecto_or_404(db, proyecto.id)


def build_update_statement(proyecto_id: int, campos: dict) -> SQLStatement:
    """
    Sentencia UPDATE para los campos enviados. Sin campos lanza
    NothingToUpdateError antes de cualquier acceso al store.
    """
    builder = UpdateBuilder("proyectos", CAMPOS_ACTUALIZABLES, CAMPOS_DOCUMENTO)
    builder.set_fields(campos)
    builder.touch()
    return builder.build("id = {}", proyecto_id)


def ejecutar_actualizacion(
    db: Session,
    proyecto_id: int,
    statement: SQLStatement,
    codigo: Optional[str] = None
) -> dict:
    try:
        _execute(db, statement)
        db.commit()
    except IntegrityError as e:
        raise _conflict(db, e, codigo)
    return get_proyecto_or_404(db, proyecto_id)


def eliminar_proyecto(db: Session, proyecto_id: int) -> None:
    """Soft delete: el proyecto queda con activo = FALSE."""
    builder = UpdateBuilder("proyectos", ("activo",))
    builder.set("activo", False).touch()
    _execute(db, builder.build("id = {}", proyecto_id))
    db.commit()
    logger.info(f"Proyecto desactivado: id={proyecto_id}")


def asignar_usuario(db: Session, proyecto_id: int, user_id: int, rol_proyecto: str) -> dict:
    """
    Asigna un usuario al proyecto. Si ya estaba asignado se actualiza su rol
    (upsert resuelto por la restricción única de la base de datos).
    """
    if not usuario_activo_existe(db, user_id):
        raise NotFoundError("Usuario no encontrado")

    _execute(db, SQLStatement(ASIGNACION_SQL, [proyecto_id, user_id, rol_proyecto]))
    db.commit()
    return {"proyecto_id": proyecto_id, "user_id": user_id, "rol_proyecto": rol_proyecto}


def desasignar_usuario(db: Session, proyecto_id: int, user_id: int) -> None:
    builder = FilterBuilder("DELETE FROM proyecto_usuarios")
    builder.filter("proyecto_id = {}", proyecto_id)
    builder.filter("user_id = {}", user_id)
    result = _execute(db, builder.build())
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("El usuario no está asignado a este proyecto")
    db.commit()


def actualizar_datos_adicionales(db: Session, proyecto_id: int, datos: dict[str, Any]) -> dict:
    """
    Merge superficial de datos_adicionales: las claves enviadas reemplazan a
    las guardadas y el resto se conserva. El merge ocurre en una sola
    sentencia UPDATE, así dos PATCH concurrentes no pierden claves.
    Devuelve el documento resultante.
    """
    builder = UpdateBuilder("proyectos", CAMPOS_DOCUMENTO, CAMPOS_DOCUMENTO)
    builder.merge_document("datos_adicionales", datos, db.get_bind().dialect.name)
    builder.touch()
    _execute(db, builder.build("id = {}", proyecto_id))

    lectura = FilterBuilder("SELECT datos_adicionales FROM proyectos")
    lectura.filter("id = {}", proyecto_id)
    merged = load_document(_execute(db, lectura.build()).scalar_one())
    db.commit()
    return merged
