"""
Router para gestión de proyectos de construcción.
CRUD con soft delete, asignación de usuarios y datos adicionales libres.
Servicio sin estado (stateless): cada request se autentica y autoriza por sí mismo.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.config import get_db, settings
from app.middlewares.gatekeeper import get_current_user, require_permission
from app.middlewares.policy import PermissionChecker
from app.schemas import (
    ProyectoCreate,
    ProyectoUpdate,
    AsignarUsuarioProyecto,
    DatosAdicionalesUpdate,
    EstadoProyecto,
    ErrorResponse
)
from app.services import proyecto_service

router = APIRouter(
    prefix="/projects",
    tags=["Proyectos"],
    responses={404: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)

# (page - 1) * limit debe entrar en un BIGINT
MAX_PAGE = (2 ** 63 - 1) // settings.MAX_PAGE_SIZE


@router.get("")
@router.get("/", include_in_schema=False)
def listar_proyectos(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    estado: Optional[EstadoProyecto] = None,
    manager_id: Optional[int] = Query(None, gt=0),
    cliente_id: Optional[int] = Query(None, gt=0),
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_permission("proyectos:list"))
):
    """
    Listar proyectos activos con filtros y paginación.

    - **estado**: Filtrar por estado del proyecto
    - **manager_id** / **cliente_id**: Filtrar por responsable o cliente
    - **search**: Texto contenido en nombre, descripción o código
    - **page** / **limit**: Paginación (limit máximo configurable)

    Los usuarios que no son admin solo ven los proyectos que gestionan o a
    los que están asignados.
    """
    resultado = proyecto_service.listar_proyectos(
        db,
        current_user,
        estado=estado,
        manager_id=manager_id,
        cliente_id=cliente_id,
        search=search,
        page=page,
        limit=limit
    )
    return {"success": True, **resultado}


# Debe declararse antes de /{proyecto_id}
@router.get("/stats/dashboard")
def estadisticas_dashboard(
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_permission("proyectos:stats"))
):
    """Conteo por estado y totales de presupuesto de los proyectos visibles."""
    return {"success": True, "stats": proyecto_service.estadisticas(db, current_user)}


@router.get("/{proyecto_id}")
def obtener_proyecto(
    proyecto_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Detalle de un proyecto con datos del cliente, del manager y la lista de
    usuarios asignados.
    """
    proyecto = proyecto_service.get_proyecto_or_404(db, proyecto_id)
    PermissionChecker.authorize(current_user, "proyectos:read", proyecto, db)

    proyecto["usuarios_asignados"] = proyecto_service.obtener_usuarios_asignados(db, proyecto_id)
    return {"success": True, "proyecto": proyecto}


@router.post("", status_code=status.HTTP_201_CREATED)
@router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
def crear_proyecto(
    datos: ProyectoCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_permission("proyectos:create"))
):
    """
    Crear un nuevo proyecto (admin o project_manager).

    - **nombre**: Nombre del proyecto (obligatorio)
    - **codigo**: Código corto único (opcional)
    - **presupuesto_inicial**: También se usa como presupuesto actual inicial
    - **manager_id**: Solo un admin puede asignar otro manager
    """
    proyecto = proyecto_service.crear_proyecto(db, current_user, datos)
    return {
        "success": True,
        "message": "Proyecto creado exitosamente",
        "proyecto": proyecto
    }


@router.put("/{proyecto_id}")
def actualizar_proyecto(
    proyecto_id: int,
    datos: ProyectoUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Actualizar un proyecto (admin o manager del proyecto).
    Solo se modifican los campos enviados; un cuerpo vacío se rechaza.
    """
    campos = datos.campos_enviados()
    statement = proyecto_service.build_update_statement(proyecto_id, campos)

    proyecto = proyecto_service.get_proyecto_or_404(db, proyecto_id)
    PermissionChecker.authorize(current_user, "proyectos:update", proyecto, db)
    proyecto_service.validar_referencias(db, campos)

    actualizado = proyecto_service.ejecutar_actualizacion(
        db, proyecto_id, statement, campos.get("codigo")
    )
    return {
        "success": True,
        "message": "Proyecto actualizado exitosamente",
        "proyecto": actualizado
    }


@router.delete("/{proyecto_id}")
def eliminar_proyecto(
    proyecto_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_permission("proyectos:delete"))
):
    """Desactivar un proyecto (solo admin). El registro se conserva."""
    proyecto_service.get_proyecto_or_404(db, proyecto_id)
    proyecto_service.eliminar_proyecto(db, proyecto_id)
    return {"success": True, "message": "Proyecto eliminado exitosamente"}


@router.post("/{proyecto_id}/usuarios")
def asignar_usuario(
    proyecto_id: int,
    asignacion: AsignarUsuarioProyecto,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_permission("proyectos:assign"))
):
    """
    Asignar un usuario al proyecto con un rol de proyecto.
    Si el usuario ya estaba asignado se actualiza su rol.
    """
    proyecto_service.get_proyecto_or_404(db, proyecto_id)
    resultado = proyecto_service.asignar_usuario(
        db, proyecto_id, asignacion.user_id, asignacion.rol_proyecto
    )
    return {
        "success": True,
        "message": "Usuario asignado al proyecto exitosamente",
        "data": resultado
    }


@router.delete("/{proyecto_id}/usuarios/{user_id}")
def desasignar_usuario(
    proyecto_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_permission("proyectos:assign"))
):
    """Quitar la asignación de un usuario al proyecto."""
    proyecto_service.get_proyecto_or_404(db, proyecto_id)
    proyecto_service.desasignar_usuario(db, proyecto_id, user_id)
    return {"success": True, "message": "Usuario desasignado del proyecto exitosamente"}


@router.patch("/{proyecto_id}/datos-adicionales")
def actualizar_datos_adicionales(
    proyecto_id: int,
    body: DatosAdicionalesUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Combinar claves en los datos adicionales del proyecto (admin, o
    project_manager que gestiona el proyecto o está asignado a él).
    Las claves enviadas reemplazan a las existentes; el resto se conserva.
    """
    proyecto = proyecto_service.get_proyecto_or_404(db, proyecto_id)
    PermissionChecker.authorize(current_user, "proyectos:datos", proyecto, db)
    datos = proyecto_service.actualizar_datos_adicionales(db, proyecto_id, body.datos)
    return {
        "success": True,
        "message": "Datos adicionales actualizados exitosamente",
        "datos_adicionales": datos
    }
