"""
Router de Seguimiento - tablero de avance de obra por proyecto.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import get_db
from app.middlewares.gatekeeper import get_current_user
from app.middlewares.policy import PermissionChecker
from app.schemas import ErrorResponse
from app.services import proyecto_service, seguimiento_service

router = APIRouter(
    prefix="/seguimiento",
    tags=["Seguimiento"],
    responses={404: {"model": ErrorResponse}},
)


@router.get("/test")
def test_seguimiento():
    """Verifica que el módulo de seguimiento responde (sin autenticación)."""
    return {"success": True, "message": "Módulo de seguimiento operativo"}


@router.get("/{project_id}/dashboard")
def dashboard(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Resumen de tramos y metas del proyecto.

    - **resumen_general**: tubos y metros requeridos por los tramos activos
    - **metas**: metas de avance ordenadas por porcentaje
    """
    proyecto = proyecto_service.get_proyecto_or_404(db, project_id)
    PermissionChecker.authorize(current_user, "seguimiento:read", proyecto, db)

    return {"success": True, "dashboard": seguimiento_service.dashboard_proyecto(db, project_id)}
