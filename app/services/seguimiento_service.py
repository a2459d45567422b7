"""
Consultas de reporte para el seguimiento de obra (solo lectura).
"""

from sqlalchemy import text
from sqlalchemy.orm import Session

from .query_builder import FilterBuilder

RESUMEN_SQL = """
    SELECT
        COALESCE(SUM(tubos_requeridos), 0) AS tubos_totales_requeridos,
        COALESCE(SUM(longitud_total), 0) AS metros_totales_requeridos
    FROM tramos_proyecto
"""

METAS_SQL = """
    SELECT id, proyecto_id, descripcion, porcentaje_meta, fecha_objetivo
    FROM metas_proyecto
"""

# Todavía no se registra avance instalado
AVANCE_INSTALADO_VACIO = {
    "tubos_instalados_total": 0,
    "metros_instalados_total": 0,
    "porcentaje_avance_total": 0
}


def dashboard_proyecto(db: Session, proyecto_id: int) -> dict:
    resumen_stmt = (
        FilterBuilder(RESUMEN_SQL, ["activo = TRUE"])
        .filter("proyecto_id = {}", proyecto_id)
        .build()
    )
    resumen = db.execute(text(resumen_stmt.sql), resumen_stmt.bind_params()).first()

    metas_stmt = FilterBuilder(METAS_SQL).filter("proyecto_id = {}", proyecto_id).build(
        tail="ORDER BY porcentaje_meta"
    )
    metas = db.execute(text(metas_stmt.sql), metas_stmt.bind_params()).all()

    return {
        "resumen_general": {**dict(resumen._mapping), **AVANCE_INSTALADO_VACIO},
        "metas": [dict(meta._mapping) for meta in metas]
    }
