"""
Aplicación principal FastAPI - Gestor de Proyectos de Construcción
Arquitectura modular por capas: gatekeeper, política de permisos, servicios
con SQL parametrizado y una sesión de base de datos por request.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

# Configuración centralizada (External Configuration Store Pattern)
from app.config import settings, create_tables, test_connection, check_db_health
from app.middlewares.gatekeeper import gatekeeper_middleware
from app.middlewares.error_handlers import register_exception_handlers
from app.routers import auth, proyectos, seguimiento

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Ciclo de vida de la aplicación: verifica la conexión y crea las tablas
    con reintentos automáticos antes de aceptar requests.
    """
    logger.info(f"🚀 Iniciando {settings.APP_NAME}...")
    try:
        test_connection()
        create_tables()
        logger.info("✅ Base de datos conectada y lista")
    except Exception:
        logger.exception("❌ La aplicación no pudo conectar a la base de datos después de múltiples reintentos")
        raise

    yield

    logger.info(f"🛑 {settings.APP_NAME} detenida")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## API REST para gestión de proyectos de construcción

    ### Proyectos
    - CRUD con soft delete y búsqueda paginada
    - Asignación de usuarios con rol de proyecto
    - Datos adicionales libres (documento JSON con merge superficial)
    - Estadísticas por estado y presupuesto

    ### Seguimiento
    - Tablero de tramos y metas por proyecto

    ### Seguridad
    - **Gatekeeper**: headers de seguridad y registro de cada request
    - Tokens JWT y contraseñas bcrypt
    - Tabla única de permisos por rol y propiedad del proyecto
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(BaseHTTPMiddleware, dispatch=gatekeeper_middleware)

register_exception_handlers(app)

app.include_router(auth.router, prefix="/api")
app.include_router(proyectos.router, prefix="/api")
app.include_router(seguimiento.router, prefix="/api")


@app.get("/", tags=["Sistema"])
def root():
    """Endpoint raíz para verificar que la API está funcionando."""
    return {
        "success": True,
        "message": settings.APP_NAME,
        "status": "Operacional",
        "version": settings.APP_VERSION,
        "docs": "/docs"
    }


@app.get("/api/health", tags=["Sistema"])
def health_check():
    """Health check para monitoreo de contenedores."""
    return {
        "success": True,
        "status": "healthy",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health/db", tags=["Sistema"])
def database_health():
    """Estado de la conexión y del pool de la base de datos."""
    return check_db_health()


if __name__ == "__main__":
    logger.info(f"Iniciando servidor en {settings.API_HOST}:{settings.API_PORT} ({settings.ENVIRONMENT})")

    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )
