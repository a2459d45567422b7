"""
Configuración de la base de datos con SQLAlchemy.
Un único engine con pool de conexiones; cada request obtiene su propia sesión
a través de la dependency get_db y la libera al terminar.
Incluye reintentos con backoff exponencial solo para el arranque.
"""

import logging
import time
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.exc import OperationalError, DBAPIError
from sqlalchemy.pool import StaticPool
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log
)

from .config import settings, check_configuration

# Configurar logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

check_configuration()

MAX_RETRY_ATTEMPTS = settings.DB_MAX_RETRY_ATTEMPTS
RETRY_MIN_WAIT = settings.DB_RETRY_MIN_WAIT
RETRY_MAX_WAIT = settings.DB_RETRY_MAX_WAIT


def _sqlite_lower(value):
    return value.lower() if isinstance(value, str) else value


def _configure_sqlite_connection(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # LOWER nativo de SQLite solo convierte ASCII; la búsqueda compara contra str.lower()
    dbapi_connection.create_function("lower", 1, _sqlite_lower, deterministic=True)


def create_db_engine(database_url: str) -> Engine:
    """
    Crea el engine según el motor de la URL.

    PostgreSQL usa el pool configurado externamente; SQLite (tests y
    desarrollo local) comparte una única conexión cuando es en memoria.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        sqlite_engine = create_engine(database_url, **kwargs)
        event.listen(sqlite_engine, "connect", _configure_sqlite_connection)
        return sqlite_engine

    return create_engine(
        database_url,
        pool_pre_ping=True,      # Verificar conexión antes de usar
        pool_recycle=300,        # Reciclar conexiones cada 5 minutos
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=30,
        echo=False,
        connect_args={
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"
        }
    )


engine = create_db_engine(settings.DATABASE_URL)

# Factory de sesiones, una por request
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base para modelos ORM
Base = declarative_base()


@retry(
    stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
    wait=wait_exponential(min=RETRY_MIN_WAIT, max=RETRY_MAX_WAIT),
    retry=retry_if_exception_type((OperationalError, DBAPIError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    after=after_log(logger, logging.INFO)
)
def test_connection():
    """
    Verifica la conexión a la base de datos con reintentos automáticos.

    Raises:
        OperationalError: Si no se puede conectar después de todos los reintentos
    """
    logger.info("🔄 Intentando conectar a la base de datos...")
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1")).fetchone()
            logger.info("✅ Conexión a la base de datos establecida exitosamente")
            return True
    except (OperationalError, DBAPIError) as e:
        logger.error(f"❌ Error al conectar a la base de datos: {str(e)}")
        raise


@retry(
    stop=stop_after_attempt(MAX_RETRY_ATTEMPTS),
    wait=wait_exponential(min=RETRY_MIN_WAIT, max=RETRY_MAX_WAIT),
    retry=retry_if_exception_type((OperationalError, DBAPIError)),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    after=after_log(logger, logging.INFO)
)
def create_tables():
    """
    Crear todas las tablas definidas en los modelos con reintentos automáticos.
    Se ejecuta al inicio de la aplicación.
    """
    # Registrar los modelos en Base.metadata
    import app.models  # noqa: F401

    logger.info("📋 Creando/verificando tablas en la base de datos...")
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Tablas creadas/verificadas correctamente")
    except (OperationalError, DBAPIError) as e:
        logger.error(f"❌ Error al crear tablas: {str(e)}")
        raise


def get_db():
    """
    Generador de sesiones de base de datos.
    Cada request adquiere su sesión y la devuelve al pool al terminar.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_health():
    """
    Verifica el estado de salud de la conexión a la base de datos.

    Returns:
        dict: Estado de la conexión con detalles
    """
    try:
        with engine.connect() as connection:
            start_time = time.time()
            connection.execute(text("SELECT 1"))
            response_time = (time.time() - start_time) * 1000  # ms

            health = {
                "status": "healthy",
                "database": "connected",
                "response_time_ms": round(response_time, 2),
            }
            pool = engine.pool
            if hasattr(pool, "checkedout"):
                health.update({
                    "pool_size": pool.size(),
                    "pool_checked_in": pool.checkedin(),
                    "pool_checked_out": pool.checkedout(),
                    "pool_overflow": pool.overflow()
                })
            return health
    except (OperationalError, DBAPIError) as e:
        logger.error(f"❌ Health check falló: {str(e)}")
        return {
            "status": "unhealthy",
            "database": "disconnected"
        }
