"""
Módulo de Configuración - External Configuration Store Pattern
Centraliza la gestión de variables de configuración externas.
Permite modificar parámetros sin recompilar ni redeployar la aplicación.
"""

import logging
import os
from dotenv import load_dotenv

# Cargar variables de entorno desde archivo .env si existe
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class Settings:
    """
    Clase de configuración que centraliza todas las variables de entorno.
    Separa la configuración del código fuente.
    """

    # =========================================
    # INFORMACIÓN DE LA APLICACIÓN
    # =========================================
    APP_NAME: str = "Gestor de Proyectos de Construcción API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # =========================================
    # CONFIGURACIÓN DEL SERVIDOR
    # =========================================
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8080"))
    API_RELOAD: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")

    # =========================================
    # BASE DE DATOS POSTGRESQL
    # =========================================
    POSTGRES_USER: str = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "password")
    POSTGRES_DB: str = os.getenv("POSTGRES_DB", "gestor_obras")
    POSTGRES_HOST: str = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: str = os.getenv("POSTGRES_PORT", "5432")

    # URL completa de conexión
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
    )

    # Pool de conexiones
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))

    # Reintentos al arrancar (solo conexión inicial y creación de tablas)
    DB_MAX_RETRY_ATTEMPTS: int = int(os.getenv("DB_MAX_RETRY_ATTEMPTS", "5"))
    DB_RETRY_MIN_WAIT: int = int(os.getenv("DB_RETRY_MIN_WAIT", "1"))
    DB_RETRY_MAX_WAIT: int = int(os.getenv("DB_RETRY_MAX_WAIT", "10"))

    # =========================================
    # JWT Y CONTRASEÑAS
    # =========================================
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = "HS256"
    # Los tokens expiran a las 24 horas de su emisión
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

    # =========================================
    # PAGINACIÓN
    # =========================================
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))

    # =========================================
    # CORS
    # =========================================
    CORS_ORIGINS: list = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")

    @classmethod
    def is_development(cls) -> bool:
        """Verifica si estamos en entorno de desarrollo"""
        return cls.ENVIRONMENT.lower() in ["development", "dev"]

    @classmethod
    def is_production(cls) -> bool:
        """Verifica si estamos en entorno de producción"""
        return cls.ENVIRONMENT.lower() in ["production", "prod"]

    @classmethod
    def validate_config(cls) -> list[str]:
        """
        Valida la configuración y retorna una lista de advertencias.
        """
        warnings = []

        if cls.is_production() and cls.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
            warnings.append(
                "CRÍTICO: JWT_SECRET_KEY está usando el valor por defecto en producción"
            )

        if cls.is_production() and cls.POSTGRES_PASSWORD == "password":
            warnings.append(
                "ADVERTENCIA: Contraseña de base de datos débil en producción"
            )

        if cls.is_production() and cls.API_RELOAD:
            warnings.append(
                "ADVERTENCIA: API_RELOAD está activado en producción"
            )

        if cls.DEFAULT_PAGE_SIZE > cls.MAX_PAGE_SIZE:
            warnings.append(
                "ADVERTENCIA: DEFAULT_PAGE_SIZE es mayor que MAX_PAGE_SIZE"
            )

        return warnings

    @classmethod
    def get_config_summary(cls) -> dict:
        """
        Retorna un resumen de la configuración actual (sin datos sensibles).
        """
        return {
            "app_name": cls.APP_NAME,
            "version": cls.APP_VERSION,
            "environment": cls.ENVIRONMENT,
            "api_host": cls.API_HOST,
            "api_port": cls.API_PORT,
            "database_host": cls.POSTGRES_HOST,
            "database_name": cls.POSTGRES_DB,
            "db_pool_size": cls.DB_POOL_SIZE,
            "token_expire_minutes": cls.ACCESS_TOKEN_EXPIRE_MINUTES,
            "default_page_size": cls.DEFAULT_PAGE_SIZE,
            "max_page_size": cls.MAX_PAGE_SIZE,
            "reload_enabled": cls.API_RELOAD,
            "log_level": cls.LOG_LEVEL
        }


# Instancia global de configuración
settings = Settings()


def check_configuration():
    """
    Verifica la configuración al iniciar la aplicación.
    Registra advertencias si hay problemas de configuración.
    """
    for warning in settings.validate_config():
        logger.warning("⚠️  %s", warning)

    if settings.is_development():
        for key, value in settings.get_config_summary().items():
            logger.debug("  %s: %s", key, value)
