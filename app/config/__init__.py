"""
Módulo de configuración - External Configuration Store Pattern
"""
from .config import settings, check_configuration
from .database import (
    engine,
    SessionLocal,
    Base,
    create_db_engine,
    get_db,
    create_tables,
    test_connection,
    check_db_health
)

__all__ = [
    "settings",
    "check_configuration",
    "engine",
    "SessionLocal",
    "Base",
    "create_db_engine",
    "get_db",
    "create_tables",
    "test_connection",
    "check_db_health"
]
