"""Fixtures compartidas: base SQLite en memoria, cliente HTTP y usuarios por rol.

Las variables de entorno se fijan antes de importar la aplicación para que
el engine global apunte a SQLite y bcrypt use pocas rondas.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_LEVEL"] = "warning"
os.environ.setdefault("JWT_SECRET_KEY", "clave-de-pruebas-con-longitud-suficiente-1234")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import app.models  # noqa: F401
from app.config import Base, SessionLocal, engine
from app.models import Cliente, Usuario
from helpers import crear_usuario
from main import app as fastapi_app


@pytest.fixture(autouse=True)
def database() -> Generator[None, None, None]:
    """Esquema limpio para cada test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client() -> TestClient:
    # Sin context manager: el lifespan (reintentos de conexión) no se ejecuta
    return TestClient(fastapi_app, raise_server_exceptions=False)


# --- Usuarios por rol ---


@pytest.fixture
def admin(db: Session) -> Usuario:
    return crear_usuario(db, "admin@obra.com", rol="admin", nombre="Ana Admin")


@pytest.fixture
def manager(db: Session) -> Usuario:
    return crear_usuario(db, "manager@obra.com", rol="project_manager", nombre="Mario Manager")


@pytest.fixture
def otro_manager(db: Session) -> Usuario:
    return crear_usuario(db, "otro.manager@obra.com", rol="project_manager", nombre="Olga Manager")


@pytest.fixture
def supervisor(db: Session) -> Usuario:
    return crear_usuario(db, "supervisor@obra.com", rol="supervisor", nombre="Sara Supervisor")


@pytest.fixture
def operario(db: Session) -> Usuario:
    return crear_usuario(db, "operario@obra.com", rol="operario", nombre="Oscar Operario")


@pytest.fixture
def cliente(db: Session) -> Cliente:
    registro = Cliente(nombre="Constructora Sur", contacto="Laura", telefono="555-0101")
    db.add(registro)
    db.commit()
    db.refresh(registro)
    return registro
