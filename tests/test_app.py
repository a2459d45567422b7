"""Tests de los endpoints de sistema, headers y forma de los errores."""

from sqlalchemy.exc import OperationalError

from app.services import proyecto_service
from helpers import auth_headers


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "Operacional"
    assert client.get("/api/health").json()["status"] == "healthy"


def test_database_health(client):
    body = client.get("/health/db").json()

    assert body["status"] == "healthy"
    assert body["database"] == "connected"


def test_unknown_route(client):
    response = client.get("/api/no-existe")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Ruta no encontrada"}


def test_security_headers(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "X-Process-Time" in response.headers


def test_invalid_path_param(client, admin):
    response = client.get("/api/projects/abc", headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "path.proyecto_id"


def test_database_error_hides_detail(client, admin, monkeypatch):
    def fallar(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("conexión perdida"))

    monkeypatch.setattr(proyecto_service, "listar_proyectos", fallar)

    response = client.get("/api/projects", headers=auth_headers(admin))

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Error interno del servidor"}
