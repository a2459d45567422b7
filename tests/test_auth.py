"""Tests de contraseñas, tokens y del gate de autenticación."""

from datetime import timedelta

import pytest
from jose import jwt
from sqlalchemy import event

from app.config import engine, settings
from app.exceptions import AuthenticationError, TokenExpiredError, TokenInvalidError
from app.models import Usuario
from app.services.auth_service import (
    authenticate_token,
    build_token_claims,
    password_service,
    token_service,
)
from helpers import DEFAULT_PASSWORD, auth_headers, crear_usuario, token_para


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = password_service.hash_password("clave-segura")

        assert hashed != "clave-segura"
        assert "clave-segura" not in hashed
        assert password_service.verify_password("clave-segura", hashed)
        assert not password_service.verify_password("otra-clave", hashed)

    def test_same_password_hashes_differently(self):
        assert password_service.hash_password("abc123") != password_service.hash_password("abc123")


class TestAuthenticateToken:
    def test_missing_token(self, db):
        with pytest.raises(AuthenticationError) as exc_info:
            authenticate_token(db, None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Token de acceso requerido"

    def test_expired_token_is_distinct_from_invalid(self, db, supervisor):
        expirado = token_service.create_access_token(
            build_token_claims(supervisor), expires_delta=timedelta(seconds=-5)
        )
        with pytest.raises(TokenExpiredError) as exc_info:
            authenticate_token(db, expirado)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Token expirado"

    def test_token_signed_with_other_key_is_invalid(self, db, supervisor):
        falso = jwt.encode(build_token_claims(supervisor), "otra-clave", algorithm=settings.JWT_ALGORITHM)
        with pytest.raises(TokenInvalidError) as exc_info:
            authenticate_token(db, falso)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Token inválido"

    def test_malformed_token_is_invalid(self, db):
        with pytest.raises(TokenInvalidError):
            authenticate_token(db, "esto-no-es-un-jwt")

    def test_inactive_user_is_rejected(self, db):
        inactivo = crear_usuario(db, "baja@obra.com", activo=False)
        with pytest.raises(AuthenticationError) as exc_info:
            authenticate_token(db, token_para(inactivo))
        assert exc_info.value.message == "Usuario no válido"

    def test_returns_identity_with_single_lookup(self, db, supervisor):
        token = token_para(supervisor)
        consultas = []

        def contar(conn, cursor, statement, parameters, context, executemany):
            consultas.append(statement)

        event.listen(engine, "before_cursor_execute", contar)
        try:
            identidad = authenticate_token(db, token)
        finally:
            event.remove(engine, "before_cursor_execute", contar)

        assert len(consultas) == 1
        assert identidad == {
            "id": supervisor.id,
            "nombre": supervisor.nombre,
            "email": supervisor.email,
            "rol": "supervisor",
        }


class TestAuthEndpoints:
    def test_register_stores_hash(self, client, db):
        response = client.post(
            "/api/auth/register",
            json={"nombre": "  Nuevo  ", "email": "nuevo@obra.com", "password": "secreto1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["user"]["nombre"] == "Nuevo"
        assert body["user"]["rol"] == "operario"
        assert "password" not in body["user"]

        guardado = db.query(Usuario).filter(Usuario.email == "nuevo@obra.com").one()
        assert guardado.password != "secreto1"

    def test_register_duplicate_email(self, client, supervisor):
        response = client.post(
            "/api/auth/register",
            json={"nombre": "Copia", "email": supervisor.email, "password": "secreto1"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "El email ya está registrado"}

    def test_register_invalid_payload(self, client):
        response = client.post(
            "/api/auth/register",
            json={"nombre": "X", "email": "no-es-email", "password": "123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Datos inválidos"
        assert {error["field"] for error in body["errors"]} >= {"nombre", "email", "password"}

    def test_login_and_profile(self, client, supervisor):
        login = client.post(
            "/api/auth/login",
            json={"email": supervisor.email, "password": DEFAULT_PASSWORD},
        )

        assert login.status_code == 200
        token = login.json()["token"]

        profile = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert profile.status_code == 200
        assert profile.json()["user"]["id"] == supervisor.id

    def test_login_wrong_password(self, client, supervisor):
        response = client.post(
            "/api/auth/login",
            json={"email": supervisor.email, "password": "incorrecta"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Credenciales inválidas"

    def test_login_inactive_user(self, client, db):
        inactivo = crear_usuario(db, "inactivo@obra.com", activo=False)
        response = client.post(
            "/api/auth/login",
            json={"email": inactivo.email, "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 401

    def test_verify_requires_token(self, client):
        response = client.get("/api/auth/verify")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Token de acceso requerido"}

    def test_verify_with_valid_token(self, client, operario):
        response = client.get("/api/auth/verify", headers=auth_headers(operario))

        assert response.status_code == 200
        assert response.json()["message"] == "Token válido"

    def test_expired_token_over_http(self, client, operario):
        expirado = token_service.create_access_token(
            build_token_claims(operario), expires_delta=timedelta(minutes=-1)
        )
        response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {expirado}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token expirado"

    def test_invalid_token_over_http(self, client):
        response = client.get("/api/auth/verify", headers={"Authorization": "Bearer basura"})

        assert response.status_code == 403
        assert response.json()["message"] == "Token inválido"
