"""
Router de Autenticación - registro, login y verificación de tokens.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.config import get_db
from app.exceptions import AuthenticationError, ConflictError
from app.middlewares.gatekeeper import get_current_user
from app.models import Usuario
from app.schemas import RegisterRequest, LoginRequest, UserInfo, ErrorResponse
from app.services.auth_service import (
    PasswordService,
    TokenService,
    authenticate_credentials,
    build_token_claims,
    get_password_service,
    get_token_service
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Autenticación"],
    responses={401: {"model": ErrorResponse}},
)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    datos: RegisterRequest,
    db: Session = Depends(get_db),
    password_service: PasswordService = Depends(get_password_service)
):
    """
    Registrar un nuevo usuario.

    - **nombre**: Nombre del usuario (mínimo 2 caracteres)
    - **email**: Email único
    - **password**: Contraseña (mínimo 6 caracteres), se guarda solo su hash bcrypt
    - **rol**: admin, project_manager, supervisor u operario (default: operario)
    """
    existente = db.query(Usuario.id).filter(Usuario.email == datos.email).first()
    if existente:
        raise ConflictError("El email ya está registrado")

    usuario = Usuario(
        nombre=datos.nombre,
        email=datos.email,
        password=password_service.hash_password(datos.password),
        rol=datos.rol
    )

    try:
        db.add(usuario)
        db.commit()
        db.refresh(usuario)
    except IntegrityError:
        db.rollback()
        raise ConflictError("El email ya está registrado")

    logger.info(f"Usuario registrado: id={usuario.id} rol={usuario.rol}")
    return {
        "success": True,
        "message": "Usuario registrado exitosamente",
        "user": UserInfo.model_validate(usuario).model_dump()
    }


@router.post("/login")
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    """
    Login con email y contraseña.

    Devuelve un token JWT válido por 24 horas que debe enviarse como
    `Authorization: Bearer <token>`.
    """
    usuario = authenticate_credentials(db, credentials.email, credentials.password)
    if not usuario:
        logger.warning(f"Login fallido para {credentials.email}")
        raise AuthenticationError("Credenciales inválidas")

    token = token_service.create_access_token(build_token_claims(usuario))

    return {
        "success": True,
        "message": "Login exitoso",
        "token": token,
        "user": UserInfo.model_validate(usuario).model_dump()
    }


@router.get("/profile")
def profile(current_user: dict = Depends(get_current_user)):
    """Perfil del usuario autenticado."""
    return {"success": True, "user": current_user}


@router.get("/verify")
def verify(current_user: dict = Depends(get_current_user)):
    """Verificar que el token sigue siendo válido."""
    return {"success": True, "message": "Token válido", "user": current_user}
