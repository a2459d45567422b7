"""
Servicio de Autenticación - contraseñas locales con bcrypt y tokens JWT.

El gate de autenticación (app.middlewares.gatekeeper) usa authenticate_token
para resolver un bearer token a la identidad de un usuario activo.
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError
)
from app.models import Usuario

logger = logging.getLogger(__name__)

SECRET_KEY = settings.JWT_SECRET_KEY
ALGORITHM = settings.JWT_ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


class PasswordService:
    """Hash y verificación de contraseñas. El texto plano nunca se guarda."""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        return pwd_context.verify(password, hashed)


class TokenService:
    """
    Servicio para generación y validación de tokens JWT.
    """

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """
        Crea un token JWT de acceso.

        Args:
            data: Datos a incluir en el token (userId, email, rol)
            expires_delta: Tiempo de expiración personalizado

        Returns:
            Token JWT codificado
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

        to_encode.update({
            "exp": expire,
            "iat": now,
            "type": "access"
        })

        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decodifica y valida un token JWT.

        Raises:
            TokenExpiredError: la firma es válida pero el token venció
            TokenInvalidError: firma incorrecta o token mal formado
        """
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            logger.info(f"Token rechazado: {str(e)}")
            raise TokenInvalidError()


def build_token_claims(usuario: Usuario) -> dict:
    return {
        "sub": str(usuario.id),
        "userId": usuario.id,
        "email": usuario.email,
        "rol": usuario.rol,
    }


def usuario_to_identity(usuario: Usuario) -> dict:
    """Identidad que viaja en request.state.user."""
    return {
        "id": usuario.id,
        "nombre": usuario.nombre,
        "email": usuario.email,
        "rol": usuario.rol,
    }


def authenticate_token(db: Session, token: Optional[str]) -> dict:
    """
    Resuelve un bearer token a la identidad de un usuario activo.

    Hace exactamente una consulta al store por llamada, sin caché: un usuario
    desactivado deja de autenticarse en su siguiente request.
    """
    if not token:
        raise AuthenticationError()

    payload = TokenService.decode_token(token)
    user_id = payload.get("userId")
    if not isinstance(user_id, int):
        raise TokenInvalidError()

    usuario = db.query(Usuario).filter(
        Usuario.id == user_id,
        Usuario.activo.is_(True)
    ).first()

    if not usuario:
        logger.warning(f"Token válido para usuario inexistente o inactivo: {user_id}")
        raise AuthenticationError("Usuario no válido")

    return usuario_to_identity(usuario)


def authenticate_credentials(db: Session, email: str, password: str) -> Optional[Usuario]:
    """Devuelve el usuario activo si email y contraseña coinciden."""
    usuario = db.query(Usuario).filter(
        Usuario.email == email,
        Usuario.activo.is_(True)
    ).first()

    if not usuario or not PasswordService.verify_password(password, usuario.password):
        return None
    return usuario


password_service = PasswordService()
token_service = TokenService()


def get_token_service() -> TokenService:
    """Dependency para obtener el servicio de tokens"""
    return token_service


def get_password_service() -> PasswordService:
    """Dependency para obtener el servicio de contraseñas"""
    return password_service
