"""Helpers para crear datos de prueba directamente en la base."""

from sqlalchemy.orm import Session

from app.models import Proyecto, ProyectoUsuario, Usuario
from app.services.auth_service import build_token_claims, password_service, token_service

DEFAULT_PASSWORD = "secreto123"


def crear_usuario(
    db: Session,
    email: str,
    rol: str = "operario",
    nombre: str = "Usuario Prueba",
    activo: bool = True,
    password: str = DEFAULT_PASSWORD
) -> Usuario:
    usuario = Usuario(
        nombre=nombre,
        email=email,
        password=password_service.hash_password(password),
        rol=rol,
        activo=activo
    )
    db.add(usuario)
    db.commit()
    db.refresh(usuario)
    return usuario


def crear_proyecto(db: Session, manager: Usuario, nombre: str = "Obra Norte", **campos) -> Proyecto:
    proyecto = Proyecto(nombre=nombre, manager_id=manager.id, datos_adicionales={}, **campos)
    db.add(proyecto)
    db.commit()
    db.refresh(proyecto)
    return proyecto


def asignar(db: Session, proyecto: Proyecto, usuario: Usuario, rol_proyecto: str = "operario") -> None:
    db.add(ProyectoUsuario(proyecto_id=proyecto.id, user_id=usuario.id, rol_proyecto=rol_proyecto))
    db.commit()


def token_para(usuario: Usuario) -> str:
    return token_service.create_access_token(build_token_claims(usuario))


def auth_headers(usuario: Usuario) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_para(usuario)}"}
