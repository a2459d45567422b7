"""
Modelos SQLAlchemy para usuarios, clientes, proyectos y seguimiento de obra.
Los usuarios y proyectos no se eliminan físicamente: se marcan con activo = False.
"""

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Boolean, Numeric, JSON,
    ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.config.database import Base

ROLES_USUARIO = ("admin", "project_manager", "supervisor", "operario")
ROLES_PROYECTO = ("supervisor", "operario")
ESTADOS_PROYECTO = ("planificacion", "en_curso", "pausado", "completado", "cancelado")


class Usuario(Base):
    """Usuario del sistema con rol global."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    rol = Column(String(50), nullable=False, default="operario")
    activo = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    proyectos_gestionados = relationship("Proyecto", back_populates="manager")
    asignaciones = relationship("ProyectoUsuario", back_populates="usuario")

    def __repr__(self):
        return f"<Usuario(id={self.id}, email='{self.email}', rol='{self.rol}')>"


class Cliente(Base):
    """Cliente referenciado por los proyectos."""
    __tablename__ = "clientes"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(200), nullable=False)
    contacto = Column(String(150))
    telefono = Column(String(50))
    email = Column(String(255))
    activo = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    proyectos = relationship("Proyecto", back_populates="cliente")

    def __repr__(self):
        return f"<Cliente(id={self.id}, nombre='{self.nombre}')>"


class Proyecto(Base):
    """
    Proyecto de obra. Exactamente un manager (manager_id) es su responsable.
    """
    __tablename__ = "proyectos"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(200), nullable=False, index=True)
    codigo = Column(String(50), unique=True, nullable=True)
    descripcion = Column(Text)
    cliente_id = Column(Integer, ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True)
    ubicacion = Column(String(255))
    fecha_inicio = Column(Date)
    fecha_fin_estimada = Column(Date)
    fecha_fin_real = Column(Date)
    presupuesto_inicial = Column(Numeric(14, 2))
    presupuesto_actual = Column(Numeric(14, 2))
    estado = Column(String(30), nullable=False, default="planificacion")
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    datos_adicionales = Column(JSON, nullable=False, default=dict)
    activo = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    cliente = relationship("Cliente", back_populates="proyectos")
    manager = relationship("Usuario", back_populates="proyectos_gestionados")
    asignaciones = relationship("ProyectoUsuario", back_populates="proyecto", cascade="all, delete-orphan")
    tramos = relationship("TramoProyecto", back_populates="proyecto", cascade="all, delete-orphan")
    metas = relationship("MetaProyecto", back_populates="proyecto", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Proyecto(id={self.id}, nombre='{self.nombre}', estado='{self.estado}')>"


class ProyectoUsuario(Base):
    """Asignación de un usuario a un proyecto con un rol dentro del proyecto."""
    __tablename__ = "proyecto_usuarios"
    __table_args__ = (
        UniqueConstraint("proyecto_id", "user_id", name="uq_proyecto_usuario"),
    )

    id = Column(Integer, primary_key=True, index=True)
    proyecto_id = Column(Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rol_proyecto = Column(String(30), nullable=False, default="operario")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    proyecto = relationship("Proyecto", back_populates="asignaciones")
    usuario = relationship("Usuario", back_populates="asignaciones")

    def __repr__(self):
        return f"<ProyectoUsuario(proyecto_id={self.proyecto_id}, user_id={self.user_id})>"


class TramoProyecto(Base):
    """Tramo de tubería a instalar dentro de un proyecto."""
    __tablename__ = "tramos_proyecto"

    id = Column(Integer, primary_key=True, index=True)
    proyecto_id = Column(Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), nullable=False, index=True)
    nombre = Column(String(150))
    tubos_requeridos = Column(Integer, nullable=False, default=0)
    longitud_total = Column(Numeric(12, 2), nullable=False, default=0)
    activo = Column(Boolean, nullable=False, default=True)

    proyecto = relationship("Proyecto", back_populates="tramos")


class MetaProyecto(Base):
    """Meta de avance (porcentaje) con fecha objetivo."""
    __tablename__ = "metas_proyecto"

    id = Column(Integer, primary_key=True, index=True)
    proyecto_id = Column(Integer, ForeignKey("proyectos.id", ondelete="CASCADE"), nullable=False, index=True)
    descripcion = Column(String(255))
    porcentaje_meta = Column(Numeric(5, 2), nullable=False)
    fecha_objetivo = Column(Date)

    proyecto = relationship("Proyecto", back_populates="metas")
