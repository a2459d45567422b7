"""
Schemas Pydantic para validación de datos de entrada y salida.
Toda entrada se valida aquí antes de llegar a las consultas.
"""

from datetime import date
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

RolUsuario = Literal["admin", "project_manager", "supervisor", "operario"]
RolProyecto = Literal["supervisor", "operario"]
EstadoProyecto = Literal["planificacion", "en_curso", "pausado", "completado", "cancelado"]

# ===== SCHEMAS PARA AUTENTICACIÓN =====

class RegisterRequest(BaseModel):
    """Schema para registro de usuario"""
    nombre: str = Field(..., min_length=2, max_length=100, description="Nombre del usuario")
    email: EmailStr = Field(..., description="Email único del usuario")
    # bcrypt solo considera los primeros 72 bytes
    password: str = Field(..., min_length=6, max_length=72, description="Contraseña")
    rol: RolUsuario = Field(default="operario", description="Rol del usuario")

    @model_validator(mode="before")
    @classmethod
    def strip_nombre(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("nombre"), str):
            data = {**data, "nombre": data["nombre"].strip()}
        return data


class LoginRequest(BaseModel):
    """Schema para solicitud de login"""
    email: EmailStr
    password: str = Field(..., min_length=1, description="Contraseña del usuario")


class UserInfo(BaseModel):
    """Información pública de un usuario"""
    id: int
    nombre: str
    email: str
    rol: str

    model_config = ConfigDict(from_attributes=True)

# ===== SCHEMAS PARA PROYECTOS =====

class ProyectoCreate(BaseModel):
    """Schema para crear proyecto"""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    nombre: str = Field(..., min_length=2, max_length=200, description="Nombre del proyecto")
    codigo: Optional[str] = Field(None, min_length=1, max_length=50, description="Código corto único")
    descripcion: Optional[str] = None
    cliente_id: Optional[int] = Field(None, gt=0)
    ubicacion: Optional[str] = Field(None, max_length=255)
    fecha_inicio: Optional[date] = None
    fecha_fin_estimada: Optional[date] = None
    presupuesto_inicial: Optional[float] = Field(None, ge=0)
    estado: EstadoProyecto = "planificacion"
    manager_id: Optional[int] = Field(None, gt=0, description="Solo lo respeta un admin")
    datos_adicionales: Dict[str, Any] = Field(default_factory=dict)


# Columnas que no admiten null aunque el campo sea opcional en la actualización
CAMPOS_NO_NULOS = ("nombre", "estado", "manager_id", "datos_adicionales")


class ProyectoUpdate(BaseModel):
    """
    Schema para actualizar proyecto. Solo los campos enviados se actualizan;
    datos_adicionales enviado aquí reemplaza el documento completo.
    """
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    nombre: Optional[str] = Field(None, min_length=2, max_length=200)
    codigo: Optional[str] = Field(None, min_length=1, max_length=50)
    descripcion: Optional[str] = None
    cliente_id: Optional[int] = Field(None, gt=0)
    ubicacion: Optional[str] = Field(None, max_length=255)
    fecha_inicio: Optional[date] = None
    fecha_fin_estimada: Optional[date] = None
    fecha_fin_real: Optional[date] = None
    presupuesto_inicial: Optional[float] = Field(None, ge=0)
    presupuesto_actual: Optional[float] = Field(None, ge=0)
    estado: Optional[EstadoProyecto] = None
    manager_id: Optional[int] = Field(None, gt=0)
    datos_adicionales: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def check_no_nulos(self) -> "ProyectoUpdate":
        for campo in CAMPOS_NO_NULOS:
            if campo in self.model_fields_set and getattr(self, campo) is None:
                raise ValueError(f"{campo} no puede ser nulo")
        return self

    def campos_enviados(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")


class AsignarUsuarioProyecto(BaseModel):
    """Schema para asignar usuario a proyecto"""
    user_id: int = Field(..., gt=0, description="ID del usuario a asignar")
    rol_proyecto: RolProyecto = "operario"


class DatosAdicionalesUpdate(BaseModel):
    """Claves a combinar con los datos adicionales guardados"""
    datos: Dict[str, Any]

    @field_validator("datos")
    @classmethod
    def check_claves(cls, datos: Dict[str, Any]) -> Dict[str, Any]:
        # Cada clave se usa como ruta JSON de primer nivel
        for clave in datos:
            if '"' in clave:
                raise ValueError("Las claves no pueden contener comillas dobles")
        return datos

# ===== SCHEMAS DE RESPUESTA GENÉRICA =====

class ErrorResponse(BaseModel):
    """Schema para respuestas de error"""
    success: bool = False
    message: str
    errors: Optional[list] = None
