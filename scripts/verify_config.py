#!/usr/bin/env python3
"""
Script de Verificación de Configuración - External Configuration Store Pattern
Muestra la configuración efectiva y señala valores peligrosos antes de desplegar.
"""

import os
import sys
import traceback

# Agregar el directorio raíz al path para importar módulos
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.config.config import settings, DEFAULT_JWT_SECRET


def print_header(title: str):
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def print_info(key: str, value, is_secret: bool = False):
    """Imprime un valor de configuración; los secretos solo muestran su longitud."""
    if is_secret:
        display_value = f"{'*' * min(len(value), 20)} (longitud: {len(value)})" if value else "NO DEFINIDO"
    else:
        display_value = value
    print(f"  {key:30} : {display_value}")


def verify_database_config() -> list[str]:
    print_header("BASE DE DATOS")

    print_info("POSTGRES_HOST", settings.POSTGRES_HOST)
    print_info("POSTGRES_DB", settings.POSTGRES_DB)
    print_info("POSTGRES_PASSWORD", settings.POSTGRES_PASSWORD, is_secret=True)
    print_info("DB_POOL_SIZE", settings.DB_POOL_SIZE)
    print_info("DB_MAX_OVERFLOW", settings.DB_MAX_OVERFLOW)
    print_info(
        "Reintentos al arrancar",
        f"{settings.DB_MAX_RETRY_ATTEMPTS} ({settings.DB_RETRY_MIN_WAIT}s - {settings.DB_RETRY_MAX_WAIT}s)"
    )

    issues = []
    if settings.DATABASE_URL.startswith("sqlite") and settings.is_production():
        issues.append("DATABASE_URL apunta a SQLite en producción")
    return issues


def verify_auth_config() -> list[str]:
    print_header("AUTENTICACIÓN")

    print_info("JWT_SECRET_KEY", settings.JWT_SECRET_KEY, is_secret=True)
    print_info("JWT_ALGORITHM", settings.JWT_ALGORITHM)
    print_info("ACCESS_TOKEN_EXPIRE_MINUTES", settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    print_info("BCRYPT_ROUNDS", settings.BCRYPT_ROUNDS)

    issues = []
    if len(settings.JWT_SECRET_KEY) < 32 and settings.JWT_SECRET_KEY != DEFAULT_JWT_SECRET:
        issues.append("JWT_SECRET_KEY muy corta (mínimo recomendado: 32 caracteres)")
    if settings.BCRYPT_ROUNDS < 10 and settings.is_production():
        issues.append("BCRYPT_ROUNDS menor a 10 en producción")
    return issues


def verify_app_config() -> list[str]:
    print_header("APLICACIÓN")

    for key, value in settings.get_config_summary().items():
        print_info(key, value)
    print_info("cors_origins", settings.CORS_ORIGINS)

    issues = []
    if settings.is_production() and settings.LOG_LEVEL.lower() == "debug":
        issues.append("LOG_LEVEL en debug en producción")
    if settings.is_production() and "*" in settings.CORS_ORIGINS:
        issues.append("CORS_ORIGINS permite todos los orígenes en producción")
    return issues


def verify_all() -> bool:
    issues = []
    issues.extend(verify_database_config())
    issues.extend(verify_auth_config())
    issues.extend(verify_app_config())
    issues.extend(settings.validate_config())

    print_header("RESUMEN")
    if not issues:
        print("✅ Configuración lista para usar")
        return True

    for i, issue in enumerate(issues, 1):
        print(f"  {i}. {issue}")

    if any("CRÍTICO" in issue for issue in issues):
        print("❌ Hay problemas CRÍTICOS que deben resolverse antes de producción")
        return False
    print("⚠️  Hay advertencias que deberían revisarse")
    return True


def main():
    try:
        sys.exit(0 if verify_all() else 1)
    except Exception as e:
        print_header("ERROR")
        print(f"❌ Error durante verificación: {e}")
        traceback.print_exc()
        sys.exit(2)


if __name__ == "__main__":
    main()
