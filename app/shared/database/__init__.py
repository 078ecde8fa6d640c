# -*- coding: utf-8 -*-
"""
backend/app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from .database import (
    engine,
    SessionLocal,
    get_async_session,
    session_scope,
    check_database_health,
)
from .base import Base, BigIntPK, NAMING_CONVENTION, enum_column_type

__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "BigIntPK",
    "NAMING_CONVENTION",
    "enum_column_type",
    "get_async_session",
    "session_scope",
    "check_database_health",
]

# Fin del archivo backend/app/shared/database/__init__.py
