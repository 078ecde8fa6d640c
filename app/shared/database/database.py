# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async (asyncpg en producción, aiosqlite en pruebas).

Provee:
- engine (create_async_engine)
- SessionLocal (async_sessionmaker)
- Dependencia FastAPI: get_async_session
- context manager: session_scope()
- check_database_health()

Notas:
- Con asyncpg se aplican timeouts de conexión y por consulta
  (DB_CONNECT_TIMEOUT_S / DB_COMMAND_TIMEOUT_S).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.shared.config import get_settings
from app.shared.database.base import Base  # reutilizamos la Base única

logger = logging.getLogger(__name__)

_settings = get_settings()

DATABASE_URL: str = _settings.database_url
DB_ECHO_SQL: bool = bool(_settings.db_echo_sql)


def _connect_args(url: str) -> dict:
    """Argumentos de conexión según el driver."""
    if url.startswith("postgresql+asyncpg"):
        return {
            "timeout": _settings.db_connect_timeout_s,          # timeout de conexión
            "command_timeout": _settings.db_command_timeout_s,  # timeout por consulta
            "server_settings": {"search_path": "public"},
        }
    return {}


def _mask(url: str) -> str:
    """Oculta credenciales de la URL para logs."""
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"


logger.info("[DB] engine → %s (echo=%s)", _mask(DATABASE_URL), DB_ECHO_SQL)

engine = create_async_engine(
    DATABASE_URL,
    echo=DB_ECHO_SQL,
    connect_args=_connect_args(DATABASE_URL),
)

# ── Session factory
SessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
)


# ── Dependencia FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError:
            # rollback para liberar locks de SELECT ... FOR UPDATE
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Context manager reutilizable en jobs/tests
@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            # commit/rollback queda a cargo de quien use el scope
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Health check
async def check_database_health(timeout_s: float = 3.0, sql: str = "SELECT 1") -> bool:
    """
    Verifica conectividad a la base de datos.

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with engine.connect() as conn:
                await conn.execute(text(sql))
        return True
    except (asyncio.TimeoutError, SQLAlchemyError, OSError) as e:
        logger.warning("[DB] health check failed: %r", e)
        return False


__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "get_async_session",
    "session_scope",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
