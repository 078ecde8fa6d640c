# -*- coding: utf-8 -*-
"""
backend/app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- enum_column_type: helper para mapear enums Python a columnas portables
  (VARCHAR + CHECK), válidas en PostgreSQL y en SQLite de pruebas

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from enum import Enum
from typing import Type

from sqlalchemy import BigInteger, Integer, MetaData
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import DeclarativeBase

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# PK BIGINT en PostgreSQL; INTEGER en SQLite para conservar el autoincremento (ROWID)
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# ===== HELPER GENÉRICO PARA ENUMS =====
def enum_column_type(enum_cls: Type[Enum], name: str | None = None, length: int = 32) -> SQLEnum:
    """
    Devuelve un tipo Enum de SQLAlchemy que persiste el *valor* del enum.

    Uso típico:

        status: Mapped[PaymentStatus] = mapped_column(
            enum_column_type(PaymentStatus, name="payment_status"),
            nullable=False,
        )

    - native_enum=False: se guarda como VARCHAR con CHECK constraint.
    - Si no se pasa `name`, usa el nombre de la clase en minúsculas.
    """
    enum_name = name or enum_cls.__name__.lower()

    def _values(_: object) -> list[str]:
        return [e.value for e in enum_cls]  # type: ignore[arg-type]

    return SQLEnum(
        enum_cls,
        name=enum_name,
        native_enum=False,
        create_constraint=True,
        length=length,
        values_callable=_values,
        validate_strings=True,
    )


__all__ = ["Base", "BigIntPK", "NAMING_CONVENTION", "enum_column_type"]

# Fin del archivo backend/app/shared/database/base.py
