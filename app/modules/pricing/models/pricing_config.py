# -*- coding: utf-8 -*-
"""
backend/app/modules/pricing/models/pricing_config.py

Modelo ORM para la tabla pricing_configs.

Fuente de verdad del precio de una inscripción. El alta/edición de
configuraciones pertenece al panel de administración; este servicio
solo las lee.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK
from app.modules.payments.utils.datetime_helpers import utcnow

_CENT = Decimal("0.01")


def calculate_total_price(
    presentation_price: Decimal,
    accommodation_price: Optional[Decimal],
    processing_fee_percent: Decimal,
) -> Decimal:
    """
    (presentación + alojamiento) * (1 + comisión/100), redondeado HALF_UP a 2 decimales.

    Examples:
        >>> calculate_total_price(Decimal("40"), Decimal("0"), Decimal("12.5"))
        Decimal('45.00')
    """
    subtotal = Decimal(presentation_price) + Decimal(accommodation_price or 0)
    fee = subtotal * Decimal(processing_fee_percent) / Decimal(100)
    return (subtotal + fee).quantize(_CENT, rounding=ROUND_HALF_UP)


class PricingConfig(Base):
    """
    Configuración de precio (tipo de presentación + alojamiento + comisión).

    total_price es el valor autoritativo contra el que se validan los
    checkouts y los registros de pago.
    """

    __tablename__ = "pricing_configs"

    id: Mapped[int] = mapped_column(
        BigIntPK,
        primary_key=True,
        autoincrement=True,
    )

    label: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Descripción legible (p.ej. 'Oral presentation + 3 nights').",
    )

    presentation_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )

    accommodation_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    processing_fee_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0"),
    )

    total_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        doc="Precio total en EUR (unidades mayores).",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def recalculate(self) -> Decimal:
        """Recalcula total_price a partir de sus componentes."""
        self.total_price = calculate_total_price(
            self.presentation_price,
            self.accommodation_price,
            self.processing_fee_percent,
        )
        return self.total_price

    def __repr__(self) -> str:
        return f"<PricingConfig id={self.id} total_price={self.total_price}>"


__all__ = [
    "PricingConfig",
    "calculate_total_price",
]
