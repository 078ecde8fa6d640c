# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payment_record.py

Modelo ORM para la tabla payment_records.

Un registro por sesión de checkout. Nace PENDING en CheckoutSessionCreator y
solo lo mutan el reconciliador de webhooks (estado, charge_id, backfills) y
el linker de inscripciones (registration_id). Nunca se borra.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, enum_column_type
from app.modules.payments.enums import PaymentStatus
from app.modules.payments.utils.datetime_helpers import ensure_utc, utcnow


class PaymentRecord(Base):
    """
    Registro local de un pago con Stripe.

    - session_id: id de la Checkout Session; único e inmutable. Solo es NULL
      en registros sintetizados desde payment_intent.succeeded (el evento
      no trae la sesión).
    - charge_id: id del PaymentIntent; único una vez asignado.
    - amount: EUR en unidades mayores (45.00), Numeric(10, 2).
    """

    __tablename__ = "payment_records"

    id: Mapped[int] = mapped_column(
        BigIntPK,
        primary_key=True,
        autoincrement=True,
    )

    session_id: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        unique=True,
        doc="Stripe Checkout Session id (cs_...).",
    )

    charge_id: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        unique=True,
        doc="Stripe PaymentIntent id (pi_...).",
    )

    customer_email: Mapped[Optional[str]] = mapped_column(
        String(320),
        nullable=True,
        index=True,
    )

    amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        doc="Monto en EUR (unidades mayores).",
    )

    currency: Mapped[Optional[str]] = mapped_column(
        String(3),
        nullable=True,
        default="eur",
    )

    status: Mapped[PaymentStatus] = mapped_column(
        enum_column_type(PaymentStatus, name="payment_record_status", length=16),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    # payment_status de Stripe, tal cual ("paid", "unpaid", "no_payment_required", ...)
    gateway_payment_status: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )

    failure_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    pricing_config_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("pricing_configs.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    registration_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey(
            "registration_forms.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_payment_records_registration_id_registration_forms",
        ),
        nullable=True,
        unique=True,
    )

    gateway_created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    gateway_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_payment_records_status_created", "status", "created_at"),
    )

    # ------------------------------------------------------------------
    # Helpers de estado
    # ------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return PaymentStatus(self.status).is_terminal

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """EXPIRED, o PENDING con la ventana de Stripe ya vencida."""
        if self.status == PaymentStatus.EXPIRED:
            return True
        if self.status != PaymentStatus.PENDING or self.gateway_expires_at is None:
            return False
        return ensure_utc(self.gateway_expires_at) < (now or utcnow())

    def __repr__(self) -> str:
        return (
            f"<PaymentRecord id={self.id} session={self.session_id} "
            f"charge={self.charge_id} status={self.status} amount={self.amount}>"
        )


__all__ = ["PaymentRecord"]
