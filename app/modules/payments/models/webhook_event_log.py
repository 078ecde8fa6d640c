# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/webhook_event_log.py

Bitácora de eventos recibidos por el webhook de Stripe.

Guarda el payload crudo y el resultado de la reconciliación para auditoría
y replay fuera del camino caliente. Stripe entrega "al menos una vez", así que
event_id se indexa pero no es único.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, BigInteger, DateTime, Index, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, enum_column_type
from app.modules.payments.enums import WebhookOutcome
from app.modules.payments.utils.datetime_helpers import utcnow


class WebhookEventLog(Base):
    __tablename__ = "payment_webhook_events"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    event_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="ID del evento en Stripe (evt_...).",
    )

    event_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="Tipo crudo (checkout.session.completed, payment_intent.succeeded, ...).",
    )

    kind: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Tipo normalizado (session_completed, charge_succeeded, ...).",
    )

    session_id: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, index=True)
    charge_id: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, index=True)

    # Sin FK: la bitácora debe poder escribirse aunque el registro no exista
    payment_record_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    outcome: Mapped[WebhookOutcome] = mapped_column(
        enum_column_type(WebhookOutcome, name="webhook_outcome", length=16),
        nullable=False,
    )

    detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Monto cobrado por el gateway que no coincide con el precio esperado
    expected_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    charged_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    payload_json: Mapped[Optional[dict]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_payment_webhook_events_outcome_received", "outcome", "received_at"),
    )

    def __repr__(self) -> str:
        return f"<WebhookEventLog id={self.id} event={self.event_id} kind={self.kind} outcome={self.outcome}>"


__all__ = ["WebhookEventLog"]
