# -*- coding: utf-8 -*-
"""
backend/app/modules/registrations/models/registration_form.py

Modelo ORM para la tabla registration_forms.

Inscripción de un asistente. Se enlaza 1:1 con el PaymentRecord que la pagó;
una vez enlazada nunca se sobrescribe.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK
from app.modules.payments.utils.datetime_helpers import utcnow


class RegistrationForm(Base):
    __tablename__ = "registration_forms"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    institute_or_university: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    pricing_config_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("pricing_configs.id", ondelete="SET NULL"),
        nullable=True,
    )

    amount_paid: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        doc="Snapshot de total_price al momento de inscribirse (EUR).",
    )

    payment_record_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("payment_records.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<RegistrationForm id={self.id} email={self.email} payment_record_id={self.payment_record_id}>"


__all__ = ["RegistrationForm"]
