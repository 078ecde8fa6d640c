# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/payment_record_schemas.py

Esquemas de salida para consultas de registros de pago y estadísticas.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.modules.payments.enums import PaymentStatus


class PaymentRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: Optional[str] = None
    charge_id: Optional[str] = None
    customer_email: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    status: PaymentStatus
    gateway_payment_status: Optional[str] = None
    failure_reason: Optional[str] = None
    pricing_config_id: Optional[int] = None
    registration_id: Optional[int] = None
    gateway_created_at: Optional[datetime] = None
    gateway_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentStatisticsOut(BaseModel):
    total: int = Field(ge=0)
    completed: int = Field(ge=0)
    pending: int = Field(ge=0)
    failed: int = Field(ge=0)
    cancelled: int = Field(ge=0)
    expired: int = Field(ge=0)
    completed_amount_total: Decimal = Field(description="Suma de montos COMPLETED en EUR.")
    currency: str = "eur"


class PricingSyncOut(BaseModel):
    record: PaymentRecordOut
    updated: bool
    previous_amount: Optional[Decimal] = None


class ExpireSweepOut(BaseModel):
    expired: int = Field(ge=0)


__all__ = [
    "PaymentRecordOut",
    "PaymentStatisticsOut",
    "PricingSyncOut",
    "ExpireSweepOut",
]
