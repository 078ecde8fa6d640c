# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/__init__.py

Esquemas Pydantic del módulo Payments.

Autor: ConfPay
Fecha: 2026-02-12
"""

from .checkout_schemas import CheckoutRequest, CheckoutResponse, SessionDetailsResponse
from .payment_record_schemas import (
    ExpireSweepOut,
    PaymentRecordOut,
    PaymentStatisticsOut,
    PricingSyncOut,
)

__all__ = [
    "CheckoutRequest",
    "CheckoutResponse",
    "SessionDetailsResponse",
    "ExpireSweepOut",
    "PaymentRecordOut",
    "PaymentStatisticsOut",
    "PricingSyncOut",
]
