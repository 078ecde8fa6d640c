# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/__init__.py

Repositorios del módulo Payments.

Autor: ConfPay
Fecha: 2026-02-12
"""

from .payment_record_repository import PaymentRecordRepository
from .webhook_event_repository import WebhookEventRepository

__all__ = [
    "PaymentRecordRepository",
    "WebhookEventRepository",
]
