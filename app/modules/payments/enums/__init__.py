# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/__init__.py

Superficie de exportación de enums del módulo Payments.

Autor: ConfPay
Fecha: 12/02/2026
"""

from .payment_status_enum import PaymentStatus, TERMINAL_STATUSES
from .webhook_outcome_enum import WebhookOutcome

__all__ = [
    "PaymentStatus",
    "TERMINAL_STATUSES",
    "WebhookOutcome",
]

# Fin del archivo backend/app/modules/payments/enums/__init__.py
