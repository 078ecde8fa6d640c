# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/__init__.py

Superficie de exportación de servicios del módulo Payments.

Incluye:
- PricingValidator
- CheckoutSessionCreator
- PaymentReconciler
- PaymentRecordService
- generate_reconciliation_report

Autor: ConfPay
Fecha: 2026-02-12
"""

from .pricing_validator import PricingValidator, minor_to_major, to_money
from .checkout_service import CheckoutResult, CheckoutSessionCreator
from .reconciliation_service import PaymentReconciler, ReconcileResult, select_best_pending
from .payment_record_service import PaymentRecordService, PaymentStatistics, PricingSyncResult
from .reconciliation_report import generate_reconciliation_report

__all__ = [
    "PricingValidator",
    "minor_to_major",
    "to_money",
    "CheckoutResult",
    "CheckoutSessionCreator",
    "PaymentReconciler",
    "ReconcileResult",
    "select_best_pending",
    "PaymentRecordService",
    "PaymentStatistics",
    "PricingSyncResult",
    "generate_reconciliation_report",
]
