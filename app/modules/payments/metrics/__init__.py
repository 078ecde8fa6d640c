# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/metrics/__init__.py

Métricas Prometheus de pagos (checkout, webhooks, reconciliación).

Autor: ConfPay
Fecha: 12/02/2026
"""

from .exporters.prometheus_exporter import (
    observe_amount_mismatch,
    observe_checkout_created,
    observe_checkout_rejected,
    observe_records_expired,
    observe_registration_link,
    observe_webhook_outcome,
    observe_webhook_received,
    observe_webhook_rejected,
)

__all__ = [
    "observe_amount_mismatch",
    "observe_checkout_created",
    "observe_checkout_rejected",
    "observe_records_expired",
    "observe_registration_link",
    "observe_webhook_outcome",
    "observe_webhook_received",
    "observe_webhook_rejected",
]

# Fin del archivo backend/app/modules/payments/metrics/__init__.py
