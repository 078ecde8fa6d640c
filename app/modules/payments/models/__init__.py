# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/__init__.py

Modelos ORM del módulo Payments.
Este módulo NO importa services ni routers para evitar imports circulares.

Autor: ConfPay
Fecha: 2026-02-12
"""

from app.modules.pricing.models import PricingConfig  # noqa: F401  (FK pricing_configs)
from app.modules.registrations.models import RegistrationForm  # noqa: F401  (FK registration_forms)
from app.modules.payments.models.payment_record import PaymentRecord
from app.modules.payments.models.webhook_event_log import WebhookEventLog


def _assert_payment_record_columns():
    """
    El reconciliador y el linker dependen de estas columnas.
    Falla al importar si el modelo pierde alguna.
    """
    from sqlalchemy.inspection import inspect

    required = {
        "session_id", "charge_id", "customer_email", "amount", "currency",
        "status", "gateway_payment_status", "pricing_config_id", "registration_id",
    }
    column_names = {col.key for col in inspect(PaymentRecord).columns}
    missing = required - column_names
    if missing:
        raise RuntimeError(
            f"PaymentRecord ORM is missing columns: {sorted(missing)}. "
            f"Columns found: {sorted(column_names)}"
        )


_assert_payment_record_columns()


__all__ = [
    "PaymentRecord",
    "WebhookEventLog",
]
