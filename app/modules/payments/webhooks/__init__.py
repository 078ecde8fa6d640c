# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/webhooks/__init__.py

Webhooks de Stripe: verificación de firma y eventos tipados.
El dispatcher se importa desde app.modules.payments.webhooks.dispatcher.

Autor: ConfPay
Fecha: 2026-02-12
"""

from .events import STRIPE_EVENT_KINDS, WebhookEvent, WebhookEventKind, parse_event
from .signature import verify_webhook_signature

__all__ = [
    "STRIPE_EVENT_KINDS",
    "WebhookEvent",
    "WebhookEventKind",
    "parse_event",
    "verify_webhook_signature",
]
