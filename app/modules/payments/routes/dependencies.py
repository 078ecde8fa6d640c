# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/dependencies.py

Dependencias FastAPI que construyen los servicios del módulo.
Los tests las sustituyen vía app.dependency_overrides.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from fastapi import Depends

from app.modules.payments.providers.stripe_gateway import PaymentGateway, get_stripe_gateway
from app.modules.payments.services import CheckoutSessionCreator, PaymentRecordService
from app.modules.payments.webhooks.dispatcher import WebhookDispatcher


def get_checkout_creator(
    gateway: PaymentGateway = Depends(get_stripe_gateway),
) -> CheckoutSessionCreator:
    return CheckoutSessionCreator(gateway=gateway)


def get_webhook_dispatcher() -> WebhookDispatcher:
    return WebhookDispatcher()


def get_record_service() -> PaymentRecordService:
    return PaymentRecordService()


__all__ = ["get_checkout_creator", "get_webhook_dispatcher", "get_record_service"]
