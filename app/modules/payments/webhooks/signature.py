# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/webhooks/signature.py

Verificación de firma de webhooks de Stripe.

- Sin secret configurado (o sin prefijo whsec_) el webhook se rechaza
  con SecretNotConfigured; nunca se procesa sin verificar.
- Header ausente, firma inválida, timestamp fuera de tolerancia o
  payload no-JSON → SignatureInvalid.
- La verificación HMAC-SHA256 la hace stripe.Webhook.construct_event.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import stripe

from app.shared.config.settings_payments import get_payments_settings
from app.modules.payments.errors import SecretNotConfigured, SignatureInvalid

logger = logging.getLogger(__name__)

WEBHOOK_SECRET_PREFIX = "whsec_"


def verify_webhook_signature(
    payload: bytes,
    signature_header: Optional[str],
    webhook_secret: Optional[str] = None,
    tolerance_seconds: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Verifica el header Stripe-Signature contra el body crudo.

    Args:
        payload: Body crudo del request (no re-serializar)
        signature_header: Header Stripe-Signature
        webhook_secret: Secret del webhook (default: settings)
        tolerance_seconds: Tolerancia de timestamp (default: settings, 300s)

    Returns:
        El evento como dict plano

    Raises:
        SecretNotConfigured: STRIPE_WEBHOOK_SECRET ausente o inválido
        SignatureInvalid: firma, header o payload inválidos
    """
    settings = get_payments_settings()
    if webhook_secret is None:
        webhook_secret = settings.stripe_webhook_secret
    if tolerance_seconds is None:
        tolerance_seconds = settings.stripe_webhook_tolerance_seconds

    if not webhook_secret or not webhook_secret.startswith(WEBHOOK_SECRET_PREFIX):
        logger.error("Stripe webhook rejected: STRIPE_WEBHOOK_SECRET is not configured")
        raise SecretNotConfigured()

    if not signature_header:
        logger.warning("Stripe webhook rejected: missing Stripe-Signature header")
        raise SignatureInvalid("Missing Stripe-Signature header")

    try:
        stripe.Webhook.construct_event(
            payload,
            signature_header,
            webhook_secret,
            tolerance=tolerance_seconds,
        )
    except stripe.SignatureVerificationError as exc:
        logger.warning("Stripe webhook rejected: %s", exc)
        raise SignatureInvalid() from exc
    except ValueError as exc:
        logger.warning("Stripe webhook rejected: invalid payload (%s)", exc)
        raise SignatureInvalid("Invalid webhook payload") from exc

    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise SignatureInvalid("Invalid webhook payload") from exc
    if not isinstance(data, dict):
        raise SignatureInvalid("Invalid webhook payload")

    logger.debug("Stripe webhook signature verified: event=%s", data.get("id"))
    return data


__all__ = ["verify_webhook_signature", "WEBHOOK_SECRET_PREFIX"]
