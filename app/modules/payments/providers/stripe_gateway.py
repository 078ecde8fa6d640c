# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/stripe_gateway.py

Cliente de Stripe Checkout para el núcleo de pagos.

- La secret key vive en la instancia y se pasa por request (api_key=...);
  nunca se asigna stripe.api_key a nivel de proceso.
- El SDK es síncrono: cada llamada corre en threadpool y se acota con
  PAYMENTS_GATEWAY_TIMEOUT_SECONDS.
- Cualquier StripeError o timeout se traduce a GatewayError.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol

import stripe
from fastapi.concurrency import run_in_threadpool

from app.shared.config.settings_payments import get_payments_settings
from app.modules.payments.errors import GatewayError
from app.modules.payments.utils.datetime_helpers import from_epoch

logger = logging.getLogger(__name__)


@dataclass
class GatewaySession:
    """Vista normalizada de una Stripe Checkout Session."""
    session_id: str
    url: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    payment_intent: Optional[str] = None
    amount_total: Optional[int] = None      # centavos
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    created: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    metadata: Dict[str, str] = field(default_factory=dict)
    provider: str = "stripe"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "url": self.url,
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_intent": self.payment_intent,
            "amount_total": self.amount_total,
            "currency": self.currency,
            "customer_email": self.customer_email,
            "created": self.created.isoformat() if self.created else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "metadata": dict(self.metadata),
            "provider": self.provider,
        }


class PaymentGateway(Protocol):
    """Contrato que usan CheckoutSessionCreator y las rutas de sesión."""

    async def create_checkout_session(self, params: Mapping[str, Any]) -> GatewaySession:
        ...

    async def retrieve_session(self, session_id: str) -> GatewaySession:
        ...

    async def expire_session(self, session_id: str) -> GatewaySession:
        ...


def stripe_object_to_dict(obj: Any) -> Dict[str, Any]:
    """Convierte un StripeObject (o dict) a dict plano."""
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)


def session_from_stripe(obj: Any) -> GatewaySession:
    data = stripe_object_to_dict(obj)
    payment_intent = data.get("payment_intent")
    if isinstance(payment_intent, Mapping):
        payment_intent = payment_intent.get("id")
    customer_details = data.get("customer_details") or {}
    return GatewaySession(
        session_id=data["id"],
        url=data.get("url"),
        status=data.get("status"),
        payment_status=data.get("payment_status"),
        payment_intent=payment_intent,
        amount_total=data.get("amount_total"),
        currency=data.get("currency"),
        customer_email=data.get("customer_email") or customer_details.get("email"),
        created=from_epoch(data.get("created")),
        expires_at=from_epoch(data.get("expires_at")),
        metadata=dict(data.get("metadata") or {}),
    )


class StripeGateway:
    """
    Gateway Stripe con credenciales explícitas.

    Args:
        secret_key: sk_test_/sk_live_. Default: STRIPE_SECRET_KEY de settings.
        timeout_seconds: tope por llamada. Default: PAYMENTS_GATEWAY_TIMEOUT_SECONDS.
    """

    def __init__(self, secret_key: Optional[str] = None, timeout_seconds: Optional[float] = None):
        settings = get_payments_settings()
        self._secret_key = secret_key or settings.stripe_secret_key
        self._timeout = timeout_seconds or settings.payments_gateway_timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._secret_key)

    async def _call(self, operation: str, func, *args, **kwargs) -> Any:
        if not self.is_configured:
            raise GatewayError("Stripe is not configured. Set STRIPE_SECRET_KEY.")
        try:
            return await asyncio.wait_for(
                run_in_threadpool(func, *args, api_key=self._secret_key, **kwargs),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Stripe %s timed out after %ss", operation, self._timeout)
            raise GatewayError(f"Stripe {operation} timed out", cause=e) from e
        except stripe.StripeError as e:
            logger.error(
                "Stripe %s failed: code=%s message=%s",
                operation, getattr(e, "code", None), getattr(e, "user_message", None) or str(e),
            )
            raise GatewayError(f"Stripe {operation} failed: {e}", cause=e) from e

    async def create_checkout_session(self, params: Mapping[str, Any]) -> GatewaySession:
        obj = await self._call("checkout.Session.create", stripe.checkout.Session.create, **dict(params))
        result = session_from_stripe(obj)
        logger.info("Stripe checkout session created: session=%s", result.session_id)
        return result

    async def retrieve_session(self, session_id: str) -> GatewaySession:
        obj = await self._call("checkout.Session.retrieve", stripe.checkout.Session.retrieve, session_id)
        return session_from_stripe(obj)

    async def expire_session(self, session_id: str) -> GatewaySession:
        obj = await self._call("checkout.Session.expire", stripe.checkout.Session.expire, session_id)
        logger.info("Stripe checkout session expired on request: session=%s", session_id)
        return session_from_stripe(obj)


_gateway: Optional[StripeGateway] = None


def get_stripe_gateway() -> StripeGateway:
    """Dependencia FastAPI; los tests la reemplazan con un fake."""
    global _gateway
    if _gateway is None:
        _gateway = StripeGateway()
    return _gateway


__all__ = [
    "GatewaySession",
    "PaymentGateway",
    "StripeGateway",
    "get_stripe_gateway",
    "session_from_stripe",
    "stripe_object_to_dict",
]
