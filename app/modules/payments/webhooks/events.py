# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/webhooks/events.py

Eventos de webhook tipados.

El payload de Stripe (ya verificado) se normaliza a WebhookEvent con un
discriminador `kind` cerrado. Los tipos que no interesan quedan como
UNRECOGNIZED y el dispatcher solo los registra.

Montos en centavos, tal como los manda Stripe.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Dict, Mapping, Optional

from app.modules.payments.utils.datetime_helpers import from_epoch


class WebhookEventKind(StrEnum):
    SESSION_COMPLETED = "session_completed"
    CHARGE_SUCCEEDED = "charge_succeeded"
    CHARGE_FAILED = "charge_failed"
    SESSION_EXPIRED = "session_expired"
    UNRECOGNIZED = "unrecognized"


STRIPE_EVENT_KINDS: Dict[str, WebhookEventKind] = {
    "checkout.session.completed": WebhookEventKind.SESSION_COMPLETED,
    "payment_intent.succeeded": WebhookEventKind.CHARGE_SUCCEEDED,
    "payment_intent.payment_failed": WebhookEventKind.CHARGE_FAILED,
    "checkout.session.expired": WebhookEventKind.SESSION_EXPIRED,
}


@dataclass(frozen=True)
class WebhookEvent:
    kind: WebhookEventKind
    event_type: str
    event_id: Optional[str] = None
    session_id: Optional[str] = None
    charge_id: Optional[str] = None
    amount_minor: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    payment_status: Optional[str] = None
    failure_reason: Optional[str] = None
    created: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def pricing_config_id(self) -> Optional[int]:
        raw = self.metadata.get("pricingConfigId")
        try:
            return int(raw) if raw is not None else None
        except (TypeError, ValueError):
            return None


def _mapping(value: Any) -> Mapping[str, Any]:
    """Sub-objetos del payload; cualquier otra forma cuenta como vacío."""
    return value if isinstance(value, Mapping) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _amount(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return from_epoch(int(value))


def _metadata(value: Any) -> Dict[str, str]:
    return {str(k): str(v) for k, v in _mapping(value).items() if v is not None}


def _id_of(value: Any) -> Optional[str]:
    """payment_intent puede venir como id o como objeto expandido."""
    if isinstance(value, Mapping):
        return _text(value.get("id"))
    return _text(value)


def _from_checkout_session(kind: WebhookEventKind, event_type: str, event_id: Optional[str], obj: Mapping[str, Any]) -> WebhookEvent:
    customer_details = _mapping(obj.get("customer_details"))
    return WebhookEvent(
        kind=kind,
        event_type=event_type,
        event_id=event_id,
        session_id=_text(obj.get("id")),
        charge_id=_id_of(obj.get("payment_intent")),
        amount_minor=_amount(obj.get("amount_total")),
        currency=_text(obj.get("currency")),
        customer_email=_text(obj.get("customer_email")) or _text(customer_details.get("email")),
        payment_status=_text(obj.get("payment_status")),
        created=_timestamp(obj.get("created")),
        expires_at=_timestamp(obj.get("expires_at")),
        metadata=_metadata(obj.get("metadata")),
    )


def _from_payment_intent(kind: WebhookEventKind, event_type: str, event_id: Optional[str], obj: Mapping[str, Any]) -> WebhookEvent:
    last_error = _mapping(obj.get("last_payment_error"))
    amount = _amount(obj.get("amount_received")) or _amount(obj.get("amount"))
    return WebhookEvent(
        kind=kind,
        event_type=event_type,
        event_id=event_id,
        charge_id=_text(obj.get("id")),
        amount_minor=amount,
        currency=_text(obj.get("currency")),
        customer_email=_text(obj.get("receipt_email")),
        payment_status=_text(obj.get("status")),
        failure_reason=_text(last_error.get("message")),
        created=_timestamp(obj.get("created")),
        metadata=_metadata(obj.get("metadata")),
    )


def parse_event(data: Mapping[str, Any]) -> WebhookEvent:
    """
    Normaliza un evento de Stripe (dict del JSON verificado).

    Campos con tipo inesperado se ignoran en vez de lanzar.

    Examples:
        >>> parse_event({"id": "evt_1", "type": "customer.created", "data": {"object": {}}}).kind
        <WebhookEventKind.UNRECOGNIZED: 'unrecognized'>
    """
    data = _mapping(data)
    event_type = _text(data.get("type")) or ""
    event_id = _text(data.get("id"))
    obj = _mapping(_mapping(data.get("data")).get("object"))
    kind = STRIPE_EVENT_KINDS.get(event_type, WebhookEventKind.UNRECOGNIZED)

    if kind in (WebhookEventKind.SESSION_COMPLETED, WebhookEventKind.SESSION_EXPIRED):
        return _from_checkout_session(kind, event_type, event_id, obj)
    if kind in (WebhookEventKind.CHARGE_SUCCEEDED, WebhookEventKind.CHARGE_FAILED):
        return _from_payment_intent(kind, event_type, event_id, obj)
    return WebhookEvent(kind=kind, event_type=event_type, event_id=event_id)


__all__ = [
    "WebhookEventKind",
    "WebhookEvent",
    "STRIPE_EVENT_KINDS",
    "parse_event",
]
