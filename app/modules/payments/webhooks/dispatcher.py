# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/webhooks/dispatcher.py

WebhookDispatcher: verifica, parsea y despacha eventos de Stripe.

Contrato con Stripe:
- Firma inválida / secret ausente → la excepción sube (400 / 500) sin tocar BD.
- Cualquier otro caso → 200. Un handler que falla o un payload firmado que no
  se puede parsear se registra como ERROR y no provoca reintentos externos.

Cada evento verificado queda en payment_webhook_events (best-effort, commit
propio) para el reporte de reconciliación.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import WebhookOutcome
from app.modules.payments.errors import SecretNotConfigured, SignatureInvalid
from app.modules.payments.metrics import (
    observe_webhook_outcome,
    observe_webhook_received,
    observe_webhook_rejected,
)
from app.modules.payments.models import WebhookEventLog
from app.modules.payments.services.reconciliation_service import PaymentReconciler, ReconcileResult
from app.modules.payments.webhooks.events import WebhookEvent, WebhookEventKind, parse_event
from app.modules.payments.webhooks.signature import verify_webhook_signature

logger = logging.getLogger(__name__)

_DETAIL_MAX_LEN = 1000

# Tabla cerrada kind → método de PaymentReconciler
HANDLERS: Dict[WebhookEventKind, str] = {
    WebhookEventKind.SESSION_COMPLETED: "handle_session_completed",
    WebhookEventKind.CHARGE_SUCCEEDED: "handle_charge_succeeded",
    WebhookEventKind.CHARGE_FAILED: "handle_charge_failed",
    WebhookEventKind.SESSION_EXPIRED: "handle_session_expired",
}


def _assert_handlers_exhaustive() -> None:
    expected = set(WebhookEventKind) - {WebhookEventKind.UNRECOGNIZED}
    missing = expected - set(HANDLERS)
    if missing:
        raise RuntimeError(f"Webhook kinds without handler: {sorted(missing)}")
    for name in HANDLERS.values():
        if not callable(getattr(PaymentReconciler, name, None)):
            raise RuntimeError(f"PaymentReconciler has no handler named {name!r}")


_assert_handlers_exhaustive()


class WebhookDispatcher:
    """
    Args:
        reconciler: PaymentReconciler (default: instancia con deps concretas)
        webhook_secret: override del secret (default: settings)
        record_events: escribir la bitácora payment_webhook_events
    """

    def __init__(
        self,
        reconciler: Optional[PaymentReconciler] = None,
        webhook_secret: Optional[str] = None,
        record_events: bool = True,
    ):
        self.reconciler = reconciler or PaymentReconciler()
        self.webhook_secret = webhook_secret
        self.record_events = record_events

    def verify(self, payload: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        try:
            return verify_webhook_signature(payload, signature_header, webhook_secret=self.webhook_secret)
        except SecretNotConfigured:
            observe_webhook_rejected("not_configured")
            raise
        except SignatureInvalid:
            observe_webhook_rejected("invalid_signature")
            raise

    async def dispatch(self, session: AsyncSession, event: WebhookEvent) -> ReconcileResult:
        """Despacha un evento ya verificado. Nunca lanza."""
        handler_name = HANDLERS.get(event.kind)
        if handler_name is None:
            logger.info("Ignoring unrecognized webhook event type=%s id=%s", event.event_type, event.event_id)
            return ReconcileResult(outcome=WebhookOutcome.IGNORED, detail=f"unrecognized type {event.event_type}")

        handler = getattr(self.reconciler, handler_name)
        try:
            return await handler(session, event)
        except Exception as exc:
            await session.rollback()
            logger.exception(
                "Webhook handler %s failed for event %s (%s)",
                handler_name, event.event_id, event.event_type,
            )
            return ReconcileResult(outcome=WebhookOutcome.ERROR, detail=f"{type(exc).__name__}: {exc}")

    async def _log_event(
        self,
        session: AsyncSession,
        event: WebhookEvent,
        result: ReconcileResult,
        raw: Mapping[str, Any],
    ) -> None:
        detail = result.detail
        mismatch = result.amount_mismatch
        if mismatch is not None:
            detail = f"{detail}; {mismatch}" if detail else str(mismatch)
        try:
            session.add(
                WebhookEventLog(
                    event_id=event.event_id,
                    event_type=event.event_type or "unknown",
                    kind=event.kind.value,
                    session_id=event.session_id,
                    charge_id=event.charge_id,
                    payment_record_id=result.record_id,
                    outcome=result.outcome,
                    detail=detail[:_DETAIL_MAX_LEN] if detail else None,
                    expected_amount=mismatch.expected if mismatch is not None else None,
                    charged_amount=mismatch.received if mismatch is not None else None,
                    payload_json=dict(raw),
                )
            )
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.warning("Could not store webhook event %s in event log: %s", event.event_id, exc)

    async def handle(
        self,
        session: AsyncSession,
        payload: bytes,
        signature_header: Optional[str],
    ) -> Dict[str, Any]:
        """
        Punto de entrada del endpoint de webhooks.

        Raises:
            SignatureInvalid, SecretNotConfigured: antes de cualquier mutación
        """
        observe_webhook_received()
        data = self.verify(payload, signature_header)

        start = perf_counter()
        try:
            event = parse_event(data)
        except Exception as exc:
            logger.exception("Could not parse verified webhook payload id=%s", data.get("id"))
            event = WebhookEvent(kind=WebhookEventKind.UNRECOGNIZED, event_type=str(data.get("type") or "unknown"))
            result = ReconcileResult(outcome=WebhookOutcome.ERROR, detail=f"unparseable payload: {type(exc).__name__}: {exc}")
        else:
            logger.info("Stripe webhook received: id=%s type=%s kind=%s", event.event_id, event.event_type, event.kind)
            result = await self.dispatch(session, event)

        if self.record_events:
            await self._log_event(session, event, result, data)

        observe_webhook_outcome(event.kind.value, result.outcome.value, perf_counter() - start)
        return {
            "received": True,
            "event_id": event.event_id,
            "kind": event.kind.value,
            "outcome": result.outcome.value,
        }


__all__ = ["WebhookDispatcher", "HANDLERS"]

# Fin del archivo backend/app/modules/payments/webhooks/dispatcher.py
