# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/metrics/exporters/prometheus_exporter.py

Métricas Prometheus del módulo de pagos.

Se registran en el registry global de prometheus_client, de modo que el
endpoint /metrics (app.observability.prom) las expone junto con las HTTP.

Autor: ConfPay
Fecha: 12/02/2026
"""

import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
# Checkout
# --------------------------------------------------------------------------
CHECKOUT_CREATED_TOTAL = Counter(
    "payments_checkout_created_total",
    "Checkout sessions creadas y persistidas como PENDING",
    ["currency"],
)
CHECKOUT_REJECTED_TOTAL = Counter(
    "payments_checkout_rejected_total",
    "Checkouts rechazados antes o durante la llamada a Stripe",
    ["reason"],
)

# --------------------------------------------------------------------------
# Webhooks: verificación separada del outcome de negocio
# --------------------------------------------------------------------------
WEBHOOKS_RECEIVED_TOTAL = Counter(
    "payments_webhook_received_total",
    "Webhooks recibidos",
)
WEBHOOKS_REJECTED_TOTAL = Counter(
    "payments_webhook_rejected_total",
    "Webhooks rechazados por razón (invalid_signature/not_configured)",
    ["reason"],
)
WEBHOOKS_OUTCOME_TOTAL = Counter(
    "payments_webhook_outcome_total",
    "Eventos de webhook por tipo y outcome de reconciliación",
    ["kind", "outcome"],
)
WEBHOOKS_PROCESSING_SECONDS = Histogram(
    "payments_webhook_processing_seconds",
    "Tiempo de procesamiento de webhooks verificados (segundos)",
    ["kind"],
)

# --------------------------------------------------------------------------
# Reconciliación
# --------------------------------------------------------------------------
AMOUNT_MISMATCH_TOTAL = Counter(
    "payments_amount_mismatch_total",
    "Mismatches de monto contra PricingConfig",
    ["stage"],  # stage: checkout/charged/reconciliation
)
RECORDS_EXPIRED_TOTAL = Counter(
    "payments_records_expired_total",
    "Registros PENDING marcados EXPIRED por el barrido periódico",
)
REGISTRATION_LINK_TOTAL = Counter(
    "payments_registration_link_total",
    "Intentos de vinculación pago-inscripción por resultado",
    ["result"],
)


# --------------------------------------------------------------------------
# Funciones auxiliares
# --------------------------------------------------------------------------
def observe_checkout_created(currency: str) -> None:
    CHECKOUT_CREATED_TOTAL.labels(currency=currency).inc()


def observe_checkout_rejected(reason: str) -> None:
    CHECKOUT_REJECTED_TOTAL.labels(reason=reason).inc()


def observe_webhook_received() -> None:
    WEBHOOKS_RECEIVED_TOTAL.inc()


def observe_webhook_rejected(reason: str) -> None:
    """
    Registra un webhook rechazado antes de procesarse.

    Args:
        reason: invalid_signature/not_configured
    """
    WEBHOOKS_REJECTED_TOTAL.labels(reason=reason).inc()
    logger.debug("Webhook rejected reason=%s", reason)


def observe_webhook_outcome(kind: str, outcome: str, duration: float) -> None:
    WEBHOOKS_OUTCOME_TOTAL.labels(kind=kind, outcome=outcome).inc()
    WEBHOOKS_PROCESSING_SECONDS.labels(kind=kind).observe(duration)


def observe_amount_mismatch(stage: str) -> None:
    AMOUNT_MISMATCH_TOTAL.labels(stage=stage).inc()


def observe_records_expired(count: int) -> None:
    if count > 0:
        RECORDS_EXPIRED_TOTAL.inc(count)


def observe_registration_link(result: str) -> None:
    REGISTRATION_LINK_TOTAL.labels(result=result).inc()


__all__ = [
    "observe_checkout_created",
    "observe_checkout_rejected",
    "observe_webhook_received",
    "observe_webhook_rejected",
    "observe_webhook_outcome",
    "observe_amount_mismatch",
    "observe_records_expired",
    "observe_registration_link",
]

# Fin del archivo backend/app/modules/payments/metrics/exporters/prometheus_exporter.py
