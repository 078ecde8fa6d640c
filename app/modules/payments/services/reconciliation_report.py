# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/reconciliation_report.py

Reporte de reconciliación para revisión de operadores.

El emparejamiento heurístico de charges es best-effort; este reporte expone
lo que requiere ojo humano:
- registros cuyo monto difiere del total_price de su PricingConfig
- eventos cuyo monto cobrado no coincidió con el esperado
- eventos sintetizados, emparejados por heurística o descartados
- anomalías (conflictos entre estados terminales) y errores de handler

Autor: ConfPay
Fecha: 12/02/2026
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import WebhookOutcome
from app.modules.payments.models import WebhookEventLog
from app.modules.payments.repositories import PaymentRecordRepository, WebhookEventRepository
from app.modules.payments.services.pricing_validator import to_money
from app.modules.payments.utils.datetime_helpers import to_iso8601, utcnow

logger = logging.getLogger(__name__)

UNMATCHED_OUTCOMES = (
    WebhookOutcome.SYNTHESIZED,
    WebhookOutcome.MATCHED,
    WebhookOutcome.DISCARDED,
)
ATTENTION_OUTCOMES = (
    WebhookOutcome.ANOMALY,
    WebhookOutcome.ERROR,
)


def _event_entry(entry: WebhookEventLog) -> Dict[str, Any]:
    return {
        "event_id": entry.event_id,
        "event_type": entry.event_type,
        "kind": entry.kind,
        "outcome": str(entry.outcome),
        "session_id": entry.session_id,
        "charge_id": entry.charge_id,
        "payment_record_id": entry.payment_record_id,
        "detail": entry.detail,
        "received_at": to_iso8601(entry.received_at),
    }


async def generate_reconciliation_report(
    db: AsyncSession,
    *,
    since: Optional[datetime] = None,
    limit: int = 500,
    record_repo: Optional[PaymentRecordRepository] = None,
    event_repo: Optional[WebhookEventRepository] = None,
) -> Dict[str, Any]:
    """
    Genera el reporte de reconciliación.

    Args:
        db: sesión de BD
        since: solo eventos recibidos desde esta fecha (los mismatches son siempre globales)
        limit: máximo de eventos por sección
    """
    record_repo = record_repo or PaymentRecordRepository()
    event_repo = event_repo or WebhookEventRepository()

    logger.info("Generating reconciliation report since=%s", to_iso8601(since) if since else None)

    mismatches = await record_repo.list_amount_mismatches(db)
    unmatched = await event_repo.list_by_outcomes(db, UNMATCHED_OUTCOMES, since=since, limit=limit)
    attention = await event_repo.list_by_outcomes(db, ATTENTION_OUTCOMES, since=since, limit=limit)
    charged = await event_repo.list_amount_mismatches(db, since=since, limit=limit)

    amount_mismatches = [
        {
            "payment_record_id": record.id,
            "session_id": record.session_id,
            "charge_id": record.charge_id,
            "status": str(record.status),
            "pricing_config_id": record.pricing_config_id,
            "expected": str(to_money(expected)),
            "received": str(to_money(record.amount)),
        }
        for record, expected in mismatches
    ]

    charged_mismatches = [
        {
            **_event_entry(e),
            "expected": str(to_money(e.expected_amount)) if e.expected_amount is not None else None,
            "charged": str(to_money(e.charged_amount)),
        }
        for e in charged
    ]

    anomalies = [_event_entry(e) for e in attention if e.outcome == WebhookOutcome.ANOMALY]
    errors = [_event_entry(e) for e in attention if e.outcome == WebhookOutcome.ERROR]

    report: Dict[str, Any] = {
        "report_generated_at": to_iso8601(utcnow()),
        "since": to_iso8601(since) if since else None,
        "summary": {
            "amount_mismatches": len(amount_mismatches),
            "charged_amount_mismatches": len(charged_mismatches),
            "synthesized_events": sum(1 for e in unmatched if e.outcome == WebhookOutcome.SYNTHESIZED),
            "matched_events": sum(1 for e in unmatched if e.outcome == WebhookOutcome.MATCHED),
            "discarded_events": sum(1 for e in unmatched if e.outcome == WebhookOutcome.DISCARDED),
            "anomalies": len(anomalies),
            "errors": len(errors),
        },
        "amount_mismatches": amount_mismatches,
        "charged_amount_mismatches": charged_mismatches,
        "unmatched_events": [_event_entry(e) for e in unmatched],
        "anomalies": anomalies,
        "errors": errors,
    }

    logger.info(
        "Reconciliation report generated: mismatches=%s charged=%s unmatched=%s anomalies=%s errors=%s",
        len(amount_mismatches), len(charged_mismatches), len(unmatched), len(anomalies), len(errors),
    )
    return report


__all__ = ["generate_reconciliation_report", "UNMATCHED_OUTCOMES", "ATTENTION_OUTCOMES"]
