# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/jobs/expire_records_job.py

Job programado: marca como EXPIRED los payment_records PENDING cuya
ventana de Stripe (gateway_expires_at) ya venció.

Es housekeeping: la expiración normal llega por el webhook
checkout.session.expired. Se activa con PAYMENTS_EXPIRE_SWEEP_ENABLED.

Autor: ConfPay
Fecha: 2026-02-12
"""

import logging
from contextlib import AbstractAsyncContextManager
from time import perf_counter
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payments import get_payments_settings
from app.shared.database.database import session_scope
from app.modules.payments.services.payment_record_service import PaymentRecordService
from app.modules.payments.utils.datetime_helpers import to_iso8601, utcnow

logger = logging.getLogger(__name__)

JOB_ID = "payments_expire_overdue_records"


async def expire_overdue_payment_records(
    scope_factory: Optional[Callable[[], AbstractAsyncContextManager[AsyncSession]]] = None,
) -> Dict[str, Any]:
    """
    Ejecuta el barrido de PENDING vencidos.

    Args:
        scope_factory: fábrica de sesiones (default: session_scope)

    Returns:
        Dict con estadísticas de la ejecución
    """
    started_at = utcnow()
    start = perf_counter()
    scope_factory = scope_factory or session_scope
    try:
        async with scope_factory() as session:
            expired = await PaymentRecordService().expire_stale(session, now=started_at)
    except SQLAlchemyError:
        logger.exception("[expire_records] sweep failed")
        return {"timestamp": to_iso8601(started_at), "expired": 0, "error": True}

    duration_ms = round((perf_counter() - start) * 1000, 2)
    logger.info("[expire_records] expired=%d duration_ms=%.2f", expired, duration_ms)
    return {
        "timestamp": to_iso8601(started_at),
        "expired": expired,
        "duration_ms": duration_ms,
    }


def register_expire_records_job(scheduler, interval_minutes: Optional[int] = None) -> str:
    """
    Registra el barrido en el scheduler.

    Args:
        scheduler: Instancia de SchedulerService
        interval_minutes: default PAYMENTS_EXPIRE_SWEEP_INTERVAL_MINUTES

    Returns:
        ID del job registrado
    """
    minutes = interval_minutes or get_payments_settings().payments_expire_sweep_interval_minutes
    scheduler.add_interval_job(
        func=expire_overdue_payment_records,
        job_id=JOB_ID,
        minutes=minutes,
    )
    logger.info("[expire_records] Job '%s' registered: every %d minute(s)", JOB_ID, minutes)
    return JOB_ID


__all__ = ["expire_overdue_payment_records", "register_expire_records_job", "JOB_ID"]

# Fin del archivo backend/app/shared/scheduler/jobs/expire_records_job.py
