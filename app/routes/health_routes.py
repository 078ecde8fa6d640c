# -*- coding: utf-8 -*-
"""
backend/app/routes/health_routes.py

Endpoint básico de health check.

Autor: ConfPay
Fecha: 2026-02-12
"""

from fastapi import APIRouter

from app.shared.config import get_payments_settings, get_settings
from app.shared.database import check_database_health
from app.modules.payments.utils.datetime_helpers import to_iso8601, utcnow

router = APIRouter()


@router.get(
    "/health",
    summary="Health check del backend",
    description=(
        "Estado básico del backend: conectividad a la base de datos y "
        "si Stripe (API key y webhook secret) está configurado."
    ),
)
async def health_check() -> dict:
    settings = get_settings()
    payments = get_payments_settings()

    db_ok = await check_database_health(timeout_s=2.0)

    return {
        "status": "ok" if db_ok else "degraded",
        "timestamp": to_iso8601(utcnow()),
        "environment": settings.python_env,
        "database": {
            "reachable": db_ok,
        },
        "stripe": {
            "api_key_configured": bool(payments.stripe_secret_key),
            "webhook_secret_configured": bool(payments.stripe_webhook_secret),
        },
        "service": {
            "name": settings.app_name,
            "version": settings.app_version,
        },
    }

# Fin del archivo backend/app/routes/health_routes.py
