# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada principal del backend ConfPay.

Ajustes clave:
- Configuración vía app.shared.config (pydantic-settings) y logging centralizado
- Observabilidad Prometheus (/metrics) vía app.observability.prom
- Scheduler con el barrido de payment_records vencidos (opcional)
- Errores del dominio de pagos → JSON con error_code
- Health principal /health delegado al paquete app.routes (health_routes.py)

Autor: ConfPay
Fecha: 12/02/2026
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

# ---------------------------------------------------------------------------
# Cargar .env ANTES de cualquier import que lea settings
# En PROD: override=False para respetar variables del entorno
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_override_env = os.getenv("PYTHON_ENV", "development").strip().lower() == "development"
load_dotenv(dotenv_path=_ENV_PATH, override=_override_env)

import anyio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.shared.config import get_payments_settings, get_settings, setup_logging

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)
logger = logging.getLogger(__name__)

from app.observability.prom import setup_observability
from app.shared.middleware import (
    JSONExceptionMiddleware,
    RequestLoggingMiddleware,
    payments_error_handler,
)
from app.modules.payments.errors import PaymentsError
from app.routes import router as api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    payments_settings = get_payments_settings()
    scheduler = None

    if not payments_settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET is not configured; Stripe webhooks will be rejected")

    if payments_settings.payments_expire_sweep_enabled:
        from app.shared.scheduler import get_scheduler
        from app.shared.scheduler.jobs import register_expire_records_job

        scheduler = get_scheduler()
        register_expire_records_job(scheduler)
        scheduler.start()
    else:
        logger.info("Expire sweep disabled (PAYMENTS_EXPIRE_SWEEP_ENABLED=false)")

    logger.info("%s backend started (env=%s)", _settings.app_name, _settings.python_env)
    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        with anyio.CancelScope(shield=True):
            if scheduler is not None:
                scheduler.shutdown(wait=True)
            from app.shared.database import engine
            await engine.dispose()
        logger.info("%s backend stopped", _settings.app_name)


openapi_tags = [
    {"name": "payments:checkout", "description": "Checkout Sessions de Stripe"},
    {"name": "payments:webhooks", "description": "Webhooks de Stripe"},
    {"name": "payments:records", "description": "Consultas de registros de pago"},
    {"name": "payments:reconciliation", "description": "Reporte de reconciliación"},
]

app = FastAPI(
    title="ConfPay API",
    description="Checkout y reconciliación de pagos de inscripciones",
    version=_settings.app_version,
    lifespan=lifespan,
    openapi_tags=openapi_tags,
)

# IMPORTANTE: el orden real de ejecución de middlewares en Starlette es inverso al registro.
# CORS se registra al final para ejecutarse primero (outermost).
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(JSONExceptionMiddleware)
setup_observability(app, http_metrics=_settings.http_metrics_enabled)

_cors_origins = _settings.get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=_cors_origins != ["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=600,
)

app.add_exception_handler(PaymentsError, payments_error_handler)

app.include_router(api_router)


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=_settings.app_host,
        port=_settings.app_port,
        reload=_settings.is_dev,
    )

# Fin del archivo backend/app/main.py
