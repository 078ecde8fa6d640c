# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/__init__.py

Ensamblador de rutas REST del módulo Payments.

Incluye:
- /payments/checkout-sessions
- /payments/webhooks/stripe
- /payments/records/*
- /payments/reconciliation/report

Autor: ConfPay
Fecha: 2026-02-12
"""

from fastapi import APIRouter

from .checkout_sessions import router as checkout_router
from .webhooks_stripe import router as webhooks_stripe_router
from .records import router as records_router
from .reconciliation import router as reconciliation_router

router = APIRouter()

# Prefijo común /payments para todas las rutas del módulo
router.include_router(checkout_router, prefix="/payments")
router.include_router(webhooks_stripe_router, prefix="/payments")
router.include_router(records_router, prefix="/payments")
router.include_router(reconciliation_router, prefix="/payments")

__all__ = ["router"]

# Fin del archivo backend/app/modules/payments/routes/__init__.py
