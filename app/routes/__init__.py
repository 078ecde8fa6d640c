# -*- coding: utf-8 -*-
"""
backend/app/routes/__init__.py

Ensamblador principal de ruteadores de la API de ConfPay.

Responsabilidades:
- Incluir el router de health (/health).
- Montar el módulo Payments bajo /api.

Autor: ConfPay
Fecha: 2026-02-12
"""

from fastapi import APIRouter

from app.modules.payments.routes import router as payments_router

from .health_routes import router as health_router

router = APIRouter()

# Health check sin prefijo adicional
router.include_router(health_router)

router.include_router(payments_router, prefix="/api")

__all__ = ["router"]

# Fin del archivo backend/app/routes/__init__.py
