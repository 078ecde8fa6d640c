# -*- coding: utf-8 -*-
"""
backend/app/modules/pricing/__init__.py

Fuente de verdad de precios (solo lectura para el núcleo de pagos).

Autor: ConfPay
Fecha: 2026-02-12
"""

from app.modules.pricing.models import PricingConfig, calculate_total_price
from app.modules.pricing.repository import PricingConfigRepository, PricingSource

__all__ = [
    "PricingConfig",
    "calculate_total_price",
    "PricingConfigRepository",
    "PricingSource",
]
