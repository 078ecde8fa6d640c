# -*- coding: utf-8 -*-
"""
backend/app/modules/pricing/models/__init__.py

Modelos ORM de pricing.
"""

from app.modules.pricing.models.pricing_config import PricingConfig, calculate_total_price

__all__ = ["PricingConfig", "calculate_total_price"]
