# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/providers/__init__.py

Proveedores de pago (solo Stripe).
"""

from .stripe_gateway import (
    GatewaySession,
    PaymentGateway,
    StripeGateway,
    get_stripe_gateway,
)

__all__ = [
    "GatewaySession",
    "PaymentGateway",
    "StripeGateway",
    "get_stripe_gateway",
]
