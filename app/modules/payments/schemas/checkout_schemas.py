# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/checkout_schemas.py

Esquemas Pydantic para la creación y consulta de Checkout Sessions.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl

from app.modules.payments.enums import PaymentStatus


class CheckoutRequest(BaseModel):
    """
    Request para crear una Checkout Session de inscripción.

    El monto se envía en centavos (unit_amount * quantity) y se valida
    contra PricingConfig.total_price; pricing_config_id es obligatorio
    (su ausencia se reporta como VALIDATION_ERROR del dominio).
    """

    product_name: str = Field(min_length=1, max_length=255, description="Nombre mostrado en Stripe.")
    description: Optional[str] = Field(default=None, max_length=1000)
    order_reference: Optional[str] = Field(default=None, max_length=255)

    unit_amount: int = Field(ge=1, description="Precio unitario en centavos (4500 = 45.00 EUR).")
    quantity: int = Field(default=1, ge=1)
    currency: Optional[str] = Field(default=None, description="Solo 'eur'; si se omite se asume 'eur'.")

    customer_email: Optional[EmailStr] = None
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=64)
    customer_institute: Optional[str] = Field(default=None, max_length=255)
    customer_country: Optional[str] = Field(default=None, max_length=100)

    pricing_config_id: Optional[int] = Field(default=None, description="ID de PricingConfig (requerido).")

    success_url: Optional[HttpUrl] = Field(
        default=None,
        description="Redirect en éxito; default: FRONTEND_URL/payment/success.",
    )
    cancel_url: Optional[HttpUrl] = Field(
        default=None,
        description="Redirect en cancelación; default: FRONTEND_URL/payment/cancel.",
    )


class CheckoutResponse(BaseModel):
    """Respuesta al crear la sesión: el frontend redirige a `url`."""

    session_id: str
    url: Optional[str] = None
    payment_record_id: int
    status: PaymentStatus
    registration_id: Optional[int] = Field(
        default=None,
        description="Inscripción capturada junto con el checkout (best-effort).",
    )


class SessionDetailsResponse(BaseModel):
    """Sesión de Stripe combinada con el registro local (si existe)."""

    session: Dict[str, Any]
    payment_record: Optional[Dict[str, Any]] = None


__all__ = [
    "CheckoutRequest",
    "CheckoutResponse",
    "SessionDetailsResponse",
]

# Fin del archivo backend/app/modules/payments/schemas/checkout_schemas.py
