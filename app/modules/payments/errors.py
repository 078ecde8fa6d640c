# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/errors.py

Errores de dominio del núcleo de pagos.

Objetivo:
- Excepciones semánticas que validadores, servicios y el dispatcher
  de webhooks pueden lanzar sin acoplarse a FastAPI.
- Cada error trae `error_code` estable y `status_code` sugerido; el handler
  registrado en main.py los traduce a {"detail": {...}}.

Durante la reconciliación de webhooks AmountMismatch/ConfigNotFound solo se
registran; nunca se propagan al transporte.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional


class PaymentsError(Exception):
    """
    Error base para el módulo Payments.
    """

    error_code: str = "PAYMENTS_ERROR"
    status_code: int = 400

    def __init__(self, message: str = "Payments error") -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message}


class ValidationError(PaymentsError):
    """
    Entrada malformada o faltante (p.ej. pricing_config_id ausente).
    """

    error_code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, message: str = "Invalid payment request", field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.field:
            data["field"] = self.field
        return data


class AmountMismatch(PaymentsError):
    """
    El monto solicitado (o persistido) no coincide con el precio autoritativo.
    Ambos valores en unidades mayores de la moneda de liquidación.
    """

    error_code = "AMOUNT_MISMATCH"
    status_code = 422

    def __init__(self, expected: Decimal, received: Decimal, pricing_config_id: Optional[int] = None) -> None:
        self.expected = expected
        self.received = received
        self.pricing_config_id = pricing_config_id
        super().__init__(
            f"Payment amount mismatch. Expected: {expected} EUR (from pricing config), "
            f"but received: {received} EUR"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            expected=str(self.expected),
            received=str(self.received),
            pricing_config_id=self.pricing_config_id,
        )
        return data


class UnsupportedCurrency(PaymentsError):
    """
    Se pidió una moneda distinta de la de liquidación.
    """

    error_code = "UNSUPPORTED_CURRENCY"
    status_code = 422

    def __init__(self, currency: str, settlement_currency: str = "eur") -> None:
        self.currency = currency
        self.settlement_currency = settlement_currency
        super().__init__(
            f"Only {settlement_currency.upper()} currency is supported. Provided currency: {currency}"
        )


class ConfigNotFound(PaymentsError):
    """
    El pricing_config_id no existe en la fuente de precios.
    """

    error_code = "PRICING_CONFIG_NOT_FOUND"
    status_code = 404

    def __init__(self, pricing_config_id: int) -> None:
        self.pricing_config_id = pricing_config_id
        super().__init__(f"Pricing config not found with ID: {pricing_config_id}")


class SignatureInvalid(PaymentsError):
    """
    La firma del webhook no verifica contra el secreto configurado.
    """

    error_code = "INVALID_SIGNATURE"
    status_code = 400

    def __init__(self, message: str = "Invalid webhook signature") -> None:
        super().__init__(message)


class SecretNotConfigured(PaymentsError):
    """
    No hay secreto de webhook configurado (o no tiene formato whsec_).
    """

    error_code = "WEBHOOK_NOT_CONFIGURED"
    status_code = 500

    def __init__(self, message: str = "Webhook secret is not configured") -> None:
        super().__init__(message)


class GatewayError(PaymentsError):
    """
    Falla o timeout al hablar con el gateway. Nunca deja registros a medias.
    """

    error_code = "GATEWAY_ERROR"
    status_code = 502

    def __init__(self, message: str = "Payment gateway error", cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class RecordNotFound(PaymentsError):
    """
    Consulta síncrona sin resultado. Los webhooks nunca lo propagan.
    """

    error_code = "PAYMENT_RECORD_NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Payment record not found") -> None:
        super().__init__(message)


__all__ = [
    "PaymentsError",
    "ValidationError",
    "AmountMismatch",
    "UnsupportedCurrency",
    "ConfigNotFound",
    "SignatureInvalid",
    "SecretNotConfigured",
    "GatewayError",
    "RecordNotFound",
]

# Fin del archivo backend/app/modules/payments/errors.py
