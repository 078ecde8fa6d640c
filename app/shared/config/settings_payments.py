# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_payments.py

Configuración de pagos para ConfPay.

Descripción:
    Centraliza credenciales de Stripe, moneda de liquidación,
    horizonte de expiración de sesiones, timeouts del gateway y
    el barrido periódico de registros pendientes.

Autor: ConfPay
Fecha: 12/02/2026
"""

from __future__ import annotations

import os
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentsSettings(BaseSettings):
    """Configuración del núcleo de pagos."""

    # =========================================================================
    # STRIPE
    # =========================================================================

    stripe_secret_key: Optional[str] = Field(
        default=None,
        description="Stripe secret key (sk_live_... o sk_test_...)"
    )

    stripe_webhook_secret: Optional[str] = Field(
        default=None,
        description="Stripe webhook signing secret (whsec_...)"
    )

    stripe_webhook_tolerance_seconds: int = Field(
        default=300,
        description="Tolerancia para validación de timestamp de webhooks Stripe (5 minutos)"
    )

    # =========================================================================
    # FRONTEND URL (normalizado desde FRONTEND_URL o FRONTEND_BASE_URL)
    # =========================================================================

    frontend_url: Optional[str] = Field(
        default=None,
        description="URL base del frontend para redirects de checkout"
    )

    @field_validator('frontend_url', mode='before')
    @classmethod
    def _load_frontend_url(cls, v: Optional[str]) -> Optional[str]:
        """Fallback a FRONTEND_URL o FRONTEND_BASE_URL."""
        if v:
            return v
        return os.getenv("FRONTEND_URL") or os.getenv("FRONTEND_BASE_URL")

    # =========================================================================
    # MONEDA Y SESIONES
    # =========================================================================

    payments_settlement_currency: str = Field(
        default="eur",
        description="Moneda única de liquidación (ISO 4217, minúsculas)"
    )

    @field_validator('payments_settlement_currency', mode='after')
    @classmethod
    def _normalize_currency(cls, v: str) -> str:
        return v.strip().lower()

    payment_session_timeout_minutes: int = Field(
        default=30,
        description="Tiempo de expiración de sesiones de pago (minutos)"
    )

    # =========================================================================
    # TIMEOUTS
    # =========================================================================

    payments_gateway_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout de cada llamada al gateway (segundos)"
    )

    # =========================================================================
    # HOUSEKEEPING
    # =========================================================================

    payments_expire_sweep_enabled: bool = Field(
        default=False,
        description="Registra el job que marca como EXPIRED los registros vencidos"
    )

    payments_expire_sweep_interval_minutes: int = Field(
        default=15,
        description="Intervalo del barrido de expiración (minutos)"
    )

    # =========================================================================
    # CONFIGURACIÓN DE PYDANTIC
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton global
_payments_settings: Optional[PaymentsSettings] = None


def get_payments_settings() -> PaymentsSettings:
    """
    Obtiene la instancia global de configuración de pagos.

    Returns:
        PaymentsSettings: Configuración de pagos
    """
    global _payments_settings
    if _payments_settings is None:
        _payments_settings = PaymentsSettings()
    return _payments_settings


def reset_payments_settings() -> None:
    """Descarta el singleton (tests que cambian variables de entorno)."""
    global _payments_settings
    _payments_settings = None


__all__ = [
    "PaymentsSettings",
    "get_payments_settings",
    "reset_payments_settings",
]
# Fin del archivo backend/app/shared/config/settings_payments.py
