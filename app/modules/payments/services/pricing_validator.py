# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/pricing_validator.py

Validación de montos contra la fuente de verdad de precios.

Reglas:
- unit_amount * quantity (centavos) se normaliza a EUR con Decimal y se
  compara por igualdad exacta con PricingConfig.total_price. Sin tolerancia
  ni redondeo.
- Moneda omitida → moneda de liquidación; cualquier otra → UnsupportedCurrency.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payments import get_payments_settings
from app.modules.payments.errors import (
    AmountMismatch,
    ConfigNotFound,
    UnsupportedCurrency,
    ValidationError,
)
from app.modules.payments.models import PaymentRecord
from app.modules.pricing.repository import PricingConfigRepository, PricingSource

logger = logging.getLogger(__name__)

_CENTS_PER_UNIT = Decimal(100)
_CENT = Decimal("0.01")


def minor_to_major(amount_minor: int) -> Decimal:
    """
    Centavos → EUR (Decimal con 2 decimales).

    Examples:
        >>> minor_to_major(4500)
        Decimal('45.00')
    """
    return (Decimal(int(amount_minor)) / _CENTS_PER_UNIT).quantize(_CENT)


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Normaliza un monto en unidades mayores a Decimal con 2 decimales."""
    return Decimal(str(value)).quantize(_CENT)


class PricingValidator:
    """
    Valida totales solicitados (o persistidos) contra PricingSource.

    Args:
        pricing_source: implementación de PricingSource (default: repositorio SQL)
        settlement_currency: moneda única aceptada (default: settings)
    """

    def __init__(
        self,
        pricing_source: Optional[PricingSource] = None,
        settlement_currency: Optional[str] = None,
    ):
        self.pricing_source = pricing_source or PricingConfigRepository()
        self.settlement_currency = (
            settlement_currency or get_payments_settings().payments_settlement_currency
        ).lower()

    def resolve_currency(self, currency: Optional[str]) -> str:
        """
        Devuelve la moneda de liquidación o lanza UnsupportedCurrency.

        Examples:
            >>> PricingValidator(pricing_source=object(), settlement_currency="eur").resolve_currency(None)
            'eur'
        """
        if currency is None or not str(currency).strip():
            return self.settlement_currency
        if str(currency).strip().lower() != self.settlement_currency:
            raise UnsupportedCurrency(str(currency), self.settlement_currency)
        return self.settlement_currency

    async def expected_price(self, session: AsyncSession, pricing_config_id: Optional[int]) -> Decimal:
        if pricing_config_id is None:
            raise ValidationError("pricing_config_id is required", field="pricing_config_id")
        price = await self.pricing_source.get_total_price(session, pricing_config_id)
        if price is None:
            raise ConfigNotFound(pricing_config_id)
        return to_money(price)

    async def validate(
        self,
        session: AsyncSession,
        *,
        unit_amount: int,
        quantity: int,
        pricing_config_id: Optional[int],
        currency: Optional[str] = None,
    ) -> Decimal:
        """
        Valida un checkout antes de crear la sesión en Stripe.

        Returns:
            Total validado en EUR (unidades mayores)

        Raises:
            ValidationError, UnsupportedCurrency, ConfigNotFound, AmountMismatch
        """
        self.resolve_currency(currency)
        if unit_amount is None or unit_amount <= 0:
            raise ValidationError("unit_amount must be greater than 0", field="unit_amount")
        if quantity is None or quantity <= 0:
            raise ValidationError("quantity must be greater than 0", field="quantity")

        expected = await self.expected_price(session, pricing_config_id)
        received = minor_to_major(unit_amount * quantity)

        if received != expected:
            logger.warning(
                "Checkout amount mismatch: pricing_config=%s expected=%s received=%s",
                pricing_config_id, expected, received,
            )
            raise AmountMismatch(expected=expected, received=received, pricing_config_id=pricing_config_id)

        logger.debug("Checkout amount validated: pricing_config=%s amount=%s", pricing_config_id, received)
        return received

    async def check_record(self, session: AsyncSession, record: PaymentRecord) -> Optional[AmountMismatch]:
        """
        Re-validación en cada persistencia de un registro.

        Returns:
            AmountMismatch si el monto difiere, None si coincide o no aplica
            (sin pricing_config_id o sin monto). Nunca lanza por mismatch.
        """
        if record.pricing_config_id is None or record.amount is None:
            return None
        try:
            expected = await self.expected_price(session, record.pricing_config_id)
        except ConfigNotFound as exc:
            logger.warning("Payment record %s references missing pricing config: %s", record.id, exc)
            return None
        received = to_money(record.amount)
        if received != expected:
            return AmountMismatch(expected=expected, received=received, pricing_config_id=record.pricing_config_id)
        return None

    async def check_charged_amount(
        self,
        session: AsyncSession,
        record: PaymentRecord,
        charged: Optional[Decimal],
    ) -> Optional[AmountMismatch]:
        """
        Compara el monto que reporta el gateway con el precio del registro.

        El esperado es total_price del PricingConfig; sin config (o si ya no
        existe) se usa el monto guardado en el registro. Nunca lanza por mismatch.
        """
        if charged is None:
            return None
        expected: Optional[Decimal] = None
        if record.pricing_config_id is not None:
            price = await self.pricing_source.get_total_price(session, record.pricing_config_id)
            if price is not None:
                expected = to_money(price)
        if expected is None and record.amount is not None:
            expected = to_money(record.amount)
        received = to_money(charged)
        if expected is None or received == expected:
            return None
        return AmountMismatch(expected=expected, received=received, pricing_config_id=record.pricing_config_id)


__all__ = [
    "PricingValidator",
    "minor_to_major",
    "to_money",
]
