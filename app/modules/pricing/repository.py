# -*- coding: utf-8 -*-
"""
backend/app/modules/pricing/repository.py

Acceso de solo lectura a pricing_configs (PricingSource).

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.pricing.models import PricingConfig


class PricingSource(Protocol):
    """Contrato mínimo que necesita el validador de montos."""

    async def get_total_price(self, session: AsyncSession, pricing_config_id: int) -> Optional[Decimal]:
        ...


class PricingConfigRepository(BaseRepository[PricingConfig]):
    """Repositorio de configuraciones de precio."""

    def __init__(self):
        super().__init__(PricingConfig)

    async def get_total_price(
        self,
        session: AsyncSession,
        pricing_config_id: int,
    ) -> Optional[Decimal]:
        """Precio total autoritativo en EUR, o None si el id no existe."""
        result = await session.execute(
            select(PricingConfig.total_price).where(PricingConfig.id == pricing_config_id)
        )
        value = result.scalar_one_or_none()
        return Decimal(value) if value is not None else None


__all__ = ["PricingConfigRepository", "PricingSource"]
