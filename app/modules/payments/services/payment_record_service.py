# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/payment_record_service.py

Consultas operativas sobre payment_records y mantenimiento:
- búsquedas por sesión, email, estado y PENDING vencidos
- estadísticas por estado
- barrido de vencidos (PENDING → EXPIRED)
- sincronización del monto de un PENDING con su PricingConfig vigente

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payments import get_payments_settings
from app.modules.payments.enums import PaymentStatus
from app.modules.payments.errors import RecordNotFound, ValidationError
from app.modules.payments.metrics import observe_records_expired
from app.modules.payments.models import PaymentRecord
from app.modules.payments.repositories import PaymentRecordRepository
from app.modules.payments.services.pricing_validator import PricingValidator, to_money
from app.modules.payments.utils.datetime_helpers import utcnow

logger = logging.getLogger(__name__)


@dataclass
class PaymentStatistics:
    total: int
    completed: int
    pending: int
    failed: int
    cancelled: int
    expired: int
    completed_amount_total: Decimal
    currency: str


@dataclass
class PricingSyncResult:
    record: PaymentRecord
    updated: bool
    previous_amount: Optional[Decimal] = None


class PaymentRecordService:

    def __init__(
        self,
        record_repo: Optional[PaymentRecordRepository] = None,
        validator: Optional[PricingValidator] = None,
    ):
        self.record_repo = record_repo or PaymentRecordRepository()
        self.validator = validator or PricingValidator()

    async def get_by_session_id(self, session: AsyncSession, session_id: str) -> PaymentRecord:
        record = await self.record_repo.get_by_session_id(session, session_id)
        if record is None:
            raise RecordNotFound(f"Payment record not found for session: {session_id}")
        return record

    async def list_by_customer_email(self, session: AsyncSession, email: str) -> Sequence[PaymentRecord]:
        return await self.record_repo.list_by_customer_email(session, email)

    async def list_by_status(
        self,
        session: AsyncSession,
        status: PaymentStatus,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[PaymentRecord]:
        return await self.record_repo.list_by_status(session, status, limit=limit, offset=offset)

    async def list_overdue(self, session: AsyncSession, now: Optional[datetime] = None) -> Sequence[PaymentRecord]:
        return await self.record_repo.list_overdue_pending(session, now)

    async def statistics(self, session: AsyncSession) -> PaymentStatistics:
        counts = await self.record_repo.status_counts(session)
        completed_total = await self.record_repo.completed_amount_total(session)
        return PaymentStatistics(
            total=sum(counts.values()),
            completed=counts[PaymentStatus.COMPLETED],
            pending=counts[PaymentStatus.PENDING],
            failed=counts[PaymentStatus.FAILED],
            cancelled=counts[PaymentStatus.CANCELLED],
            expired=counts[PaymentStatus.EXPIRED],
            completed_amount_total=completed_total,
            currency=get_payments_settings().payments_settlement_currency,
        )

    async def expire_stale(self, session: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Marca como EXPIRED los PENDING cuya ventana de Stripe venció y hace commit.

        Returns:
            Número de registros expirados
        """
        count = await self.record_repo.mark_overdue_expired(session, now or utcnow())
        await session.commit()
        observe_records_expired(count)
        if count:
            logger.info("Expired %s overdue pending payment records", count)
        return count

    async def sync_amount_with_pricing(self, session: AsyncSession, session_id: str) -> PricingSyncResult:
        """
        Ajusta el monto de un PENDING al total_price vigente de su PricingConfig.

        Registros terminales o con la ventana de Stripe vencida no se tocan
        (updated=False).

        Raises:
            RecordNotFound: no existe el registro
            ValidationError: el registro no tiene pricing_config_id
            ConfigNotFound: la configuración ya no existe
        """
        record = await self.record_repo.get_by_session_id(session, session_id, for_update=True)
        if record is None:
            raise RecordNotFound(f"Payment record not found for session: {session_id}")

        if record.status != PaymentStatus.PENDING:
            logger.warning(
                "Pricing sync skipped for session %s: record status is %s",
                session_id, record.status,
            )
            await session.commit()
            return PricingSyncResult(record=record, updated=False)

        if record.is_expired():
            logger.info("Pricing sync skipped for session %s: checkout window already closed", session_id)
            await session.commit()
            return PricingSyncResult(record=record, updated=False)

        if record.pricing_config_id is None:
            raise ValidationError("Payment record has no pricing config", field="pricing_config_id")

        expected = await self.validator.expected_price(session, record.pricing_config_id)
        previous = to_money(record.amount) if record.amount is not None else None
        if previous == expected:
            await session.commit()
            return PricingSyncResult(record=record, updated=False, previous_amount=previous)

        record.amount = expected
        await session.commit()
        logger.info(
            "Payment record %s amount synced with pricing config %s: %s -> %s",
            record.id, record.pricing_config_id, previous, expected,
        )
        return PricingSyncResult(record=record, updated=True, previous_amount=previous)


__all__ = [
    "PaymentRecordService",
    "PaymentStatistics",
    "PricingSyncResult",
]

# Fin del archivo backend/app/modules/payments/services/payment_record_service.py
