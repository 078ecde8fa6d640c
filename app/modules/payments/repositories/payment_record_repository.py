# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/payment_record_repository.py

Repositorio para la tabla payment_records (PaymentRecordStore).

Responsabilidades:
- Búsqueda por session_id / charge_id, opcionalmente con SELECT ... FOR UPDATE
- Escaneo de registros PENDING para el emparejamiento heurístico
- Alta idempotente ante carreras sobre el unique de session_id
- Consultas operativas y estadísticas

FOR UPDATE es no-op en SQLite; en PostgreSQL serializa los handlers que
tocan el mismo registro hasta el commit.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import PaymentStatus
from app.modules.payments.models import PaymentRecord
from app.modules.pricing.models import PricingConfig
from app.modules.payments.utils.datetime_helpers import utcnow

logger = logging.getLogger(__name__)


class PaymentRecordRepository(BaseRepository[PaymentRecord]):
    def __init__(self) -> None:
        super().__init__(PaymentRecord)

    # -----------------------------------------------------------
    # Búsquedas clave para la reconciliación
    # -----------------------------------------------------------
    async def get_by_session_id(
        self,
        session: AsyncSession,
        session_id: str,
        *,
        for_update: bool = False,
    ) -> Optional[PaymentRecord]:
        stmt = select(PaymentRecord).where(PaymentRecord.session_id == session_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_by_charge_id(
        self,
        session: AsyncSession,
        charge_id: str,
        *,
        for_update: bool = False,
    ) -> Optional[PaymentRecord]:
        stmt = select(PaymentRecord).where(PaymentRecord.charge_id == charge_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_pending(
        self,
        session: AsyncSession,
        *,
        for_update: bool = False,
    ) -> Sequence[PaymentRecord]:
        """PENDING sin charge asignado, del más reciente al más antiguo."""
        stmt = (
            select(PaymentRecord)
            .where(
                PaymentRecord.status == PaymentStatus.PENDING,
                PaymentRecord.charge_id.is_(None),
            )
            .order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().all()

    # -----------------------------------------------------------
    # Alta idempotente
    # -----------------------------------------------------------
    async def create_or_get_existing(
        self,
        session: AsyncSession,
        **fields: Any,
    ) -> tuple[PaymentRecord, bool]:
        """
        Inserta un registro; si otro worker ganó la carrera sobre el mismo
        session_id/charge_id, hace rollback y devuelve el existente.

        Returns:
            Tuple de (PaymentRecord, created: bool)
        """
        try:
            record = await self.create(session, **fields)
            return record, True
        except IntegrityError:
            session_id = fields.get("session_id")
            charge_id = fields.get("charge_id")
            logger.info(
                "Concurrent insert for session=%s charge=%s, fetching existing",
                session_id,
                charge_id,
            )
            await session.rollback()

            existing = None
            if session_id:
                existing = await self.get_by_session_id(session, session_id, for_update=True)
            if existing is None and charge_id:
                existing = await self.get_by_charge_id(session, charge_id, for_update=True)
            if existing is None:
                raise
            return existing, False

    # -----------------------------------------------------------
    # Consultas operativas
    # -----------------------------------------------------------
    async def list_by_customer_email(
        self,
        session: AsyncSession,
        email: str,
    ) -> Sequence[PaymentRecord]:
        stmt = (
            select(PaymentRecord)
            .where(PaymentRecord.customer_email == email)
            .order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_by_status(
        self,
        session: AsyncSession,
        status: PaymentStatus,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[PaymentRecord]:
        stmt = (
            select(PaymentRecord)
            .where(PaymentRecord.status == status)
            .order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_overdue_pending(
        self,
        session: AsyncSession,
        now: Optional[datetime] = None,
    ) -> Sequence[PaymentRecord]:
        """PENDING cuya ventana de Stripe (gateway_expires_at) ya venció."""
        stmt = (
            select(PaymentRecord)
            .where(
                PaymentRecord.status == PaymentStatus.PENDING,
                PaymentRecord.gateway_expires_at.is_not(None),
                PaymentRecord.gateway_expires_at < (now or utcnow()),
            )
            .order_by(PaymentRecord.gateway_expires_at.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def mark_overdue_expired(
        self,
        session: AsyncSession,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Bulk update PENDING vencidos → EXPIRED. No hace commit.

        Returns:
            Número de registros actualizados
        """
        now = now or utcnow()
        stmt = (
            update(PaymentRecord)
            .where(
                PaymentRecord.status == PaymentStatus.PENDING,
                PaymentRecord.gateway_expires_at.is_not(None),
                PaymentRecord.gateway_expires_at < now,
            )
            .values(
                status=PaymentStatus.EXPIRED,
                gateway_payment_status="expired",
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def status_counts(self, session: AsyncSession) -> dict[PaymentStatus, int]:
        stmt = select(PaymentRecord.status, func.count(PaymentRecord.id)).group_by(PaymentRecord.status)
        result = await session.execute(stmt)
        counts = {status: 0 for status in PaymentStatus}
        for status, count in result.all():
            counts[PaymentStatus(status)] = int(count)
        return counts

    async def completed_amount_total(self, session: AsyncSession) -> Decimal:
        stmt = select(func.coalesce(func.sum(PaymentRecord.amount), 0)).where(
            PaymentRecord.status == PaymentStatus.COMPLETED
        )
        result = await session.execute(stmt)
        return Decimal(str(result.scalar_one())).quantize(Decimal("0.01"))

    async def list_amount_mismatches(self, session: AsyncSession) -> Sequence[tuple[PaymentRecord, Decimal]]:
        """Registros con pricing_config_id cuyo monto difiere del total_price vigente."""
        stmt = (
            select(PaymentRecord, PricingConfig.total_price)
            .join(PricingConfig, PricingConfig.id == PaymentRecord.pricing_config_id)
            .where(
                PaymentRecord.amount.is_not(None),
                PaymentRecord.amount != PricingConfig.total_price,
            )
            .order_by(PaymentRecord.id.asc())
        )
        result = await session.execute(stmt)
        return [(record, Decimal(total)) for record, total in result.all()]


__all__ = ["PaymentRecordRepository"]

# Fin del archivo backend/app/modules/payments/repositories/payment_record_repository.py
