# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/webhook_event_repository.py

Repositorio de la bitácora payment_webhook_events.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.enums import WebhookOutcome
from app.modules.payments.models import WebhookEventLog


class WebhookEventRepository(BaseRepository[WebhookEventLog]):
    def __init__(self) -> None:
        super().__init__(WebhookEventLog)

    async def list_by_outcomes(
        self,
        session: AsyncSession,
        outcomes: Iterable[WebhookOutcome],
        *,
        since: Optional[datetime] = None,
        limit: int = 500,
    ) -> Sequence[WebhookEventLog]:
        stmt = select(WebhookEventLog).where(WebhookEventLog.outcome.in_(list(outcomes)))
        if since is not None:
            stmt = stmt.where(WebhookEventLog.received_at >= since)
        stmt = stmt.order_by(WebhookEventLog.received_at.desc(), WebhookEventLog.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_amount_mismatches(
        self,
        session: AsyncSession,
        *,
        since: Optional[datetime] = None,
        limit: int = 500,
    ) -> Sequence[WebhookEventLog]:
        """Eventos cuyo monto cobrado no coincidió con el esperado."""
        stmt = select(WebhookEventLog).where(WebhookEventLog.charged_amount.is_not(None))
        if since is not None:
            stmt = stmt.where(WebhookEventLog.received_at >= since)
        stmt = stmt.order_by(WebhookEventLog.received_at.desc(), WebhookEventLog.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_by_event_id(self, session: AsyncSession, event_id: str) -> Sequence[WebhookEventLog]:
        stmt = (
            select(WebhookEventLog)
            .where(WebhookEventLog.event_id == event_id)
            .order_by(WebhookEventLog.id.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()


__all__ = ["WebhookEventRepository"]
