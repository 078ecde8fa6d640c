# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/records.py

Consultas y mantenimiento de payment_records.

Endpoints:
- GET  /payments/records/session/{session_id}
- GET  /payments/records/customer/{email}
- GET  /payments/records/status/{status}
- GET  /payments/records/overdue
- GET  /payments/records/statistics
- POST /payments/records/expire-stale
- POST /payments/records/session/{session_id}/sync-pricing

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.payments.enums import PaymentStatus
from app.modules.payments.schemas import (
    ExpireSweepOut,
    PaymentRecordOut,
    PaymentStatisticsOut,
    PricingSyncOut,
)
from app.modules.payments.services import PaymentRecordService

from .dependencies import get_record_service

router = APIRouter(
    prefix="/records",
    tags=["payments:records"],
)


@router.get("/session/{session_id}", response_model=PaymentRecordOut)
async def get_record_by_session(
    session_id: str,
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    return await service.get_by_session_id(session, session_id)


@router.get("/customer/{email}", response_model=List[PaymentRecordOut])
async def list_records_by_customer(
    email: str,
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    return list(await service.list_by_customer_email(session, email))


@router.get("/status/{status}", response_model=List[PaymentRecordOut])
async def list_records_by_status(
    status: PaymentStatus,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    return list(await service.list_by_status(session, status, limit=limit, offset=offset))


@router.get("/overdue", response_model=List[PaymentRecordOut])
async def list_overdue_records(
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    """PENDING cuya ventana de Stripe ya venció (aún no barridos)."""
    return list(await service.list_overdue(session))


@router.get("/statistics", response_model=PaymentStatisticsOut)
async def payment_statistics(
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    stats = await service.statistics(session)
    return PaymentStatisticsOut(**asdict(stats))


@router.post("/expire-stale", response_model=ExpireSweepOut)
async def expire_stale_records(
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    expired = await service.expire_stale(session)
    return ExpireSweepOut(expired=expired)


@router.post("/session/{session_id}/sync-pricing", response_model=PricingSyncOut)
async def sync_record_pricing(
    session_id: str,
    session: AsyncSession = Depends(get_async_session),
    service: PaymentRecordService = Depends(get_record_service),
):
    result = await service.sync_amount_with_pricing(session, session_id)
    return PricingSyncOut(
        record=PaymentRecordOut.model_validate(result.record),
        updated=result.updated,
        previous_amount=result.previous_amount,
    )


__all__ = ["router"]
