# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/reconciliation.py

Rutas para reconciliación de pagos.

Endpoint:
- GET /payments/reconciliation/report

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.payments.services import generate_reconciliation_report

router = APIRouter(
    prefix="/reconciliation",
    tags=["payments:reconciliation"],
)


@router.get("/report", response_model=Dict[str, Any])
async def reconciliation_report(
    since: Optional[datetime] = Query(None, description="Solo eventos recibidos desde esta fecha."),
    limit: int = Query(500, ge=1, le=5000, description="Máximo de eventos por sección."),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Mismatches de monto, eventos no emparejados y anomalías.
    Pensado para uso administrativo / monitoreo.
    """
    return await generate_reconciliation_report(session, since=since, limit=limit)


__all__ = ["router"]
# Fin del archivo backend/app/modules/payments/routes/reconciliation.py
