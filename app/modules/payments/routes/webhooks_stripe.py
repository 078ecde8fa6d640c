# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/webhooks_stripe.py

Webhook de Stripe.

Endpoint:
- POST /payments/webhooks/stripe

Firma inválida o header ausente → 400; secret no configurado → 500.
Cualquier evento verificado → 200, aunque su procesamiento haya fallado.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.payments.webhooks.dispatcher import WebhookDispatcher

from .dependencies import get_webhook_dispatcher

router = APIRouter(
    prefix="/webhooks",
    tags=["payments:webhooks"],
)


@router.post("/stripe", status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    dispatcher: WebhookDispatcher = Depends(get_webhook_dispatcher),
) -> Dict[str, Any]:
    raw_body = await request.body()
    sig_header = request.headers.get("Stripe-Signature")
    return await dispatcher.handle(session, raw_body, sig_header)


__all__ = ["router"]
