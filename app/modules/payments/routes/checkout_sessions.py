# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/checkout_sessions.py

Rutas de Checkout Sessions de Stripe.

Endpoints:
- POST /payments/checkout-sessions
- GET  /payments/checkout-sessions/{session_id}
- POST /payments/checkout-sessions/{session_id}/expire

La inscripción (registration_forms) se captura junto con el checkout en
modo best-effort: si falla, se registra en log y el checkout responde igual.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.database import get_async_session
from app.modules.payments.errors import PaymentsError
from app.modules.payments.metrics import observe_checkout_created, observe_checkout_rejected
from app.modules.payments.providers.stripe_gateway import PaymentGateway, get_stripe_gateway
from app.modules.payments.repositories import PaymentRecordRepository
from app.modules.payments.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentRecordOut,
    SessionDetailsResponse,
)
from app.modules.payments.services import CheckoutResult, CheckoutSessionCreator
from app.modules.registrations.repository import RegistrationFormRepository

from .dependencies import get_checkout_creator

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/checkout-sessions",
    tags=["payments:checkout"],
)


async def capture_registration(
    session: AsyncSession,
    payload: CheckoutRequest,
    result: CheckoutResult,
) -> Optional[int]:
    """Guarda la inscripción del checkout; nunca lanza."""
    if not payload.customer_email:
        return None
    try:
        registration = await RegistrationFormRepository().create_registration(
            session,
            email=str(payload.customer_email),
            name=payload.customer_name,
            phone=payload.customer_phone,
            institute_or_university=payload.customer_institute,
            country=payload.customer_country,
            pricing_config_id=payload.pricing_config_id,
            amount_paid=result.amount,
        )
        registration_id = registration.id
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.warning(
            "Registration capture failed for session %s (email=%s): %s",
            result.session_id, payload.customer_email, exc,
        )
        return None
    logger.info("Registration %s captured for checkout session %s", registration_id, result.session_id)
    return registration_id


@router.post(
    "",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_checkout_session(
    payload: CheckoutRequest,
    session: AsyncSession = Depends(get_async_session),
    creator: CheckoutSessionCreator = Depends(get_checkout_creator),
) -> CheckoutResponse:
    """
    Crea una Checkout Session validada contra pricing y persiste el PENDING.
    El frontend redirige al `url` devuelto.
    """
    try:
        result = await creator.create(session, payload)
    except PaymentsError as exc:
        observe_checkout_rejected(exc.error_code.lower())
        raise

    observe_checkout_created(result.record.currency or "")
    registration_id = await capture_registration(session, payload, result)

    return CheckoutResponse(
        session_id=result.session_id,
        url=result.url,
        payment_record_id=result.payment_record_id,
        status=result.status,
        registration_id=registration_id,
    )


@router.get(
    "/{session_id}",
    response_model=SessionDetailsResponse,
)
async def get_checkout_session(
    session_id: str,
    session: AsyncSession = Depends(get_async_session),
    gateway: PaymentGateway = Depends(get_stripe_gateway),
) -> SessionDetailsResponse:
    """Sesión de Stripe combinada con el registro local."""
    gateway_session = await gateway.retrieve_session(session_id)
    record = await PaymentRecordRepository().get_by_session_id(session, session_id)
    return SessionDetailsResponse(
        session=gateway_session.to_dict(),
        payment_record=PaymentRecordOut.model_validate(record).model_dump(mode="json") if record else None,
    )


@router.post(
    "/{session_id}/expire",
    response_model=SessionDetailsResponse,
)
async def expire_checkout_session(
    session_id: str,
    session: AsyncSession = Depends(get_async_session),
    gateway: PaymentGateway = Depends(get_stripe_gateway),
) -> SessionDetailsResponse:
    """
    Expira la sesión en Stripe. El registro local pasa a EXPIRED cuando llega
    el webhook checkout.session.expired.
    """
    gateway_session = await gateway.expire_session(session_id)
    logger.info("Checkout session %s expired at gateway (status=%s)", session_id, gateway_session.status)
    record = await PaymentRecordRepository().get_by_session_id(session, session_id)
    return SessionDetailsResponse(
        session=gateway_session.to_dict(),
        payment_record=PaymentRecordOut.model_validate(record).model_dump(mode="json") if record else None,
    )


__all__ = ["router", "capture_registration"]

# Fin del archivo backend/app/modules/payments/routes/checkout_sessions.py
