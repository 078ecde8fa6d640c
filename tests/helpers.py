# backend/tests/helpers.py
# -*- coding: utf-8 -*-
"""
Utilidades compartidas por la suite: eventos Stripe de prueba, firma
Stripe-Signature y relectura de filas desde BD.
"""

import hashlib
import hmac
import json
import os
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.models import PaymentRecord
from app.modules.registrations.models import RegistrationForm

WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "whsec_test_confpay")


async def fetch_record(session: AsyncSession, record_id: int) -> PaymentRecord:
    """Relee el registro desde BD (ignora el identity map)."""
    result = await session.execute(
        select(PaymentRecord)
        .where(PaymentRecord.id == record_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def fetch_registration(session: AsyncSession, registration_id: int) -> RegistrationForm:
    result = await session.execute(
        select(RegistrationForm)
        .where(RegistrationForm.id == registration_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def list_records(session: AsyncSession) -> List[PaymentRecord]:
    result = await session.execute(
        select(PaymentRecord).order_by(PaymentRecord.id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Header Stripe-Signature: t=<ts>,v1=HMAC_SHA256(secret, '<ts>.<payload>')."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def stripe_event(event_type: str, obj: Dict[str, Any], event_id: str = "evt_test_1") -> Dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    }


def session_completed_event(
    session_id: str = "cs_test_1",
    charge_id: Optional[str] = "ch_1",
    amount_total: Optional[int] = 4500,
    email: Optional[str] = "ana@example.org",
    metadata: Optional[Dict[str, str]] = None,
    event_id: str = "evt_session_completed",
) -> Dict[str, Any]:
    return stripe_event(
        "checkout.session.completed",
        {
            "id": session_id,
            "object": "checkout.session",
            "payment_intent": charge_id,
            "amount_total": amount_total,
            "currency": "eur",
            "customer_email": email,
            "payment_status": "paid",
            "status": "complete",
            "metadata": metadata or {},
        },
        event_id=event_id,
    )


def charge_event(
    event_type: str = "payment_intent.succeeded",
    charge_id: str = "ch_1",
    amount: int = 4500,
    email: Optional[str] = None,
    failure_message: Optional[str] = None,
    event_id: str = "evt_charge",
) -> Dict[str, Any]:
    obj: Dict[str, Any] = {
        "id": charge_id,
        "object": "payment_intent",
        "amount": amount,
        "amount_received": amount if event_type == "payment_intent.succeeded" else 0,
        "currency": "eur",
        "receipt_email": email,
        "status": "succeeded" if event_type == "payment_intent.succeeded" else "requires_payment_method",
        "metadata": {},
    }
    if failure_message is not None:
        obj["last_payment_error"] = {"message": failure_message}
    return stripe_event(event_type, obj, event_id=event_id)


def session_expired_event(session_id: str = "cs_test_1", event_id: str = "evt_session_expired") -> Dict[str, Any]:
    return stripe_event(
        "checkout.session.expired",
        {
            "id": session_id,
            "object": "checkout.session",
            "payment_intent": None,
            "amount_total": 4500,
            "currency": "eur",
            "payment_status": "unpaid",
            "status": "expired",
            "metadata": {},
        },
        event_id=event_id,
    )


def encode_event(event: Dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


