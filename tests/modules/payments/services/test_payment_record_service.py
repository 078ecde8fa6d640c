# backend/tests/modules/payments/services/test_payment_record_service.py
# -*- coding: utf-8 -*-
"""
Tests de PaymentRecordService: consultas, estadísticas, barrido de
vencidos y sincronización de montos con pricing.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.modules.payments.enums import PaymentStatus
from app.modules.payments.errors import RecordNotFound, ValidationError
from app.modules.payments.services import PaymentRecordService
from app.modules.payments.utils.datetime_helpers import utcnow
from tests.helpers import fetch_record


@pytest.fixture
def service():
    return PaymentRecordService()


@pytest.mark.asyncio
async def test_get_by_session_id(db, service, make_record):
    record = await make_record("cs_test_1")

    assert (await service.get_by_session_id(db, "cs_test_1")).id == record.id
    with pytest.raises(RecordNotFound):
        await service.get_by_session_id(db, "cs_missing")


@pytest.mark.asyncio
async def test_listings(db, service, make_record):
    await make_record("cs_a", email="ana@example.org")
    await make_record("cs_b", email="ana@example.org", status=PaymentStatus.COMPLETED)
    await make_record("cs_c", email="luis@example.org", status=PaymentStatus.COMPLETED)

    by_email = await service.list_by_customer_email(db, "ana@example.org")
    completed = await service.list_by_status(db, PaymentStatus.COMPLETED)

    assert {r.session_id for r in by_email} == {"cs_a", "cs_b"}
    assert {r.session_id for r in completed} == {"cs_b", "cs_c"}
    assert len(await service.list_by_status(db, PaymentStatus.COMPLETED, limit=1)) == 1


@pytest.mark.asyncio
async def test_statistics(db, service, make_record):
    await make_record("cs_a", amount="45.00", status=PaymentStatus.COMPLETED)
    await make_record("cs_b", amount="120.50", status=PaymentStatus.COMPLETED)
    await make_record("cs_c", status=PaymentStatus.PENDING)
    await make_record("cs_d", status=PaymentStatus.FAILED)

    stats = await service.statistics(db)

    assert stats.total == 4
    assert stats.completed == 2
    assert stats.pending == 1
    assert stats.failed == 1
    assert stats.expired == 0
    assert stats.completed_amount_total == Decimal("165.50")
    assert stats.currency == "eur"


@pytest.mark.asyncio
async def test_expire_stale_only_touches_overdue_pending(db, service, make_record):
    now = utcnow()
    overdue = await make_record("cs_overdue", expires_at=now - timedelta(minutes=1))
    fresh = await make_record("cs_fresh", expires_at=now + timedelta(minutes=20))
    done = await make_record("cs_done", status=PaymentStatus.COMPLETED, expires_at=now - timedelta(hours=1))

    assert [r.id for r in await service.list_overdue(db, now)] == [overdue.id]
    assert await service.expire_stale(db, now=now) == 1

    assert (await fetch_record(db, overdue.id)).status == PaymentStatus.EXPIRED
    assert (await fetch_record(db, fresh.id)).status == PaymentStatus.PENDING
    assert (await fetch_record(db, done.id)).status == PaymentStatus.COMPLETED
    assert await service.expire_stale(db, now=now) == 0


@pytest.mark.asyncio
async def test_sync_skips_pending_with_closed_checkout_window(db, service, make_pricing, make_record):
    config = await make_pricing("45.00")
    await make_record(
        "cs_late", amount="50.00", pricing_config_id=config.id, expires_at=utcnow() - timedelta(minutes=5),
    )

    result = await service.sync_amount_with_pricing(db, "cs_late")

    assert result.updated is False
    assert result.record.amount == Decimal("50.00")
    assert result.record.is_expired()


@pytest.mark.asyncio
async def test_sync_amount_with_pricing(db, service, make_pricing, make_record):
    config = await make_pricing("45.00")
    await make_record("cs_test_1", amount="50.00", pricing_config_id=config.id)

    result = await service.sync_amount_with_pricing(db, "cs_test_1")

    assert result.updated is True
    assert result.previous_amount == Decimal("50.00")
    assert result.record.amount == Decimal("45.00")

    again = await service.sync_amount_with_pricing(db, "cs_test_1")
    assert again.updated is False


@pytest.mark.asyncio
async def test_sync_skips_terminal_and_requires_config(db, service, make_pricing, make_record):
    config = await make_pricing("45.00")
    await make_record("cs_done", amount="50.00", pricing_config_id=config.id, status=PaymentStatus.COMPLETED)
    await make_record("cs_no_config", amount="50.00")

    result = await service.sync_amount_with_pricing(db, "cs_done")
    assert result.updated is False
    assert result.record.amount == Decimal("50.00")

    with pytest.raises(ValidationError):
        await service.sync_amount_with_pricing(db, "cs_no_config")
    with pytest.raises(RecordNotFound):
        await service.sync_amount_with_pricing(db, "cs_missing")
