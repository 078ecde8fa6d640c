# backend/tests/modules/payments/services/test_reconciliation_service.py
# -*- coding: utf-8 -*-
"""
Tests de PaymentReconciler.

Cubre reentregas (idempotencia), llegadas fuera de orden, conflictos entre
estados terminales, emparejamiento heurístico de charges y síntesis de
registros cuando no existe el PENDING.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.modules.payments.enums import PaymentStatus, WebhookOutcome
from app.modules.payments.models import PaymentRecord
from app.modules.payments.repositories import PaymentRecordRepository
from app.modules.payments.services import PaymentReconciler, select_best_pending
from app.modules.payments.utils.datetime_helpers import utcnow
from app.modules.payments.webhooks import parse_event
from tests.helpers import (
    charge_event,
    fetch_record,
    fetch_registration,
    list_records,
    session_completed_event,
    session_expired_event,
)


@pytest.fixture
def reconciler():
    return PaymentReconciler(settlement_currency="eur")


# ---------------------------------------------------------------------------
# select_best_pending
# ---------------------------------------------------------------------------
def test_select_best_pending_prefers_exact_amount():
    newest = PaymentRecord(id=2, amount=Decimal("30.00"))
    older = PaymentRecord(id=1, amount=Decimal("45.00"))

    assert select_best_pending([newest, older], Decimal("45.00")) is older
    assert select_best_pending([newest, older], Decimal("99.00")) is newest
    assert select_best_pending([newest, older], None) is newest
    assert select_best_pending([], Decimal("45.00")) is None


# ---------------------------------------------------------------------------
# checkout.session.completed
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_session_completed_marks_pending_completed(db, reconciler, make_pricing, make_record):
    config = await make_pricing("45.00")
    record = await make_record("cs_test_1", pricing_config_id=config.id)

    result = await reconciler.handle_session_completed(db, parse_event(session_completed_event("cs_test_1")))

    assert result.outcome == WebhookOutcome.APPLIED
    assert result.record_id == record.id
    assert result.amount_mismatch is None
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.COMPLETED
    assert stored.charge_id == "ch_1"
    assert stored.gateway_payment_status == "paid"


@pytest.mark.asyncio
async def test_session_completed_redelivery_is_duplicate(db, reconciler, make_record):
    record = await make_record("cs_test_1")
    event = parse_event(session_completed_event("cs_test_1"))

    first = await reconciler.handle_session_completed(db, event)
    second = await reconciler.handle_session_completed(db, event)

    assert first.outcome == WebhookOutcome.APPLIED
    assert second.outcome == WebhookOutcome.DUPLICATE
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.COMPLETED
    assert len(await list_records(db)) == 1


@pytest.mark.asyncio
async def test_session_completed_on_failed_record_is_anomaly(db, reconciler, make_record):
    record = await make_record("cs_test_1", status=PaymentStatus.FAILED)

    result = await reconciler.handle_session_completed(db, parse_event(session_completed_event("cs_test_1")))

    assert result.outcome == WebhookOutcome.ANOMALY
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.FAILED
    assert stored.charge_id is None


@pytest.mark.asyncio
async def test_session_completed_without_record_synthesizes(db, reconciler, make_pricing):
    config = await make_pricing("45.00")
    event = parse_event(
        session_completed_event("cs_unknown", metadata={"pricingConfigId": str(config.id)}),
    )

    result = await reconciler.handle_session_completed(db, event)

    assert result.outcome == WebhookOutcome.SYNTHESIZED
    records = await list_records(db)
    assert len(records) == 1
    synthesized = records[0]
    assert synthesized.session_id == "cs_unknown"
    assert synthesized.charge_id == "ch_1"
    assert synthesized.status == PaymentStatus.COMPLETED
    assert synthesized.amount == Decimal("45.00")
    assert synthesized.customer_email == "ana@example.org"
    assert synthesized.pricing_config_id == config.id

    again = await reconciler.handle_session_completed(db, event)
    assert again.outcome == WebhookOutcome.DUPLICATE
    assert len(await list_records(db)) == 1


@pytest.mark.asyncio
async def test_synthesis_drops_unknown_pricing_config(db, reconciler):
    event = parse_event(session_completed_event("cs_unknown", metadata={"pricingConfigId": "999"}))

    result = await reconciler.handle_session_completed(db, event)

    assert result.outcome == WebhookOutcome.SYNTHESIZED
    assert (await list_records(db))[0].pricing_config_id is None


@pytest.mark.asyncio
async def test_session_completed_with_wrong_amount_is_logged_not_rejected(db, reconciler, make_pricing, make_record):
    config = await make_pricing("45.00")
    record = await make_record("cs_test_1", amount="50.00", pricing_config_id=config.id)

    result = await reconciler.handle_session_completed(
        db, parse_event(session_completed_event("cs_test_1", amount_total=5000)),
    )

    assert result.outcome == WebhookOutcome.APPLIED
    assert result.amount_mismatch is not None
    assert result.amount_mismatch.expected == Decimal("45.00")
    assert result.amount_mismatch.received == Decimal("50.00")
    assert (await fetch_record(db, record.id)).status == PaymentStatus.COMPLETED


@pytest.mark.asyncio
async def test_charged_amount_differing_from_pricing_is_reported(db, reconciler, make_pricing, make_record):
    config = await make_pricing("45.00")
    record = await make_record("cs_test_1", amount="45.00", pricing_config_id=config.id)

    result = await reconciler.handle_session_completed(
        db, parse_event(session_completed_event("cs_test_1", amount_total=5000)),
    )

    assert result.outcome == WebhookOutcome.APPLIED
    assert result.amount_mismatch is not None
    assert result.amount_mismatch.expected == Decimal("45.00")
    assert result.amount_mismatch.received == Decimal("50.00")
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.COMPLETED
    assert stored.amount == Decimal("45.00")


@pytest.mark.asyncio
async def test_charged_amount_without_pricing_is_checked_against_stored_amount(db, reconciler, make_record):
    record = await make_record("cs_test_1", amount="45.00")

    result = await reconciler.handle_charge_succeeded(db, parse_event(charge_event(charge_id="ch_9", amount=4000)))

    assert result.outcome == WebhookOutcome.MATCHED
    assert result.record_id == record.id
    assert result.amount_mismatch.expected == Decimal("45.00")
    assert result.amount_mismatch.received == Decimal("40.00")


@pytest.mark.asyncio
async def test_backfill_never_overwrites(db, reconciler, make_record):
    record = await make_record("cs_test_1", amount=None, email="ana@example.org")

    await reconciler.handle_session_completed(
        db, parse_event(session_completed_event("cs_test_1", amount_total=4500, email="other@example.org")),
    )

    stored = await fetch_record(db, record.id)
    assert stored.amount == Decimal("45.00")
    assert stored.customer_email == "ana@example.org"


# ---------------------------------------------------------------------------
# payment_intent.succeeded
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_duplicate_charge_succeeded_is_idempotent(db, reconciler, make_record):
    record = await make_record("cs_test_1", charge_id="ch_1")
    event = parse_event(charge_event(charge_id="ch_1", amount=4500))

    first = await reconciler.handle_charge_succeeded(db, event)
    second = await reconciler.handle_charge_succeeded(db, event)

    assert first.outcome == WebhookOutcome.APPLIED
    assert second.outcome == WebhookOutcome.DUPLICATE
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.COMPLETED
    assert stored.gateway_payment_status == "succeeded"
    assert len(await list_records(db)) == 1


@pytest.mark.asyncio
async def test_charge_fallback_prefers_matching_amount(db, reconciler, make_record):
    now = utcnow()
    cheap = await make_record("cs_cheap", amount="30.00", created_at=now)
    exact = await make_record("cs_exact", amount="45.00", created_at=now - timedelta(minutes=5))

    result = await reconciler.handle_charge_succeeded(db, parse_event(charge_event(charge_id="ch_9", amount=4500)))

    assert result.outcome == WebhookOutcome.MATCHED
    assert result.record_id == exact.id
    assert (await fetch_record(db, exact.id)).charge_id == "ch_9"
    assert (await fetch_record(db, exact.id)).status == PaymentStatus.COMPLETED
    assert (await fetch_record(db, cheap.id)).status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_charge_fallback_uses_most_recent_when_no_amount_matches(db, reconciler, make_record):
    now = utcnow()
    older = await make_record("cs_old", amount="30.00", created_at=now - timedelta(minutes=10))
    newer = await make_record("cs_new", amount="60.00", created_at=now)

    result = await reconciler.handle_charge_succeeded(db, parse_event(charge_event(charge_id="ch_9", amount=4500)))

    assert result.outcome == WebhookOutcome.MATCHED
    assert result.record_id == newer.id
    assert (await fetch_record(db, older.id)).status == PaymentStatus.PENDING


@pytest.mark.asyncio
async def test_charge_without_pending_synthesizes(db, reconciler):
    result = await reconciler.handle_charge_succeeded(
        db, parse_event(charge_event(charge_id="ch_orphan", amount=4500, email="ana@example.org")),
    )

    assert result.outcome == WebhookOutcome.SYNTHESIZED
    records = await list_records(db)
    assert len(records) == 1
    assert records[0].session_id is None
    assert records[0].charge_id == "ch_orphan"
    assert records[0].status == PaymentStatus.COMPLETED
    assert records[0].amount == Decimal("45.00")


@pytest.mark.asyncio
async def test_charge_succeeded_before_session_completed(db, reconciler, make_record):
    record = await make_record("cs_test_1")

    by_charge = await reconciler.handle_charge_succeeded(db, parse_event(charge_event(charge_id="ch_1")))
    by_session = await reconciler.handle_session_completed(db, parse_event(session_completed_event("cs_test_1")))

    assert by_charge.outcome == WebhookOutcome.MATCHED
    assert by_session.outcome == WebhookOutcome.DUPLICATE
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.COMPLETED
    assert stored.charge_id == "ch_1"
    assert len(await list_records(db)) == 1


# ---------------------------------------------------------------------------
# payment_intent.payment_failed
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_charge_failed_marks_pending_failed(db, reconciler, make_record):
    record = await make_record("cs_test_1", charge_id="ch_1")

    result = await reconciler.handle_charge_failed(
        db, parse_event(charge_event("payment_intent.payment_failed", charge_id="ch_1", failure_message="Card declined")),
    )

    assert result.outcome == WebhookOutcome.APPLIED
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.FAILED
    assert stored.failure_reason == "Card declined"


@pytest.mark.asyncio
async def test_charge_failed_after_completed_is_anomaly(db, reconciler, make_record):
    record = await make_record("cs_test_1", charge_id="ch_1", status=PaymentStatus.COMPLETED)

    result = await reconciler.handle_charge_failed(
        db, parse_event(charge_event("payment_intent.payment_failed", charge_id="ch_1", failure_message="late")),
    )

    assert result.outcome == WebhookOutcome.ANOMALY
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.COMPLETED
    assert stored.failure_reason is None


@pytest.mark.asyncio
async def test_charge_failed_for_unknown_charge_is_discarded(db, reconciler):
    result = await reconciler.handle_charge_failed(
        db, parse_event(charge_event("payment_intent.payment_failed", charge_id="ch_nope")),
    )

    assert result.outcome == WebhookOutcome.DISCARDED
    assert await list_records(db) == []


# ---------------------------------------------------------------------------
# checkout.session.expired
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_session_expired_marks_pending_expired(db, reconciler, make_record):
    record = await make_record("cs_test_1")

    result = await reconciler.handle_session_expired(db, parse_event(session_expired_event("cs_test_1")))

    assert result.outcome == WebhookOutcome.APPLIED
    stored = await fetch_record(db, record.id)
    assert stored.status == PaymentStatus.EXPIRED
    assert stored.gateway_payment_status == "unpaid"


@pytest.mark.asyncio
async def test_session_expired_after_completed_keeps_completed(db, reconciler, make_record):
    record = await make_record("cs_test_1")
    await reconciler.handle_session_completed(db, parse_event(session_completed_event("cs_test_1")))

    result = await reconciler.handle_session_expired(db, parse_event(session_expired_event("cs_test_1")))

    assert result.outcome == WebhookOutcome.ANOMALY
    assert (await fetch_record(db, record.id)).status == PaymentStatus.COMPLETED


@pytest.mark.asyncio
async def test_session_expired_for_unknown_session_is_discarded(db, reconciler):
    result = await reconciler.handle_session_expired(db, parse_event(session_expired_event("cs_nope")))
    assert result.outcome == WebhookOutcome.DISCARDED


# ---------------------------------------------------------------------------
# Enlace con inscripciones
# ---------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_completion_links_registration_once(db, reconciler, make_record, make_registration):
    registration = await make_registration("ana@example.org")
    record = await make_record("cs_test_1", email="ana@example.org")

    await reconciler.handle_session_completed(db, parse_event(session_completed_event("cs_test_1")))
    duplicate = await reconciler.handle_charge_succeeded(db, parse_event(charge_event(charge_id="ch_1")))

    assert duplicate.outcome == WebhookOutcome.DUPLICATE
    stored = await fetch_record(db, record.id)
    linked = await fetch_registration(db, registration.id)
    assert stored.registration_id == registration.id
    assert linked.payment_record_id == record.id


@pytest.mark.asyncio
async def test_failed_payment_is_not_linked(db, reconciler, make_record, make_registration):
    registration = await make_registration("ana@example.org")
    record = await make_record("cs_test_1", charge_id="ch_1")

    await reconciler.handle_charge_failed(
        db, parse_event(charge_event("payment_intent.payment_failed", charge_id="ch_1")),
    )

    assert (await fetch_record(db, record.id)).registration_id is None
    assert (await fetch_registration(db, registration.id)).payment_record_id is None


# ---------------------------------------------------------------------------
# Inserciones concurrentes del mismo registro sintetizado
# ---------------------------------------------------------------------------
class _RacingRecordRepository(PaymentRecordRepository):
    """Las primeras búsquedas no ven el registro que otro worker insertó en paralelo."""

    def __init__(self, *, session_misses: int = 0, charge_misses: int = 0):
        super().__init__()
        self.session_misses = session_misses
        self.charge_misses = charge_misses

    async def get_by_session_id(self, session, session_id, *, for_update=False):
        if self.session_misses:
            self.session_misses -= 1
            return None
        return await super().get_by_session_id(session, session_id, for_update=for_update)

    async def get_by_charge_id(self, session, charge_id, *, for_update=False):
        if self.charge_misses:
            self.charge_misses -= 1
            return None
        return await super().get_by_charge_id(session, charge_id, for_update=for_update)


@pytest.mark.asyncio
async def test_concurrent_session_synthesis_resolves_to_existing_record(db, make_record):
    existing = await make_record("cs_race", charge_id="ch_race", status=PaymentStatus.COMPLETED)
    existing_id = existing.id
    repo = _RacingRecordRepository(session_misses=1, charge_misses=1)
    reconciler = PaymentReconciler(record_repo=repo, settlement_currency="eur")

    result = await reconciler.handle_session_completed(
        db, parse_event(session_completed_event("cs_race", charge_id="ch_race")),
    )

    assert result.outcome == WebhookOutcome.DUPLICATE
    assert result.record_id == existing_id
    assert repo.session_misses == 0 and repo.charge_misses == 0
    records = await list_records(db)
    assert [r.id for r in records] == [existing_id]


@pytest.mark.asyncio
async def test_concurrent_charge_synthesis_resolves_to_existing_record(db, make_record):
    existing = await make_record(None, charge_id="ch_race", status=PaymentStatus.COMPLETED)
    existing_id = existing.id
    repo = _RacingRecordRepository(charge_misses=1)
    reconciler = PaymentReconciler(record_repo=repo, settlement_currency="eur")

    result = await reconciler.handle_charge_succeeded(db, parse_event(charge_event(charge_id="ch_race")))

    assert result.outcome == WebhookOutcome.DUPLICATE
    assert result.record_id == existing_id
    records = await list_records(db)
    assert [r.id for r in records] == [existing_id]
    assert records[0].status == PaymentStatus.COMPLETED
