# backend/tests/modules/registrations/test_linker_service.py
# -*- coding: utf-8 -*-
"""
Tests de RegistrationLinker: enlace 1:1, idempotencia y conflictos.
"""

from datetime import timedelta

import pytest
from sqlalchemy import inspect

from app.modules.payments.enums import PaymentStatus
from app.modules.payments.utils.datetime_helpers import utcnow
from app.modules.registrations.services import LinkOutcome, RegistrationLinker
from tests.helpers import fetch_record, fetch_registration


@pytest.fixture
def linker():
    return RegistrationLinker()


@pytest.mark.asyncio
async def test_links_completed_payment_to_registration(db, linker, make_record, make_registration):
    registration = await make_registration("ana@example.org")
    record = await make_record("cs_test_1", status=PaymentStatus.COMPLETED)

    assert await linker.link(db, record.id) == LinkOutcome.LINKED
    assert await linker.link(db, record.id) == LinkOutcome.ALREADY_LINKED

    assert (await fetch_record(db, record.id)).registration_id == registration.id
    assert (await fetch_registration(db, registration.id)).payment_record_id == record.id


@pytest.mark.asyncio
async def test_links_most_recent_registration_for_email(db, linker, make_record, make_registration):
    now = utcnow()
    old = await make_registration("ana@example.org", name="Ana (old)", created_at=now - timedelta(days=2))
    recent = await make_registration("ana@example.org", name="Ana", created_at=now)
    record = await make_record("cs_test_1", status=PaymentStatus.COMPLETED)

    assert await linker.link(db, record.id) == LinkOutcome.LINKED

    assert (await fetch_record(db, record.id)).registration_id == recent.id
    assert (await fetch_registration(db, old.id)).payment_record_id is None


@pytest.mark.asyncio
async def test_pending_payment_is_not_linked(db, linker, make_record, make_registration):
    registration = await make_registration("ana@example.org")
    record = await make_record("cs_test_1")

    assert await linker.link(db, record.id) == LinkOutcome.NOT_COMPLETED
    assert (await fetch_registration(db, registration.id)).payment_record_id is None


@pytest.mark.asyncio
async def test_missing_email_or_registration(db, linker, make_record):
    no_email = await make_record("cs_test_1", status=PaymentStatus.COMPLETED, email=None)
    nobody = await make_record("cs_test_2", status=PaymentStatus.COMPLETED, email="nobody@example.org")

    assert await linker.link(db, no_email.id) == LinkOutcome.NO_EMAIL
    assert await linker.link(db, nobody.id) == LinkOutcome.NO_REGISTRATION
    assert await linker.link(db, 987654) == LinkOutcome.NOT_COMPLETED


@pytest.mark.asyncio
async def test_registration_linked_elsewhere_is_a_conflict(db, linker, make_record, make_registration):
    registration = await make_registration("ana@example.org")
    first = await make_record("cs_test_1", status=PaymentStatus.COMPLETED)
    second = await make_record("cs_test_2", status=PaymentStatus.COMPLETED)

    assert await linker.link(db, first.id) == LinkOutcome.LINKED
    assert await linker.link(db, second.id) == LinkOutcome.CONFLICT

    assert (await fetch_registration(db, registration.id)).payment_record_id == first.id
    assert (await fetch_record(db, second.id)).registration_id is None


@pytest.mark.asyncio
async def test_noop_outcomes_keep_caller_objects_loaded(db, linker, make_record, make_registration):
    registration = await make_registration("bea@example.org")
    pending = await make_record("cs_test_1")
    orphan = await make_record("cs_test_2", status=PaymentStatus.COMPLETED, email="nobody@example.org")

    assert await linker.link(db, pending.id) == LinkOutcome.NOT_COMPLETED
    assert await linker.link(db, orphan.id) == LinkOutcome.NO_REGISTRATION

    for obj in (registration, pending, orphan):
        assert not inspect(obj).expired_attributes
    assert pending.status == PaymentStatus.PENDING
    assert orphan.customer_email == "nobody@example.org"
    assert registration.payment_record_id is None
