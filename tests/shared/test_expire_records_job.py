# backend/tests/shared/test_expire_records_job.py
# -*- coding: utf-8 -*-
"""
Tests del job de barrido de payment_records vencidos.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.modules.payments.enums import PaymentStatus
from app.modules.payments.utils.datetime_helpers import utcnow
from app.shared.scheduler.jobs import JOB_ID, expire_overdue_payment_records, register_expire_records_job
from tests.helpers import fetch_record


@pytest.mark.asyncio
async def test_job_expires_overdue_records(db, session_factory, make_record):
    overdue = await make_record("cs_overdue", expires_at=utcnow() - timedelta(minutes=1))

    result = await expire_overdue_payment_records(scope_factory=session_factory)

    assert result["expired"] == 1
    assert "error" not in result
    assert (await fetch_record(db, overdue.id)).status == PaymentStatus.EXPIRED


@pytest.mark.asyncio
async def test_job_reports_database_errors():
    class _BrokenScope:
        async def __aenter__(self):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        async def __aexit__(self, *exc):
            return False

    result = await expire_overdue_payment_records(scope_factory=_BrokenScope)

    assert result["expired"] == 0
    assert result["error"] is True


def test_register_uses_configured_interval(monkeypatch):
    monkeypatch.setenv("PAYMENTS_EXPIRE_SWEEP_INTERVAL_MINUTES", "7")
    scheduler = MagicMock()

    assert register_expire_records_job(scheduler) == JOB_ID
    scheduler.add_interval_job.assert_called_once_with(
        func=expire_overdue_payment_records,
        job_id=JOB_ID,
        minutes=7,
    )
