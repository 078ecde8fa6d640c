# backend/tests/conftest.py
# -*- coding: utf-8 -*-
"""
Config global de tests para ConfPay.

- Variables de entorno de test ANTES de importar la app
- Engine sqlite+aiosqlite en memoria por test (StaticPool: una sola conexión)
- Gateway Stripe falso (sin red)
- Cliente httpx con ciclo de vida (asgi-lifespan) y dependency_overrides
"""

import itertools
import os
from collections.abc import AsyncIterator
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

# -----------------------------------------------------------------------------
# 0) Entorno mínimo (antes de cualquier import de app.*)
# -----------------------------------------------------------------------------
os.environ["PYTHON_ENV"] = "test"
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_confpay"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_confpay"
os.environ["FRONTEND_URL"] = "http://localhost:5173"
os.environ["PAYMENTS_EXPIRE_SWEEP_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from asgi_lifespan import LifespanManager
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.shared.config.settings_payments import reset_payments_settings
from app.shared.database import Base
import app.modules.payments.models  # noqa: F401  registra todas las tablas
from app.modules.payments.errors import GatewayError
from app.modules.payments.models import PaymentRecord
from app.modules.payments.providers.stripe_gateway import GatewaySession
from app.modules.payments.utils.datetime_helpers import from_epoch, utcnow
from app.modules.pricing.models import PricingConfig
from app.modules.registrations.models import RegistrationForm


@pytest.fixture(autouse=True)
def _fresh_payments_settings():
    reset_payments_settings()
    yield
    reset_payments_settings()


# -----------------------------------------------------------------------------
# 1) Base de datos
# -----------------------------------------------------------------------------
@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_pricing(db):
    async def _make(total: str = "45.00", label: str = "Oral presentation") -> PricingConfig:
        config = PricingConfig(
            label=label,
            presentation_price=Decimal(total),
            accommodation_price=Decimal("0"),
            processing_fee_percent=Decimal("0"),
            total_price=Decimal(total),
        )
        db.add(config)
        await db.commit()
        return config

    return _make


@pytest.fixture
def make_record(db):
    async def _make(
        session_id: Optional[str] = "cs_test_1",
        *,
        amount: Optional[str] = "45.00",
        status: str = "PENDING",
        email: Optional[str] = "ana@example.org",
        pricing_config_id: Optional[int] = None,
        charge_id: Optional[str] = None,
        created_at=None,
        expires_at=None,
    ) -> PaymentRecord:
        record = PaymentRecord(
            session_id=session_id,
            charge_id=charge_id,
            customer_email=email,
            amount=Decimal(amount) if amount is not None else None,
            currency="eur",
            status=status,
            pricing_config_id=pricing_config_id,
            gateway_expires_at=expires_at,
        )
        if created_at is not None:
            record.created_at = created_at
        db.add(record)
        await db.commit()
        return record

    return _make


@pytest.fixture
def make_registration(db):
    async def _make(email: str = "ana@example.org", name: str = "Ana", created_at=None) -> RegistrationForm:
        registration = RegistrationForm(email=email, name=name)
        if created_at is not None:
            registration.created_at = created_at
        db.add(registration)
        await db.commit()
        return registration

    return _make


# -----------------------------------------------------------------------------
# 2) Gateway Stripe falso
# -----------------------------------------------------------------------------
class FakeGateway:
    """Implementa PaymentGateway en memoria y guarda los parámetros recibidos."""

    def __init__(self, fail: Optional[Exception] = None):
        self.fail = fail
        self.created: List[Dict[str, Any]] = []
        self.expired: List[str] = []
        self._ids = itertools.count(1)

    async def create_checkout_session(self, params: Mapping[str, Any]) -> GatewaySession:
        if self.fail is not None:
            raise self.fail
        self.created.append(dict(params))
        line = params["line_items"][0]
        return GatewaySession(
            session_id=f"cs_test_{next(self._ids)}",
            url="https://checkout.stripe.com/c/pay/cs_test",
            status="open",
            payment_status="unpaid",
            amount_total=line["price_data"]["unit_amount"] * line["quantity"],
            currency=line["price_data"]["currency"],
            customer_email=params.get("customer_email"),
            created=utcnow(),
            expires_at=from_epoch(params["expires_at"]),
            metadata=dict(params.get("metadata") or {}),
        )

    async def retrieve_session(self, session_id: str) -> GatewaySession:
        if self.fail is not None:
            raise self.fail
        return GatewaySession(session_id=session_id, status="open", payment_status="unpaid", currency="eur")

    async def expire_session(self, session_id: str) -> GatewaySession:
        if self.fail is not None:
            raise self.fail
        self.expired.append(session_id)
        return GatewaySession(session_id=session_id, status="expired", payment_status="unpaid", currency="eur")


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def failing_gateway() -> FakeGateway:
    return FakeGateway(fail=GatewayError("Stripe checkout.Session.create timed out"))


# -----------------------------------------------------------------------------
# 3) App FastAPI y cliente httpx
# -----------------------------------------------------------------------------
@pytest.fixture
def app(session_factory, fake_gateway):
    """App principal con sesión de BD y gateway sustituidos."""
    from app.main import app as fastapi_app
    from app.shared.database import get_async_session
    from app.modules.payments.providers.stripe_gateway import get_stripe_gateway

    async def _session_override():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_async_session] = _session_override
    fastapi_app.dependency_overrides[get_stripe_gateway] = lambda: fake_gateway
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
