# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/checkout_service.py

CheckoutSessionCreator: única vía que crea registros PENDING.

Flujo:
1) PricingValidator (moneda + monto exacto contra PricingConfig)
2) Stripe Checkout Session con el monto validado, expiración fija y metadata
3) Solo si Stripe respondió OK: INSERT de PaymentRecord PENDING + commit

Si Stripe falla no se persiste nada y el GatewayError sube intacto.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payments import PaymentsSettings, get_payments_settings
from app.modules.payments.enums import PaymentStatus
from app.modules.payments.errors import ValidationError
from app.modules.payments.models import PaymentRecord
from app.modules.payments.providers.stripe_gateway import GatewaySession, PaymentGateway, get_stripe_gateway
from app.modules.payments.repositories import PaymentRecordRepository
from app.modules.payments.schemas import CheckoutRequest
from app.modules.payments.services.pricing_validator import PricingValidator
from app.modules.payments.utils.datetime_helpers import utcnow

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    """Resultado de crear una sesión de checkout."""
    session_id: str
    url: Optional[str]
    payment_record_id: int
    status: PaymentStatus
    amount: Decimal
    record: PaymentRecord


def _string_metadata(values: Dict[str, Any]) -> Dict[str, str]:
    """Stripe solo acepta strings en metadata; se omiten los vacíos."""
    return {k: str(v) for k, v in values.items() if v is not None and str(v) != ""}


class CheckoutSessionCreator:
    """
    Crea Checkout Sessions de Stripe validadas contra la fuente de precios.

    Args:
        gateway: cliente de Stripe (default: StripeGateway singleton)
        validator: PricingValidator (default: repositorio SQL)
        record_repo: repositorio de payment_records
        settings: PaymentsSettings (default: singleton)
    """

    def __init__(
        self,
        gateway: Optional[PaymentGateway] = None,
        validator: Optional[PricingValidator] = None,
        record_repo: Optional[PaymentRecordRepository] = None,
        settings: Optional[PaymentsSettings] = None,
    ):
        self.settings = settings or get_payments_settings()
        self.gateway = gateway or get_stripe_gateway()
        self.validator = validator or PricingValidator(
            settlement_currency=self.settings.payments_settlement_currency,
        )
        self.record_repo = record_repo or PaymentRecordRepository()

    def _redirect_urls(self, request: CheckoutRequest) -> tuple[str, str]:
        base = (self.settings.frontend_url or "").rstrip("/")
        success_url = str(request.success_url) if request.success_url else None
        cancel_url = str(request.cancel_url) if request.cancel_url else None
        if not success_url:
            if not base:
                raise ValidationError("success_url is required when FRONTEND_URL is not configured", field="success_url")
            success_url = f"{base}/payment/success?session_id={{CHECKOUT_SESSION_ID}}"
        if not cancel_url:
            if not base:
                raise ValidationError("cancel_url is required when FRONTEND_URL is not configured", field="cancel_url")
            cancel_url = f"{base}/payment/cancel"
        return success_url, cancel_url

    def build_session_params(
        self,
        request: CheckoutRequest,
        *,
        currency: str,
        success_url: str,
        cancel_url: str,
        expires_at: int,
    ) -> Dict[str, Any]:
        """Parámetros de stripe.checkout.Session.create."""
        product_data: Dict[str, Any] = {"name": request.product_name}
        if request.description:
            product_data["description"] = request.description

        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": request.unit_amount,
                        "product_data": product_data,
                    },
                    "quantity": request.quantity,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "expires_at": expires_at,
            "metadata": _string_metadata({
                "productName": request.product_name,
                "orderReference": request.order_reference,
                "pricingConfigId": request.pricing_config_id,
                "customerName": request.customer_name,
                "customerPhone": request.customer_phone,
                "customerInstitute": request.customer_institute,
                "customerCountry": request.customer_country,
                "source": "confpay_registration",
            }),
        }
        if request.customer_email:
            params["customer_email"] = str(request.customer_email)
        return params

    async def create(self, session: AsyncSession, request: CheckoutRequest) -> CheckoutResult:
        """
        Valida, crea la sesión en Stripe y persiste el registro PENDING.

        Raises:
            ValidationError, UnsupportedCurrency, ConfigNotFound, AmountMismatch: antes de tocar Stripe
            GatewayError: Stripe falló; no se persiste nada
        """
        currency = self.validator.resolve_currency(request.currency)
        amount = await self.validator.validate(
            session,
            unit_amount=request.unit_amount,
            quantity=request.quantity,
            pricing_config_id=request.pricing_config_id,
            currency=currency,
        )
        success_url, cancel_url = self._redirect_urls(request)

        now = utcnow()
        expires_at = now + timedelta(minutes=self.settings.payment_session_timeout_minutes)
        params = self.build_session_params(
            request,
            currency=currency,
            success_url=success_url,
            cancel_url=cancel_url,
            expires_at=int(expires_at.timestamp()),
        )

        logger.info(
            "Creating checkout session: pricing_config=%s amount=%s email=%s order=%s",
            request.pricing_config_id, amount, request.customer_email, request.order_reference,
        )
        # La transacción de lectura del validador no debe quedar abierta durante la llamada a Stripe
        if session.in_transaction():
            await session.commit()

        gateway_session: GatewaySession = await self.gateway.create_checkout_session(params)

        try:
            record = await self.record_repo.create(
                session,
                session_id=gateway_session.session_id,
                customer_email=str(request.customer_email) if request.customer_email else None,
                amount=amount,
                currency=(gateway_session.currency or currency).lower(),
                status=PaymentStatus.PENDING,
                gateway_payment_status=gateway_session.payment_status,
                pricing_config_id=request.pricing_config_id,
                gateway_created_at=gateway_session.created or now,
                gateway_expires_at=gateway_session.expires_at or expires_at,
            )
            await session.commit()
        except Exception:
            await session.rollback()
            logger.error(
                "Stripe session %s created but local record could not be persisted; "
                "it will be synthesized if a completion webhook arrives",
                gateway_session.session_id,
            )
            raise

        logger.info(
            "Checkout session persisted: record=%s session=%s amount=%s",
            record.id, record.session_id, record.amount,
        )
        return CheckoutResult(
            session_id=gateway_session.session_id,
            url=gateway_session.url,
            payment_record_id=record.id,
            status=PaymentStatus(record.status),
            amount=amount,
            record=record,
        )


__all__ = ["CheckoutSessionCreator", "CheckoutResult"]
