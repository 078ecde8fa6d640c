# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/reconciliation_service.py

PaymentReconciler: máquina de estados que aplica eventos de webhook sobre
PaymentRecord.

Estados: PENDING → {COMPLETED, FAILED, CANCELLED, EXPIRED}. Los terminales
no transicionan: reaplicar el mismo estado es DUPLICATE (solo rellena campos
nulos) y pedir otro terminal distinto es ANOMALY (sin cambios, queda en la
bitácora para revisión).

Matching:
- session_completed: por session_id (luego charge_id); si no hay registro
  se sintetiza uno desde el evento.
- charge_succeeded: por charge_id; si no, el PENDING sin charge cuyo monto
  coincida, o el PENDING más reciente; si no hay ninguno se sintetiza.
  Este emparejamiento es best-effort: dos cobros casi simultáneos del mismo
  monto pueden competir por el mismo PENDING.
- charge_failed: por charge_id; si no existe se descarta.
- session_expired: por session_id; si no existe se descarta.

Cada handler lee con FOR UPDATE, muta, re-valida contra pricing el monto
cobrado que trae el evento y el guardado (mismatch solo se registra) y hace
commit. El enlace con la inscripción va en una transacción aparte, después
del commit del pago.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config.settings_payments import get_payments_settings
from app.modules.payments.enums import PaymentStatus, WebhookOutcome
from app.modules.payments.errors import AmountMismatch
from app.modules.payments.metrics import observe_amount_mismatch
from app.modules.payments.models import PaymentRecord
from app.modules.payments.repositories import PaymentRecordRepository
from app.modules.payments.services.pricing_validator import PricingValidator, minor_to_major, to_money
from app.modules.payments.webhooks.events import WebhookEvent
from app.modules.registrations.services import RegistrationLinker

logger = logging.getLogger(__name__)

DEFAULT_COMPLETED_PAYMENT_STATUS = "paid"
DEFAULT_CHARGE_PAYMENT_STATUS = "succeeded"
DEFAULT_FAILED_PAYMENT_STATUS = "failed"
DEFAULT_EXPIRED_PAYMENT_STATUS = "expired"


@dataclass
class ReconcileResult:
    """Resultado de aplicar un evento."""
    outcome: WebhookOutcome
    record_id: Optional[int] = None
    detail: Optional[str] = None
    amount_mismatch: Optional[AmountMismatch] = None


def _event_amount(event: WebhookEvent) -> Optional[Decimal]:
    if event.amount_minor is None:
        return None
    return minor_to_major(event.amount_minor)


def select_best_pending(
    pending: Sequence[PaymentRecord],
    amount: Optional[Decimal],
) -> Optional[PaymentRecord]:
    """
    Elige el PENDING para un charge sin vínculo previo.

    `pending` viene ordenado del más reciente al más antiguo: gana el primero
    con monto igual y, si ninguno coincide, el más reciente.
    """
    if not pending:
        return None
    if amount is not None:
        for record in pending:
            if record.amount is not None and to_money(record.amount) == amount:
                return record
    return pending[0]


class PaymentReconciler:
    """
    Aplica eventos tipados sobre payment_records.

    Args:
        validator: PricingValidator para la re-validación de montos
        record_repo: repositorio de payment_records
        linker: RegistrationLinker (None desactiva el enlace)
        settlement_currency: moneda para registros sintetizados sin moneda
    """

    def __init__(
        self,
        validator: Optional[PricingValidator] = None,
        record_repo: Optional[PaymentRecordRepository] = None,
        linker: Optional[RegistrationLinker] = None,
        settlement_currency: Optional[str] = None,
    ):
        self.settlement_currency = (
            settlement_currency or get_payments_settings().payments_settlement_currency
        ).lower()
        self.validator = validator or PricingValidator(settlement_currency=self.settlement_currency)
        self.record_repo = record_repo or PaymentRecordRepository()
        self.linker = linker if linker is not None else RegistrationLinker(record_repo=self.record_repo)

    # -----------------------------------------------------------
    # Helpers de mutación
    # -----------------------------------------------------------
    @staticmethod
    def _transition(record: PaymentRecord, target: PaymentStatus) -> WebhookOutcome:
        current = PaymentStatus(record.status)
        if current == target:
            return WebhookOutcome.DUPLICATE
        if current.is_terminal:
            return WebhookOutcome.ANOMALY
        record.status = target
        return WebhookOutcome.APPLIED

    def _backfill(self, record: PaymentRecord, event: WebhookEvent) -> None:
        """Rellena solo campos nulos; nunca pisa datos existentes."""
        amount = _event_amount(event)
        if record.amount is None and amount is not None:
            record.amount = amount
        if record.currency is None and event.currency:
            record.currency = event.currency.lower()
        if record.customer_email is None and event.customer_email:
            record.customer_email = event.customer_email
        if record.session_id is None and event.session_id:
            record.session_id = event.session_id
        if record.gateway_created_at is None and event.created is not None:
            record.gateway_created_at = event.created
        if record.gateway_expires_at is None and event.expires_at is not None:
            record.gateway_expires_at = event.expires_at

    async def _assign_charge(self, session: AsyncSession, record: PaymentRecord, charge_id: Optional[str]) -> None:
        if not charge_id or record.charge_id is not None:
            return
        owner = await self.record_repo.get_by_charge_id(session, charge_id)
        if owner is not None and owner.id != record.id:
            logger.warning(
                "Charge %s already belongs to payment record %s; not assigned to record %s",
                charge_id, owner.id, record.id,
            )
            return
        record.charge_id = charge_id

    async def _pricing_config_exists(self, session: AsyncSession, pricing_config_id: Optional[int]) -> bool:
        if pricing_config_id is None:
            return False
        price = await self.validator.pricing_source.get_total_price(session, pricing_config_id)
        return price is not None

    async def _synthesize(
        self,
        session: AsyncSession,
        event: WebhookEvent,
        *,
        payment_status: str,
    ) -> tuple[PaymentRecord, bool]:
        pricing_config_id = event.pricing_config_id
        if not await self._pricing_config_exists(session, pricing_config_id):
            pricing_config_id = None
        return await self.record_repo.create_or_get_existing(
            session,
            session_id=event.session_id,
            charge_id=event.charge_id,
            customer_email=event.customer_email,
            amount=_event_amount(event),
            currency=(event.currency or self.settlement_currency).lower(),
            status=PaymentStatus.COMPLETED,
            gateway_payment_status=payment_status,
            pricing_config_id=pricing_config_id,
            gateway_created_at=event.created,
            gateway_expires_at=event.expires_at,
        )

    async def _finalize(
        self,
        session: AsyncSession,
        record: PaymentRecord,
        outcome: WebhookOutcome,
        event: WebhookEvent,
        detail: Optional[str] = None,
    ) -> ReconcileResult:
        """Re-valida monto, hace commit y (si quedó COMPLETED) enlaza la inscripción."""
        # Primero lo cobrado por el gateway; el monto guardado no se reescribe
        mismatch = await self.validator.check_charged_amount(session, record, _event_amount(event))
        stage = "charged"
        if mismatch is None:
            mismatch = await self.validator.check_record(session, record)
            stage = "reconciliation"
        if mismatch is not None:
            observe_amount_mismatch(stage)
            logger.warning(
                "Amount mismatch on payment record %s (event=%s, %s): expected=%s received=%s stored=%s",
                record.id, event.event_id, stage, mismatch.expected, mismatch.received, record.amount,
            )

        if outcome == WebhookOutcome.ANOMALY:
            logger.warning(
                "Terminal state conflict on payment record %s: status=%s event=%s (%s); no change applied",
                record.id, record.status, event.event_type, event.event_id,
            )

        record_id = record.id
        completed = record.status == PaymentStatus.COMPLETED
        await session.commit()
        logger.info(
            "Webhook event %s (%s) reconciled: record=%s outcome=%s",
            event.event_id, event.kind, record_id, outcome,
        )

        if completed and self.linker is not None:
            try:
                await self.linker.link(session, record_id)
            except SQLAlchemyError:
                await session.rollback()
                logger.exception("Registration link failed for payment record %s", record_id)

        return ReconcileResult(outcome=outcome, record_id=record_id, detail=detail, amount_mismatch=mismatch)

    async def _complete(
        self,
        session: AsyncSession,
        record: PaymentRecord,
        event: WebhookEvent,
        default_payment_status: str,
    ) -> WebhookOutcome:
        outcome = self._transition(record, PaymentStatus.COMPLETED)
        if outcome == WebhookOutcome.ANOMALY:
            return outcome
        await self._assign_charge(session, record, event.charge_id)
        self._backfill(record, event)
        if outcome == WebhookOutcome.APPLIED:
            record.gateway_payment_status = event.payment_status or default_payment_status
        return outcome

    # -----------------------------------------------------------
    # Handlers por tipo de evento
    # -----------------------------------------------------------
    async def handle_session_completed(self, session: AsyncSession, event: WebhookEvent) -> ReconcileResult:
        if not event.session_id:
            logger.warning("session_completed event %s without session id; discarded", event.event_id)
            return ReconcileResult(outcome=WebhookOutcome.DISCARDED, detail="missing session id")

        record = await self.record_repo.get_by_session_id(session, event.session_id, for_update=True)
        if record is None and event.charge_id:
            record = await self.record_repo.get_by_charge_id(session, event.charge_id, for_update=True)

        if record is None:
            payment_status = event.payment_status or DEFAULT_COMPLETED_PAYMENT_STATUS
            record, created = await self._synthesize(session, event, payment_status=payment_status)
            if created:
                logger.warning(
                    "No payment record for session %s; synthesized record %s from webhook %s",
                    event.session_id, record.id, event.event_id,
                )
                return await self._finalize(
                    session, record, WebhookOutcome.SYNTHESIZED, event, detail="record synthesized from session",
                )

        outcome = await self._complete(session, record, event, DEFAULT_COMPLETED_PAYMENT_STATUS)
        return await self._finalize(session, record, outcome, event)

    async def handle_charge_succeeded(self, session: AsyncSession, event: WebhookEvent) -> ReconcileResult:
        if not event.charge_id:
            logger.warning("charge_succeeded event %s without charge id; discarded", event.event_id)
            return ReconcileResult(outcome=WebhookOutcome.DISCARDED, detail="missing charge id")

        record = await self.record_repo.get_by_charge_id(session, event.charge_id, for_update=True)
        if record is not None:
            outcome = await self._complete(session, record, event, DEFAULT_CHARGE_PAYMENT_STATUS)
            return await self._finalize(session, record, outcome, event)

        pending = await self.record_repo.list_pending(session, for_update=True)
        record = select_best_pending(pending, _event_amount(event))
        if record is not None:
            await self._complete(session, record, event, DEFAULT_CHARGE_PAYMENT_STATUS)
            logger.info(
                "Charge %s matched to pending payment record %s (amount=%s)",
                event.charge_id, record.id, record.amount,
            )
            return await self._finalize(
                session, record, WebhookOutcome.MATCHED, event, detail="matched against pending records",
            )

        payment_status = event.payment_status or DEFAULT_CHARGE_PAYMENT_STATUS
        record, created = await self._synthesize(session, event, payment_status=payment_status)
        if created:
            logger.warning(
                "No pending payment record for charge %s; synthesized record %s from webhook %s",
                event.charge_id, record.id, event.event_id,
            )
            return await self._finalize(
                session, record, WebhookOutcome.SYNTHESIZED, event, detail="record synthesized from charge",
            )

        outcome = await self._complete(session, record, event, DEFAULT_CHARGE_PAYMENT_STATUS)
        return await self._finalize(session, record, outcome, event)

    async def handle_charge_failed(self, session: AsyncSession, event: WebhookEvent) -> ReconcileResult:
        record = None
        if event.charge_id:
            record = await self.record_repo.get_by_charge_id(session, event.charge_id, for_update=True)
        if record is None:
            logger.info(
                "charge_failed for unknown charge %s (event=%s); discarded",
                event.charge_id, event.event_id,
            )
            return ReconcileResult(outcome=WebhookOutcome.DISCARDED, detail="unknown charge")

        outcome = self._transition(record, PaymentStatus.FAILED)
        if outcome == WebhookOutcome.APPLIED:
            record.failure_reason = event.failure_reason
            record.gateway_payment_status = event.payment_status or DEFAULT_FAILED_PAYMENT_STATUS
        return await self._finalize(session, record, outcome, event)

    async def handle_session_expired(self, session: AsyncSession, event: WebhookEvent) -> ReconcileResult:
        record = None
        if event.session_id:
            record = await self.record_repo.get_by_session_id(session, event.session_id, for_update=True)
        if record is None:
            logger.info(
                "session_expired for unknown session %s (event=%s); discarded",
                event.session_id, event.event_id,
            )
            return ReconcileResult(outcome=WebhookOutcome.DISCARDED, detail="unknown session")

        outcome = self._transition(record, PaymentStatus.EXPIRED)
        if outcome == WebhookOutcome.APPLIED:
            record.gateway_payment_status = event.payment_status or DEFAULT_EXPIRED_PAYMENT_STATUS
            if record.gateway_expires_at is None and event.expires_at is not None:
                record.gateway_expires_at = event.expires_at
        return await self._finalize(session, record, outcome, event)


__all__ = [
    "PaymentReconciler",
    "ReconcileResult",
    "select_best_pending",
]

# Fin del archivo backend/app/modules/payments/services/reconciliation_service.py
