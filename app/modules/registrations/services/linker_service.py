# -*- coding: utf-8 -*-
"""
backend/app/modules/registrations/services/linker_service.py

RegistrationLinker: enlaza un PaymentRecord COMPLETED con la inscripción
más reciente del mismo email.

Reglas:
- El pago ya tiene inscripción → no-op.
- Sin email o sin inscripción → se registra en log y se regresa sin error.
- La inscripción ya apunta a otro pago → conflicto para revisión manual;
  no se sobrescribe ninguno de los dos lados.
- Ambos FKs se escriben en la misma transacción.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.payments.enums import PaymentStatus
from app.modules.payments.metrics import observe_registration_link
from app.modules.payments.repositories import PaymentRecordRepository
from app.modules.registrations.repository import RegistrationFormRepository

logger = logging.getLogger(__name__)


class LinkOutcome(StrEnum):
    LINKED = "linked"
    ALREADY_LINKED = "already_linked"
    NOT_COMPLETED = "not_completed"
    NO_EMAIL = "no_email"
    NO_REGISTRATION = "no_registration"
    CONFLICT = "conflict"


class RegistrationLinker:

    def __init__(
        self,
        record_repo: Optional[PaymentRecordRepository] = None,
        registration_repo: Optional[RegistrationFormRepository] = None,
    ):
        self.record_repo = record_repo or PaymentRecordRepository()
        self.registration_repo = registration_repo or RegistrationFormRepository()

    async def link(self, session: AsyncSession, payment_record_id: int) -> LinkOutcome:
        """
        Enlaza el pago con su inscripción y hace commit.

        Returns:
            LinkOutcome con el resultado (nunca lanza por datos faltantes)
        """
        outcome = await self._link(session, payment_record_id)
        observe_registration_link(outcome.value)
        return outcome

    async def _link(self, session: AsyncSession, payment_record_id: int) -> LinkOutcome:
        record = await self.record_repo.get_for_update(session, payment_record_id)
        if record is None or record.status != PaymentStatus.COMPLETED:
            await session.commit()
            return LinkOutcome.NOT_COMPLETED

        if record.registration_id is not None:
            await session.commit()
            return LinkOutcome.ALREADY_LINKED

        if not record.customer_email:
            logger.info("Payment record %s has no customer email; registration link skipped", record.id)
            await session.commit()
            return LinkOutcome.NO_EMAIL

        registration = await self.registration_repo.latest_by_email(
            session, record.customer_email, for_update=True,
        )
        if registration is None:
            logger.info(
                "No registration found for payment record %s (email=%s)",
                record.id, record.customer_email,
            )
            await session.commit()
            return LinkOutcome.NO_REGISTRATION

        if registration.payment_record_id is not None and registration.payment_record_id != record.id:
            logger.warning(
                "Registration link conflict: registration %s already linked to payment %s; "
                "payment %s left unlinked for manual review",
                registration.id, registration.payment_record_id, payment_record_id,
            )
            await session.commit()
            return LinkOutcome.CONFLICT

        registration_id = registration.id
        registration.payment_record_id = record.id
        record.registration_id = registration_id
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            logger.warning(
                "Registration link conflict on commit: registration=%s payment=%s",
                registration_id, payment_record_id,
            )
            return LinkOutcome.CONFLICT

        logger.info("Registration %s linked to payment record %s", registration_id, payment_record_id)
        return LinkOutcome.LINKED


__all__ = ["RegistrationLinker", "LinkOutcome"]
