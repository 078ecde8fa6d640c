# -*- coding: utf-8 -*-
"""
backend/app/modules/registrations/repository.py

Repositorio de inscripciones (RegistrationStore).

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.registrations.models import RegistrationForm


class RegistrationFormRepository(BaseRepository[RegistrationForm]):

    def __init__(self):
        super().__init__(RegistrationForm)

    async def latest_by_email(
        self,
        session: AsyncSession,
        email: str,
        *,
        for_update: bool = False,
    ) -> Optional[RegistrationForm]:
        """Inscripción más reciente (por created_at, luego id) para un email."""
        stmt = (
            select(RegistrationForm)
            .where(RegistrationForm.email == email)
            .order_by(RegistrationForm.created_at.desc(), RegistrationForm.id.desc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    async def create_registration(
        self,
        session: AsyncSession,
        *,
        email: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        institute_or_university: Optional[str] = None,
        country: Optional[str] = None,
        pricing_config_id: Optional[int] = None,
        amount_paid: Optional[Decimal] = None,
    ) -> RegistrationForm:
        return await self.create(
            session,
            email=email,
            name=name,
            phone=phone,
            institute_or_university=institute_or_university,
            country=country,
            pricing_config_id=pricing_config_id,
            amount_paid=amount_paid,
        )


__all__ = ["RegistrationFormRepository"]
