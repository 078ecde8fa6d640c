# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/payment_status_enum.py

Enum de estados del registro de pago.

PENDING es el único estado no terminal; COMPLETED, FAILED, CANCELLED
y EXPIRED son terminales y nunca se abandonan.

Autor: ConfPay
Fecha: 12/02/2026
"""

from enum import StrEnum


class PaymentStatus(StrEnum):
    """Estado del registro de pago en su ciclo de vida."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


TERMINAL_STATUSES = frozenset(s for s in PaymentStatus if s.is_terminal)


__all__ = ["PaymentStatus", "TERMINAL_STATUSES"]

# Fin del archivo backend/app/modules/payments/enums/payment_status_enum.py
