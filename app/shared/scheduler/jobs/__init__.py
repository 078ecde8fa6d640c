# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/jobs/__init__.py

Jobs programados del sistema.

Autor: ConfPay
Fecha: 2026-02-12
"""

from .expire_records_job import JOB_ID, expire_overdue_payment_records, register_expire_records_job

__all__ = [
    "JOB_ID",
    "expire_overdue_payment_records",
    "register_expire_records_job",
]
