# -*- coding: utf-8 -*-
"""
backend/app/modules/registrations/services/__init__.py

Autor: ConfPay
Fecha: 2026-02-12
"""

from .linker_service import LinkOutcome, RegistrationLinker

__all__ = ["LinkOutcome", "RegistrationLinker"]
