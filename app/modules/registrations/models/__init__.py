# -*- coding: utf-8 -*-
"""
backend/app/modules/registrations/models/__init__.py
"""

from app.modules.registrations.models.registration_form import RegistrationForm

__all__ = ["RegistrationForm"]
