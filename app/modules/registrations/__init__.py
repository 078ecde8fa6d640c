# -*- coding: utf-8 -*-
"""
backend/app/modules/registrations/__init__.py

Inscripciones de asistentes y su enlace con los registros de pago.

Autor: ConfPay
Fecha: 2026-02-12
"""
