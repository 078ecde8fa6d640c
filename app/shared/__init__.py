# -*- coding: utf-8 -*-
"""
backend/app/shared/__init__.py

Infraestructura compartida de ConfPay: configuración, base de datos,
middlewares y scheduler.

Los settings se instancian en el primer get_settings(), no al importar
este paquete.

Autor: ConfPay
Fecha: 2026-02-12
"""

from app.shared.config.config_loader import get_settings

__all__ = ["get_settings"]
# Fin del archivo backend/app/shared/__init__.py
