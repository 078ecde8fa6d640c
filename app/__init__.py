# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Paquete principal 'app' del backend de pagos ConfPay.

Permite que los módulos internos se importen como 'app.*' cuando la
carpeta 'backend' está en PYTHONPATH.

Autor: ConfPay
Fecha: 2026-02-12
"""

# Fin del archivo backend/app/__init__.py
