# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/__init__.py

Núcleo de pagos y reconciliación de ConfPay.

Este módulo gestiona:
- Creación de Checkout Sessions de Stripe con validación de precio
- Registros de pago (payment_records) y su ciclo de vida
- Reconciliación de webhooks (entregas repetidas y fuera de orden)
- Enlace pago ↔ inscripción

Estructura:
- enums: PaymentStatus, WebhookOutcome
- models: PaymentRecord, WebhookEventLog
- repositories: acceso a datos con bloqueo por fila
- providers: cliente de Stripe
- services: validador de precios, checkout, reconciliador, consultas
- webhooks: verificación de firma, eventos tipados y dispatcher
- routes: API HTTP

Los submódulos se importan explícitamente; este paquete no re-exporta nada
para evitar imports circulares con app.modules.registrations.

Autor: ConfPay
Fecha: 12/02/2026
"""
