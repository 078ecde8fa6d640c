# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/webhook_outcome_enum.py

Resultado de procesar un evento de webhook, tal como queda en la bitácora
payment_webhook_events y en las métricas.

Autor: ConfPay
Fecha: 12/02/2026
"""

from enum import StrEnum


class WebhookOutcome(StrEnum):
    APPLIED = "applied"            # transición aplicada sobre un registro existente
    DUPLICATE = "duplicate"        # reentrega: el registro ya estaba en ese estado
    SYNTHESIZED = "synthesized"    # no había registro; se creó desde el evento
    MATCHED = "matched"            # charge emparejado por heurística contra un PENDING
    DISCARDED = "discarded"        # sin registro y sin datos para crear uno
    ANOMALY = "anomaly"            # transición prohibida entre estados terminales
    IGNORED = "ignored"            # tipo de evento no reconocido
    ERROR = "error"                # el handler falló; se registró y se respondió 200


__all__ = ["WebhookOutcome"]
