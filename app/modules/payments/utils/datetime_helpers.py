# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/utils/datetime_helpers.py

Utilidades para manejo consistente de timestamps UTC.

Stripe reporta fechas como epoch en segundos; SQLite (pruebas) devuelve
datetimes naive. Todo se normaliza a UTC timezone-aware.

Autor: ConfPay
Fecha: 12/02/2026
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Retorna el timestamp UTC actual (timezone-aware).

    Examples:
        >>> utcnow().tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Asegura que un datetime sea UTC timezone-aware (naive se asume UTC).

    Examples:
        >>> ensure_utc(datetime(2026, 2, 12, 10, 0)).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_epoch(seconds: Optional[int]) -> Optional[datetime]:
    """
    Convierte epoch en segundos (formato de Stripe) a datetime UTC.

    Examples:
        >>> from_epoch(0).year
        1970
        >>> from_epoch(None) is None
        True
    """
    if seconds is None:
        return None
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)


def to_iso8601(dt: Optional[datetime]) -> Optional[str]:
    """
    Convierte datetime a string ISO 8601 con 'Z' para UTC.

    Examples:
        >>> to_iso8601(datetime(2026, 2, 12, 14, 30, tzinfo=timezone.utc))
        '2026-02-12T14:30:00Z'
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')


__all__ = ["utcnow", "ensure_utc", "from_epoch", "to_iso8601"]
# Fin del archivo
