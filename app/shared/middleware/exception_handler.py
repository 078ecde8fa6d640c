# -*- coding: utf-8 -*-
"""
backend/app/shared/middleware/exception_handler.py

Middleware ASGI para capturar excepciones no manejadas y responder JSON,
más el handler de PaymentsError para las rutas de pagos.

Toda respuesta de error lleva error_code y request_id para trazabilidad.

Autor: ConfPay
Fecha: 2026-02-12
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.modules.payments.errors import PaymentsError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADERS = ["x-request-id", "x-correlation-id"]


def get_request_id(request: Request) -> str:
    """Extrae request_id de headers o genera uno nuevo."""
    for header in REQUEST_ID_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return uuid.uuid4().hex[:16]


class JSONExceptionMiddleware(BaseHTTPMiddleware):
    """
    Captura excepciones no manejadas y devuelve JSON 500 con
    Content-Type application/json, error_code estable y request_id.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = get_request_id(request)
        request.state.request_id = request_id

        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "unhandled_exception request_id=%s method=%s path=%s error=%r",
                request_id,
                request.method,
                request.url.path,
                e,
            )
            detail = {
                "error_code": "INTERNAL_SERVER_ERROR",
                "message": "Internal server error",
                "request_id": request_id,
            }
            return JSONResponse(
                status_code=500,
                content={"detail": detail},
                headers={"X-Request-ID": request_id},
            )


async def payments_error_handler(request: Request, exc: PaymentsError) -> JSONResponse:
    """Traduce PaymentsError a {"detail": {...}} con su status HTTP."""
    request_id = getattr(request.state, "request_id", None) or get_request_id(request)
    detail = exc.to_dict()
    detail["request_id"] = request_id
    if exc.status_code >= 500:
        logger.error("payments_error request_id=%s %s: %s", request_id, exc.error_code, exc)
    else:
        logger.info("payments_error request_id=%s %s: %s", request_id, exc.error_code, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail},
        headers={"X-Request-ID": request_id},
    )


__all__ = ["JSONExceptionMiddleware", "get_request_id", "payments_error_handler"]
