"""Map engine errors and request parse failures to ``{success: false, error}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pos_backend.app.services.errors import (
    AuthenticationError,
    InvoiceEngineError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def error_body(message: str) -> dict:
    return {"success": False, "error": message}


def status_for(exc: InvoiceEngineError) -> int:
    """400 for bad input, 404 for unknown ids, 401 for failed confirmations, 500 otherwise."""
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def engine_error_handler(request: Request, exc: InvoiceEngineError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=code, content=error_body(exc.message))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("; ".join(parts) or "Invalid request"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvoiceEngineError, engine_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
