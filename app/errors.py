"""
Exception handlers rendering the error envelope.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

import core.config as config
from core.errors import ServiceError
from app.responses import error_response


async def _service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        config.logger.error(
            "Service error",
            extra={"path": request.url.path, "error": str(exc)},
        )
    return error_response(exc.status_code, str(exc), exc.errors)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for item in exc.errors():
        location = [str(part) for part in item.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(location) or "request", "type": item.get("type", "invalid")})
    message = exc.errors()[0].get("msg", "Invalid request") if exc.errors() else "Invalid request"
    return error_response(400, message, errors)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message)


async def _unhandled_error_handler(request: Request, exc: Exception):
    config.logger.exception("Unhandled request error", extra={"path": request.url.path})
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
