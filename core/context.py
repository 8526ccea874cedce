"""
Request-scoped context for core services.
"""

from __future__ import annotations

from typing import Optional
import contextvars
import logging


_CURRENT_REQUEST_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "streamify_request_id",
    default=None,
)


def get_current_request_id() -> Optional[str]:
    return _CURRENT_REQUEST_ID.get()


def set_current_request_id(request_id: Optional[str]) -> contextvars.Token:
    return _CURRENT_REQUEST_ID.set(request_id)


def reset_current_request_id(token: contextvars.Token) -> None:
    _CURRENT_REQUEST_ID.reset(token)


class RequestIdLogFilter(logging.Filter):
    """Stamp log records with the request id of the active request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_current_request_id() or "-"
        return True
