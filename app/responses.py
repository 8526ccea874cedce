"""
JSON response envelopes.
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "statusCode": status_code,
                "data": data,
                "message": message,
                "success": status_code < 400,
            }
        ),
    )


def error_response(status_code: int, message: str, errors: list | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "statusCode": status_code,
                "message": message,
                "errors": errors or [],
                "success": False,
            }
        ),
    )
