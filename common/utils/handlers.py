"""
Exception handlers that render every error as `{"error": code, "message": ...}`.

Example:
    from common.utils.handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.utils.exceptions import APIException
from common.utils.responses import error_response

logger = logging.getLogger(__name__)

# Codes for errors raised by the framework itself
_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


async def api_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc, APIException):
        content = error_response(exc.message, code=exc.code, details=exc.details)
    else:
        message: Any = exc.detail if isinstance(exc.detail, str) else "Request failed"
        content = error_response(message, code=_STATUS_CODES.get(exc.status_code, "http_error"))

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error_response("Invalid request", code="invalid_request", details=exc.errors())
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", code="internal_server_error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the shared error handlers on an app."""
    app.add_exception_handler(StarletteHTTPException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
