"""Global exception handlers for consistent error responses.

Domain errors map to HTTP status codes in one place so routes can simply
let them propagate:

- ValidationAppError     -> 400
- AuthenticationAppError -> 403
- DecryptionError        -> 409 (stored credential unusable, re-enter it)
- LLMAppError            -> 502
- ConfigurationError / EncryptionError -> 500
- Unexpected Exception   -> 500 with a generic message

All responses include request_id for tracing.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from practice_api.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    LLMAppError,
    ValidationAppError,
)
from practice_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (AuthenticationAppError, 403),
    (DecryptionError, 409),
    (LLMAppError, 502),
    (ConfigurationError, 500),
    (EncryptionError, 500),
)

# Server-side failures whose message would leak deployment details.
_OPAQUE_MESSAGES: tuple[tuple[type[AppError], str], ...] = (
    (ConfigurationError, "Server encryption is misconfigured. Contact the administrator."),
    (EncryptionError, "The API key could not be encrypted. Please try again later."),
)


def _opaque_message(exc: AppError) -> str | None:
    for error_type, message in _OPAQUE_MESSAGES:
        if isinstance(exc, error_type):
            return message
    return None


def status_code_for(exc: AppError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Response body::

        {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}
    """
    status_code = status_code_for(exc)
    opaque_message = _opaque_message(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": opaque_message or exc.message,
        "request_id": get_request_id(),
    }

    if exc.details and opaque_message is None:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message without stack traces.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
