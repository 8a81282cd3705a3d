"""
Exception handlers for the HTTP API.

Every error in the ``CoreError`` hierarchy is rendered as
``{"status": "error", "error": {...}, "meta": {...}}`` with the status code
derived from its category.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from messenger_pulse.config.constants import ErrorCategory
from messenger_pulse.core.exceptions import CoreError
from messenger_pulse.utils.logger import get_logger

logger = get_logger(__name__)


def _meta(request: Request) -> Dict[str, Any]:
    meta = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": str(request.url.path),
        "method": request.method,
    }
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        meta["request_id"] = request_id
    return meta


async def core_error_handler(request: Request, exc: CoreError) -> JSONResponse:
    """Handler for application errors."""
    status_code = exc.http_status()

    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request failed",
        error_code=exc.error_code,
        category=exc.category.value,
        status_code=status_code,
        error=exc.message,
        path=str(request.url.path)
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "error": {
                "code": exc.error_code,
                "message": exc.message,
                "category": exc.category.value,
                "timestamp": exc.timestamp.isoformat(),
                "details": exc.details,
            },
            "meta": _meta(request),
        }
    )


async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
) -> JSONResponse:
    """Handler for request body and query validation errors."""
    validation_errors = [
        {
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Request validation failed",
        validation_errors=validation_errors,
        path=str(request.url.path),
        method=request.method
    )

    return JSONResponse(
        status_code=400,
        content={
            "status": "error",
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "category": ErrorCategory.VALIDATION.value,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "details": {"validation_errors": validation_errors},
            },
            "meta": _meta(request),
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unexpected exceptions."""
    error_id = str(uuid.uuid4())

    logger.error(
        "Unexpected exception occurred",
        error_id=error_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
        path=str(request.url.path),
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error_id": error_id,
            },
            "meta": _meta(request),
        }
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(CoreError, core_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers configured")
