"""Error Handlers — map every failure that escapes a route onto one JSON envelope.

Invariants:
    - Every error body is {"error": {code, message, category, severity, ...}}
    - Log level follows the error's severity: INFO for route no-ops,
      WARNING for caller mistakes, ERROR/CRITICAL for store and unhandled failures
    - Log records carry error_code, path, method and, when known, the
      operation and user_id from ErrorContext (picked up by JSONFormatter)
    - Malformed request bodies/params are 400 VALIDATION_ERROR, never FastAPI's 422
    - Unhandled exceptions never leak their message to the client
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ember.core.errors import EmberError, ErrorSeverity

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.WARNING,
    ErrorSeverity.CRITICAL: logging.ERROR,
}


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EmberError, handle_ember_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def log_level_for(exc: EmberError) -> int:
    """Pick the log level for a handled EmberError.

    Client-side errors (ERROR severity below 500) are the caller's problem
    and log at WARNING; anything answered with 5xx logs at ERROR at least.
    """
    level = _LOG_LEVELS[exc.severity]
    if exc.http_status >= 500:
        level = max(level, logging.ERROR)
    return level


def request_extras(request: Request, exc: EmberError | None = None) -> dict:
    extras = {"path": request.url.path, "method": request.method}
    if exc is not None:
        extras["error_code"] = exc.code
        if exc.context.operation:
            extras["operation"] = exc.context.operation
        if exc.context.user_id:
            extras["user_id"] = exc.context.user_id
    return extras


async def handle_ember_error(request: Request, exc: EmberError):
    logger.log(
        log_level_for(exc),
        f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
        extra=request_extras(request, exc),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    extras = request_extras(request)
    extras["error_code"] = "VALIDATION_ERROR"
    logger.warning(
        f"Rejected {len(details)} invalid field(s) on {request.url.path}",
        extra=extras,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    extras = request_extras(request)
    extras["error_code"] = "INTERNAL_ERROR"
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra=extras,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
