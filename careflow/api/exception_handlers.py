"""
HTTP error responses.

Every error body has the shape `{"error", "message", "status_code"}` plus
`details` where there are any. Domain errors use their machine code as
`error`; payment and integration failures keep their specifics in the log.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from careflow.core.domain import DomainException

logger = logging.getLogger(__name__)

# Machine code -> HTTP status. Codes not listed fall back to 400.
DOMAIN_ERROR_STATUS: dict[str, int] = {
    "SLOT_UNAVAILABLE": status.HTTP_409_CONFLICT,
    "LOCK_EXPIRED": status.HTTP_409_CONFLICT,
    "RESCHEDULE_CUTOFF_EXCEEDED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "MAX_RESCHEDULES_EXCEEDED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "WRONG_CAREGIVER": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "INVALID_OPERATION": status.HTTP_409_CONFLICT,
    "REPORT_EXISTS": status.HTTP_409_CONFLICT,
    "DUPLICATE_ENTITY": status.HTTP_409_CONFLICT,
    "PAYMENT_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "AUTHORIZATION_ERROR": status.HTTP_403_FORBIDDEN,
    "ENTITY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CONCURRENCY_CONFLICT": status.HTTP_409_CONFLICT,
    "PAYMENT_ERROR": status.HTTP_502_BAD_GATEWAY,
    "INTEGRATION_ERROR": status.HTTP_502_BAD_GATEWAY,
}

# Errors whose message and details stay in the logs only.
OPAQUE_ERRORS: dict[str, str] = {
    "PAYMENT_MISMATCH": "Payment could not be applied",
    "PAYMENT_ERROR": "Payment could not be processed",
    "INTEGRATION_ERROR": "External service unavailable",
}


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate domain exceptions to their mapped status and error code."""
    if not isinstance(exc, DomainException):
        return await global_exception_handler(request, exc)

    status_code = DOMAIN_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)

    if exc.code in OPAQUE_ERRORS:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message} {exc.details}")
        content = {
            "error": exc.code,
            "message": OPAQUE_ERRORS[exc.code],
            "details": {},
            "status_code": status_code,
        }
    else:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        content = {**exc.to_dict(), "status_code": status_code}

    return JSONResponse(status_code=status_code, content=content)


def _error_response(status_code: int, error: str | bool, message: str, **extra: object) -> JSONResponse:
    headers = extra.pop("headers", None)
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, **extra, "status_code": status_code},
        headers=headers,  # type: ignore[arg-type]
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Errors raised by dependencies (missing actor identity and the like)."""
    if not isinstance(exc, HTTPException):
        return await global_exception_handler(request, exc)
    return _error_response(exc.status_code, True, str(exc.detail), headers=exc.headers)


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Request bodies and query parameters that fail schema validation."""
    unprocessable = status.HTTP_422_UNPROCESSABLE_ENTITY
    if not isinstance(exc, RequestValidationError):
        return _error_response(unprocessable, "VALIDATION_ERROR", str(exc))

    errors = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
    return _error_response(unprocessable, "VALIDATION_ERROR", "Validation error", details=errors)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: full traceback in the logs, nothing internal in the body."""
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, True, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
