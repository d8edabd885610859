"""Global exception handlers for the FastAPI application.

Every non-2xx response shares one JSON envelope:

    {"status", "error_code", "message", "details", "path", "timestamp"}
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from app.config import settings
from app.utils.dates import utcnow

# Fallback error codes for HTTPExceptions raised without our subclasses
_STATUS_ERROR_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "ACCESS_DENIED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "DUPLICATE_RESOURCE",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
}


def error_body(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "status": status_code,
        "error_code": error_code,
        "message": message,
        "details": details,
        "path": request.url.path,
        "timestamp": utcnow().isoformat(),
    }


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate HTTPException (and our subclasses) into the envelope."""
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    error_code = getattr(exc, "error_code", None) or _STATUS_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    if isinstance(exc.detail, str):
        message, details = exc.detail, None
    else:
        message, details = "Request failed", {"detail": exc.detail}

    if exc.status_code >= 500:
        logger.error("{method} {path} -> {status}: {message}", method=request.method, path=request.url.path, status=exc.status_code, message=message)
    else:
        logger.debug("{method} {path} -> {status}: {message}", method=request.method, path=request.url.path, status=exc.status_code, message=message)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, error_code, message, details),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Group request validation errors by field under ``validation_errors``."""
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        # ['body', 'email'] -> 'email'
        loc = error.get("loc", ())
        field_name = ".".join(str(part) for part in loc[1:]) or "root"
        field_errors.setdefault(field_name, []).append(error.get("msg", "Invalid value"))

    logger.info("Request validation failed on {path}: {errors}", path=request.url.path, errors=field_errors)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            {"validation_errors": field_errors},
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled {} on {} {}", type(exc).__name__, request.method, request.url.path)
    # Exception text never leaves a production deployment
    expose = settings.DEBUG and not settings.is_production
    details = {"exception": f"{type(exc).__name__}: {exc}"} if expose else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An unexpected error occurred",
            details,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
