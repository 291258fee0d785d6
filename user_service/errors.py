"""Translation of failures into HTTP responses.

This is the only place that builds error bodies:

- request validation errors -> 400, ``{field: message}``
- service errors            -> status from ``ERROR_STATUS``, ``{status, message, timestamp}``
- anything else             -> 500, ``{status, message, timestamp}``
"""

from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from .logger import logger
from .schemas import ErrorCode, ErrorResponse
from .services import ServiceError

# Must cover every ErrorCode member
ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DUPLICATE_EMAIL: status.HTTP_400_BAD_REQUEST,
}


def error_response(status_code: int, message: str) -> JSONResponse:
    body = ErrorResponse(
        status=status_code,
        message=message,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def service_error_response(error: ServiceError) -> JSONResponse:
    return error_response(ERROR_STATUS[error.code], error.message)


# ==================== Validation Errors ====================


def _field_name(loc: tuple) -> str:
    """Name the failing field from a Pydantic error location.

    ("body", "name") -> "name", ("path", "user_id") -> "user_id",
    ("body",) -> "body"
    """
    parts = [str(p) for p in loc[1:] if not isinstance(p, int)]
    return ".".join(parts) if parts else str(loc[0])


def validation_errors_to_fields(errors) -> dict[str, str]:
    """Collapse Pydantic errors into one message per field (first error wins)."""
    fields: dict[str, str] = {}
    for err in errors:
        if err.get("type") == "json_invalid":
            field = "body"
        else:
            field = _field_name(tuple(err.get("loc", ("body",))))
        if err.get("type") == "missing":
            message = f"{field.capitalize()} is required"
        else:
            message = err.get("msg", "Invalid value")
        fields.setdefault(field, message)
    return fields


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = validation_errors_to_fields(exc.errors())
    logger.info(f"Validation failed for {request.method} {request.url.path}: {fields}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=fields)


# ==================== Unexpected Errors ====================


def _error_detail(exc: Exception) -> str:
    """Short description of a failure, without SQL text or bound parameters."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        exc = exc.orig
    lines = str(exc).strip().splitlines()
    return lines[0] if lines else type(exc).__name__


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {_error_detail(exc)}",
        exc_info=exc,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        f"An unexpected error occurred: {_error_detail(exc)}",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
