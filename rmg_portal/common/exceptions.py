"""Custom exceptions and the ``{success: false, message}`` error envelope."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rmg_portal.config import settings

logger = logging.getLogger(__name__)


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions, rendered as the error envelope."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404: entity not found."""

    def __init__(self, entity_type: str, entity_id: Any = None) -> None:
        detail = (
            f"{entity_type} not found"
            if entity_id is None
            else f"{entity_type} with id '{entity_id}' not found"
        )
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=detail,
        )


class DuplicateException(AppException):
    """400: a name / number that must be unique is already taken."""

    def __init__(self, field: str, value: Any, detail: Optional[str] = None) -> None:
        super().__init__(
            status_code=400,
            error_type="duplicate",
            title="Duplicate",
            detail=detail or f"An entry with {field}='{value}' already exists",
            errors={field: [f"'{value}' is already in use."]},
        )


class ForbiddenException(AppException):
    """403: insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """400: business-rule validation failures.

    ``errors`` maps a field name to its messages; the first message becomes
    the envelope's ``message`` so clients can show it directly.
    """

    def __init__(self, errors: dict[str, list[str]], detail: Optional[str] = None) -> None:
        first = next((msgs[0] for msgs in errors.values() if msgs), None)
        super().__init__(
            status_code=400,
            error_type="validation-error",
            title="Validation Error",
            detail=detail or first or "One or more fields failed validation",
            errors=errors,
        )


def reject_null_columns(model: Any, changes: dict[str, Any]) -> None:
    """Raise a 400 when a partial update sends ``null`` for a NOT NULL column."""
    columns = model.__table__.columns
    errors = {
        field: ["This field cannot be null"]
        for field, value in changes.items()
        if value is None and field in columns and not columns[field].nullable
    }
    if errors:
        raise ValidationException(errors)


# ── Envelope builder ────────────────────────────────────────────────

def _error_body(message: str, errors: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail, exc.errors),
    )


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    first_field, first_msgs = next(iter(field_errors.items()), ("request", ["Invalid request"]))
    return JSONResponse(
        status_code=400,
        content=_error_body(f"{first_field}: {first_msgs[0]}", field_errors),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.is_development:
        body = _error_body(str(exc) or "Internal Server Error")
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    else:
        body = _error_body("Internal Server Error")
    return JSONResponse(status_code=500, content=body)


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)
