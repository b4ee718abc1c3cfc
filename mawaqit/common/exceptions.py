"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://mawaqit.ly/errors"
PROBLEM_JSON = "application/problem+json"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        self.headers = headers
        super().__init__(detail)


class NotFoundException(AppException):
    """404 — entity not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    def __init__(self, field: str, value: Any, detail: Optional[str] = None) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=detail or f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
        )


class UnauthorizedException(AppException):
    """401 — missing, malformed, or expired credentials."""

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


class RateLimitedException(AppException):
    """429 — admission control rejected the request."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            status_code=429,
            error_type="rate-limited",
            title="Too Many Requests",
            detail="Request limit reached; retry later.",
            headers={"Retry-After": str(retry_after)},
        )


# ── Retrieval failures (list-query engine) ──────────────────────────
# Details never include statement text; the cause is logged instead.

class RetrievalError(AppException):
    """500 — a read statement failed to execute."""

    def __init__(self, entity_type: str) -> None:
        super().__init__(
            status_code=500,
            error_type="retrieval-failed",
            title="Retrieval Failed",
            detail=f"Could not retrieve {entity_type} records.",
        )


class RetrievalTimeoutError(AppException):
    """504 — the request deadline expired before the query finished."""

    def __init__(self, entity_type: str, timeout: float) -> None:
        super().__init__(
            status_code=504,
            error_type="retrieval-timeout",
            title="Retrieval Timed Out",
            detail=f"Retrieving {entity_type} records exceeded {timeout:g}s.",
        )


class ServiceUnavailableError(AppException):
    """503 — the database could not be reached; safe to retry."""

    def __init__(self, retry_after: int = 5) -> None:
        super().__init__(
            status_code=503,
            error_type="service-unavailable",
            title="Service Unavailable",
            detail="The database is temporarily unavailable.",
            headers={"Retry-After": str(retry_after)},
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def build_problem_detail(exc: AppException, path: str) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": path,
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


def problem_response(exc: AppException, path: str) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=build_problem_detail(exc, path),
        media_type=PROBLEM_JSON,
        headers=exc.headers,
    )


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s → %d %s", request.method, request.url.path, exc.status_code, exc.error_type)
    return problem_response(exc, str(request.url.path))


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

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type=PROBLEM_JSON,
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
