"""Custom exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

BASE_ERROR_URI = "https://leave.portal/errors"


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
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)

    def to_problem(self, instance: Optional[str] = None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "type": f"{BASE_ERROR_URI}/{self.error_type}",
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if instance is not None:
            body["instance"] = instance
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationException(AppException):
    """422 — leave records or profile failed boundary validation."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )

    @classmethod
    def from_pydantic(
        cls,
        exc: ValidationError,
        prefix: str = "",
    ) -> "ValidationException":
        """Collapse a pydantic ValidationError into dotted-path field errors."""
        return cls(_collect_field_errors(exc.errors(), prefix=prefix))


def _collect_field_errors(
    errors: list[dict[str, Any]],
    *,
    prefix: str = "",
    skip: int = 0,
) -> dict[str, list[str]]:
    field_errors: dict[str, list[str]] = {}
    for err in errors:
        loc = tuple(err.get("loc", ()))
        if len(loc) > skip:
            loc = loc[skip:]
        parts = [prefix] if prefix else []
        parts.extend(str(p) for p in loc)
        name = ".".join(parts) if parts else "unknown"
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))
    return field_errors


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_problem(str(request.url.path)),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    # loc[0] is the request part ("body", "query"); drop it
    field_errors = _collect_field_errors(list(exc.errors()), skip=1)

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
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
