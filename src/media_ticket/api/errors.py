"""Reusable error primitives for API exception handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..analysis.analysis_errors import AggregateFailureError
from ..exceptions import (
    ConfigurationError,
    MediaTicketError,
    ParseError,
    SessionNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

HTTP_CLIENT_CLOSED_REQUEST = 499


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    message: str
    details: Any = None
    headers: Mapping[str, str] | None = None

    def to_response(self, *, include_details: bool = True) -> JSONResponse:
        """Materialise the error into a ``{error, details?}`` response."""

        content: dict[str, Any] = {"error": self.message}
        if include_details and self.details is not None:
            content["details"] = self.details
        return JSONResponse(
            status_code=self.status_code,
            content=content,
            headers=dict(self.headers or {}),
        )


def _debug_enabled(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return bool(getattr(config, "debug", False))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response(include_details=_debug_enabled(request))


def to_api_error(exc: MediaTicketError) -> ApiError:
    """Map a domain exception onto its HTTP status."""

    if isinstance(exc, ValidationError):
        return ApiError(status.HTTP_400_BAD_REQUEST, str(exc))
    if isinstance(exc, SessionNotFoundError):
        return ApiError(status.HTTP_404_NOT_FOUND, str(exc))
    if isinstance(exc, AggregateFailureError):
        return ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(exc),
            details=[failure.to_dict() for failure in exc.failures],
        )
    if isinstance(exc, (ParseError, ConfigurationError)):
        return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal server error")


async def media_ticket_error_handler(request: Request, exc: MediaTicketError) -> JSONResponse:
    api_error = to_api_error(exc)
    log = logger.warning if api_error.status_code < 500 else logger.error
    log(
        "api.error",
        extra={
            "path": request.url.path,
            "status_code": api_error.status_code,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
    )
    return api_error.to_response(include_details=_debug_enabled(request))


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ApiError(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request body",
        details=[{"loc": list(item.get("loc", ())), "msg": item.get("msg")} for item in exc.errors()],
    )
    return error.to_response(include_details=_debug_enabled(request))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api.unhandled_error", extra={"path": request.url.path})
    error = ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", details=str(exc))
    return error.to_response(include_details=_debug_enabled(request))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(MediaTicketError, media_ticket_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = [
    "ApiError",
    "HTTP_CLIENT_CLOSED_REQUEST",
    "api_error_handler",
    "media_ticket_error_handler",
    "register_error_handlers",
    "to_api_error",
]
