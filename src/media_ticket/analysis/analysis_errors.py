"""Errors raised while calling the model provider and aggregating results."""

from __future__ import annotations

import json
from enum import StrEnum
from typing import TYPE_CHECKING, Sequence

from ..exceptions import MediaTicketError

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .analysis_models import ItemFailure


class ProviderErrorKind(StrEnum):
    MODEL_NOT_FOUND = "model_not_found"
    RATE_LIMITED = "rate_limited"
    PERMISSION_DENIED = "permission_denied"
    INVALID_ARGUMENT = "invalid_argument"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    UNKNOWN = "unknown"


# Provider error text is free-form; the first matching group wins.
_KIND_MARKERS: tuple[tuple[ProviderErrorKind, tuple[str, ...]], ...] = (
    (ProviderErrorKind.MODEL_NOT_FOUND, ("not found", "not_found", "not supported", "404")),
    (ProviderErrorKind.RATE_LIMITED, ("resource_exhausted", "rate limit", "quota", "429", "too many requests")),
    (ProviderErrorKind.PERMISSION_DENIED, ("permission_denied", "permission denied", "api key not valid", "403", "401")),
    (ProviderErrorKind.DEADLINE_EXCEEDED, ("deadline_exceeded", "deadline exceeded", "timed out", "timeout", "504")),
    (ProviderErrorKind.INVALID_ARGUMENT, ("invalid_argument", "invalid argument", "400")),
)


def classify_provider_error(message: str | None) -> ProviderErrorKind:
    """Map provider error text to a :class:`ProviderErrorKind`."""

    if not message:
        return ProviderErrorKind.UNKNOWN
    lowered = message.lower()
    for kind, markers in _KIND_MARKERS:
        if any(marker in lowered for marker in markers):
            return kind
    return ProviderErrorKind.UNKNOWN


def format_provider_error(error: BaseException | str) -> str:
    """Return ``error.message`` when the error text embeds a JSON error body."""

    text = str(error)
    start = text.find("{")
    if start == -1:
        return text
    try:
        payload = json.loads(text[start:])
    except json.JSONDecodeError:
        return text
    if isinstance(payload, dict):
        inner = payload.get("error")
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
        if isinstance(payload.get("message"), str):
            return payload["message"]
    return text


class ProviderCallError(MediaTicketError):
    """A single model call failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        kind: ProviderErrorKind | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind or classify_provider_error(message)


class AggregateFailureError(MediaTicketError):
    """Every model call of an analysis run failed."""

    def __init__(self, failures: Sequence["ItemFailure"]) -> None:
        self.failures = list(failures)
        super().__init__(format_aggregate_failure(self.failures))


def format_aggregate_failure(failures: Sequence["ItemFailure"]) -> str:
    lines = ["All analysis attempts failed.", "Details:"]
    lines.extend(f"- {failure.label}: {failure.error}" for failure in failures)
    return "\n".join(lines)
