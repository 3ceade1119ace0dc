"""Application level exceptions shared across MediaToTicket modules."""

from __future__ import annotations

__all__ = [
    "MediaTicketError",
    "ValidationError",
    "ParseError",
    "SessionNotFoundError",
    "AnalysisCancelledError",
    "ConfigurationError",
]


class MediaTicketError(Exception):
    """Base class for application specific errors."""


class ValidationError(MediaTicketError):
    """Raised when request input is missing, empty or unusable."""


class ParseError(MediaTicketError):
    """Raised when model output cannot be decoded even after repair."""

    def __init__(self, message: str, *, snippet: str = "") -> None:
        super().__init__(message)
        self.snippet = snippet


class SessionNotFoundError(MediaTicketError):
    """Raised when a chat session is unknown or has expired."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Chat session '{session_id}' not found or expired")
        self.session_id = session_id


class AnalysisCancelledError(MediaTicketError):
    """Raised when an analysis run is abandoned on request."""


class ConfigurationError(MediaTicketError):
    """Raised when the service configuration cannot work (e.g. unknown model)."""
