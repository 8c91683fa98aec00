"""Custom exceptions for the Graph sender."""

from __future__ import annotations


class GraphSenderError(Exception):
    """Base exception for all Graph sender errors."""


class AuthenticationError(GraphSenderError):
    """Credential settings are missing or unusable."""


class AddressMappingError(GraphSenderError, ValueError):
    """A required address entry is absent from the outbound email."""


class RemoteCallError(GraphSenderError):
    """A Microsoft Graph request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UploadError(GraphSenderError):
    """A chunked attachment upload did not report completion."""


class SendCancelledError(GraphSenderError):
    """The caller's cancellation signal was set before a remote call."""
