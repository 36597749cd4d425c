"""
Application-level exceptions.

Each error carries the HTTP status and the public message returned to the
caller. Internal detail goes to the log only, never into the response.
"""

from __future__ import annotations


class CopyTradeError(Exception):
    """Base for all domain errors raised by handlers, the store and gateways."""

    status_code = 500
    public_message = "Something went wrong!"

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(message or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(CopyTradeError):
    """Missing or malformed required field."""

    status_code = 400
    public_message = "Missing required fields"


class NotFoundError(CopyTradeError):
    """Entity absent, or present only under a different owner."""

    status_code = 404
    public_message = "Not found"


class DependencyError(CopyTradeError):
    """Store or external-service fault that no fallback tier absorbed."""

    status_code = 500
    public_message = "Something went wrong!"


class StoreError(DependencyError):
    """Persistent store query or write failed."""

    public_message = "Database error"


class GatewayError(DependencyError):
    """External service unreachable, unconfigured, or answered with an error."""

    public_message = "External service unavailable"
