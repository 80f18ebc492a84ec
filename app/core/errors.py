"""
Relay error taxonomy.

Every failure the service reports to a caller is one of these. The HTTP
layer maps them to a status code and a JSON body of the form
``{"error": ..., "details": ...}``.
"""

from typing import Any, Optional

from fastapi import status


class RelayError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Render as a JSON error body."""
        body: dict = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class CallerError(RelayError):
    """Missing or malformed request fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(RelayError):
    """Lookup matched nothing."""

    status_code = status.HTTP_404_NOT_FOUND


class StoreError(RelayError):
    """Datastore unreachable or query failed."""


class TransportError(RelayError):
    """Email or SMS provider rejected or failed the send."""


class StagingError(RelayError):
    """Local file staging failed.

    Only raised when an upload cannot be written. Cleanup failures are
    logged by the stager and never raised.
    """
