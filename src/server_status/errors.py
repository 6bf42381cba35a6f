"""Error hierarchy for authenticated calls against the instance API.

These errors are kept small and free of httpx.Response objects (and tokens) so
they can cross the lifecycle layer without leaking transport details.
"""

from __future__ import annotations

AUTH_MISSING_MESSAGE = "Not authenticated. Please log in again."
GENERIC_STOP_FAILURE_MESSAGE = "Failed to stop server. Please try again."


class StatusPageError(Exception):
    """Base error for status page collaborators."""


class AuthMissingError(StatusPageError):
    """The token provider returned no token."""

    def __init__(self, message: str = AUTH_MISSING_MESSAGE) -> None:
        self.message = message
        super().__init__(message)


class NetworkFailureError(StatusPageError):
    """The request raised before a usable response arrived."""

    def __init__(self, message: str = "request failed") -> None:
        self.message = message
        super().__init__(message)


class RemoteRejectedError(StatusPageError):
    """The instance API answered with a non-2xx status.

    ``message`` is the human-readable text from the response body, or None
    when the body carried none.
    """

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        *,
        response_body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.response_body = response_body
        super().__init__(
            f"Instance API error {status_code}: {message or 'no message'}"
        )
