"""Failure kinds surfaced by the portal session pipeline.

Every error raised by the HTTP layer derives from :class:`PortalError` so
callers can catch the whole family at once, while still being able to react
to individual kinds (for example re-authenticating on
:class:`SessionExpired`).
"""

from __future__ import annotations


class PortalError(Exception):
    """Base class for all devportal client errors."""


class InvalidCredentials(PortalError):
    """Raised when the login is rejected.

    The message never reveals whether the username or the password was wrong.
    """

    def __init__(self, message: str = "Invalid username and password combination") -> None:
        super().__init__(message)


class SessionExpired(PortalError):
    """Raised when a previously valid session is no longer accepted."""


class TransportError(PortalError):
    """Raised for transport faults that are not retried."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportTimeout(TransportError):
    """Raised once every retry of a timing-out request has been used up."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class UnexpectedResponse(PortalError):
    """Application-level error embedded in an otherwise successful response.

    ``message`` is the server text exactly as received; literal escape
    sequences such as ``\\n`` are left untouched.
    """

    def __init__(self, message: str, result_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.result_code = result_code

    def __str__(self) -> str:
        return self.message


__all__ = [
    "InvalidCredentials",
    "PortalError",
    "SessionExpired",
    "TransportError",
    "TransportTimeout",
    "UnexpectedResponse",
]
