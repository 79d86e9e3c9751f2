"""HTTP session pipeline for the developer portal.

This package provides the authenticated session, CSRF handling, retrying
transport and pagination used by every portal call.
"""

from .auth import AuthSession
from .errors import (
    InvalidCredentials,
    PortalError,
    SessionExpired,
    TransportError,
    TransportTimeout,
    UnexpectedResponse,
)
from .pagination import PageFetcher, PageRequest, Paginator, Record
from .session import CsrfTokens, CsrfTokenStore, LoginCredentials, Session
from .transport import (
    PortalRequest,
    RetryingTransport,
    TransportResult,
    parse_json,
)

__all__ = [
    "AuthSession",
    "CsrfTokenStore",
    "CsrfTokens",
    "InvalidCredentials",
    "LoginCredentials",
    "PageFetcher",
    "PageRequest",
    "Paginator",
    "PortalError",
    "PortalRequest",
    "Record",
    "RetryingTransport",
    "Session",
    "SessionExpired",
    "TransportError",
    "TransportResult",
    "TransportTimeout",
    "UnexpectedResponse",
    "parse_json",
]
