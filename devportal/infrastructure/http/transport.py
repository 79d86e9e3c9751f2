"""Request execution with timeout retries and outcome classification.

:class:`RetryingTransport` sends one logical request through a
:class:`requests.Session`. Attempts that time out are repeated with
exponential backoff until the retry budget is spent; every other outcome is
classified once into a successful response or one of the typed errors from
:mod:`devportal.infrastructure.http.errors`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping
from urllib.parse import urlparse

import requests
from requests import Response

from devportal import __version__
from devportal.app.config import MIN_RETRIES, PortalSettings
from devportal.infrastructure.observability.logging import (
    get_logger,
    log_context,
    log_exception,
)

from .errors import (
    PortalError,
    SessionExpired,
    TransportError,
    TransportTimeout,
    UnexpectedResponse,
)
from .session import Session

if TYPE_CHECKING:
    from .auth import AuthSession

logger = get_logger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass(frozen=True)
class PortalRequest:
    """One logical HTTP request against the portal."""

    method: str
    url: str
    params: Mapping[str, Any] | None = None
    data: Mapping[str, Any] | None = field(default=None, repr=False)
    headers: Mapping[str, str] | None = None
    mutating: bool = False
    # Login and API key lookups read the redirect itself.
    expect_redirect: bool = False


@dataclass
class TransportResult:
    """Outcome of :meth:`RetryingTransport.dispatch`."""

    request: PortalRequest
    response: Response | None = None
    error: PortalError | None = None
    attempts: int = 0
    cause: BaseException | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None and self.response is not None

    def unwrap(self) -> Response:
        """Return the response or raise the classified error."""
        if self.error is not None:
            raise self.error from self.cause
        if self.response is None:
            raise TransportError("No response received")
        return self.response


def application_error(payload: Any) -> UnexpectedResponse | None:
    """Return the error embedded in a decoded 2xx body, if any.

    A non-zero ``resultCode`` or, absent a result code, a ``userString`` /
    ``resultString`` field marks the body as a failure. The message is
    passed through exactly as the server sent it.
    """
    if not isinstance(payload, dict):
        return None
    code = payload.get("resultCode")
    message = payload.get("userString") or payload.get("resultString")
    if code is not None:
        try:
            code = int(code)
        except (TypeError, ValueError):
            code = None
    if code == 0:
        return None
    if code is None and not message:
        return None
    if not message:
        message = f"Unexpected result code {code}"
    return UnexpectedResponse(str(message), result_code=code)


def decode_json(response: Response) -> Any:
    """Return the decoded JSON body, or ``None`` when it is not JSON."""
    content_type = response.headers.get("Content-Type", "")
    body = response.text.lstrip() if response.content else ""
    if "json" not in content_type and not body.startswith(("{", "[")):
        return None
    try:
        return response.json()
    except ValueError:
        return None


def parse_json(response: Response, expected_key: str | None = None) -> Any:
    """Decode a portal JSON body and optionally pull out one key.

    Raises:
        UnexpectedResponse: If the body is not JSON, carries an application
            error, or lacks ``expected_key``.
    """
    try:
        payload = response.json()
    except ValueError as exc:
        raise UnexpectedResponse(
            f"Invalid JSON response from {response.url}") from exc
    error = application_error(payload)
    if error is not None:
        raise error
    if expected_key is None:
        return payload
    if not isinstance(payload, dict) or expected_key not in payload:
        raise UnexpectedResponse(
            f"Response from {response.url} has no '{expected_key}' entry")
    return payload[expected_key]


class RetryingTransport:
    """Executes portal requests, retrying attempts that time out."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        login_url: str = PortalSettings.login_url,
        timeout_seconds: float = 30.0,
        max_retries: int = MIN_RETRIES,
        backoff_base_seconds: float = 1.0,
        user_agent: str = "",
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or requests.Session()
        self.login_url = login_url
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(MIN_RETRIES, max_retries)
        self.backoff_base_seconds = max(0.0, backoff_base_seconds)
        self.user_agent = user_agent or f"devportal/{__version__}"
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: PortalSettings,
        session: requests.Session | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "RetryingTransport":
        return cls(
            session=session,
            sleep=sleep,
            login_url=settings.login_url,
            timeout_seconds=settings.request_timeout_seconds,
            max_retries=settings.max_retries,
            backoff_base_seconds=settings.backoff_base_seconds,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def _backoff_delay(self, attempt: int) -> float:
        # Never shorter than one attempt's timeout.
        return max(self.timeout_seconds, self.backoff_base_seconds * (2**attempt))

    # -------------------- request helpers --------------------
    def _prepare_headers(
        self, request: PortalRequest, session: Session | None
    ) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if session is not None:
            headers.update(session.headers())
        if request.headers:
            headers.update(request.headers)
        return headers

    def _send(self, request: PortalRequest, headers: dict[str, str]) -> Response:
        return self.session.request(
            request.method,
            request.url,
            params=dict(request.params) if request.params else None,
            data=dict(request.data) if request.data else None,
            headers=headers,
            timeout=self.timeout_seconds,
            allow_redirects=False,
        )

    def _is_login_redirect(self, location: str) -> bool:
        target = urlparse(location)
        login = urlparse(self.login_url)
        if target.netloc and target.netloc == login.netloc:
            return True
        return "login" in target.path.lower()

    def classify(self, request: PortalRequest, response: Response) -> PortalError | None:
        """Map a received response to a typed error, or ``None`` on success."""
        status = response.status_code
        if status in (401, 403):
            return SessionExpired(
                f"Session rejected with HTTP {status}; please log in again")
        if status in REDIRECT_STATUSES:
            if request.expect_redirect:
                return None
            location = response.headers.get("Location", "")
            if self._is_login_redirect(location):
                return SessionExpired(
                    "Session expired; redirected to the login page")
            return TransportError(
                f"Unexpected redirect to {location or '(no location)'}",
                status_code=status,
            )
        if status >= 400:
            return TransportError(
                f"HTTP {status} for {request.method} {request.url}",
                status_code=status,
            )
        return application_error(decode_json(response))

    # -------------------- execution --------------------
    def dispatch(
        self, request: PortalRequest, session: Session | None = None
    ) -> TransportResult:
        """Run the bounded retry loop and return the classified outcome.

        ``session`` is the snapshot whose cookie and CSRF pair are attached
        to every attempt.
        """
        headers = self._prepare_headers(request, session)
        last_timeout: requests.Timeout | None = None
        for attempt in range(self.max_attempts):
            try:
                response = self._send(request, headers)
            except requests.Timeout as exc:
                last_timeout = exc
                if attempt >= self.max_attempts - 1:
                    break
                delay = self._backoff_delay(attempt)
                with log_context(url=request.url, attempt=attempt + 1):
                    logger.warning(
                        "Request timed out, retrying in %.2fs (%d/%d retries)",
                        delay,
                        attempt + 1,
                        self.max_retries,
                    )
                self._sleep(delay)
                continue
            except requests.RequestException as exc:
                log_exception(logger, "Request failed", exc, url=request.url)
                return TransportResult(
                    request,
                    error=TransportError(f"Request to {request.url} failed: {exc}"),
                    attempts=attempt + 1,
                    cause=exc,
                )
            return TransportResult(
                request,
                response=response,
                error=self.classify(request, response),
                attempts=attempt + 1,
            )

        log_exception(
            logger,
            f"Giving up after {self.max_attempts} timed out attempts",
            last_timeout,
            url=request.url,
        )
        return TransportResult(
            request,
            error=TransportTimeout(
                f"Request to {request.url} timed out after "
                f"{self.max_attempts} attempts",
                attempts=self.max_attempts,
            ),
            attempts=self.max_attempts,
            cause=last_timeout,
        )

    def execute(
        self, request: PortalRequest, auth: "AuthSession | None" = None
    ) -> Response:
        """Send ``request`` and return the response or raise a typed error.

        With an ``auth`` session, the session snapshot is attached and CSRF
        tokens are discovered first when the request is mutating.
        """
        session: Session | None = None
        if auth is not None:
            if request.mutating:
                auth.ensure_csrf_tokens()
            session = auth.require_session()
        return self.dispatch(request, session).unwrap()


__all__ = [
    "PortalRequest",
    "RetryingTransport",
    "TransportResult",
    "application_error",
    "decode_json",
    "parse_json",
]
