"""Login session handling for the developer portal.

:class:`AuthSession` owns the lifecycle of one authenticated session: the
credential exchange, the session cookie, the lazily discovered CSRF pair and
the default team identifier. Requests themselves go through
:class:`~devportal.infrastructure.http.transport.RetryingTransport`.
"""

from __future__ import annotations

import re
from typing import Any

from devportal.app.config import PortalSettings
from devportal.infrastructure.observability.logging import get_logger

from .errors import InvalidCredentials, SessionExpired, UnexpectedResponse
from .session import CsrfTokens, CsrfTokenStore, LoginCredentials, Session
from .transport import PortalRequest, RetryingTransport, decode_json, parse_json

logger = get_logger(__name__)

_API_KEY_RE = re.compile(r"appIdKey=([0-9a-fA-F]+)")


def _body_token_re(name: str) -> re.Pattern[str]:
    return re.compile(
        rf"""["']?\b{name}["']?\s*[:=]\s*["']([^"']+)["']""")


_CSRF_BODY_RE = _body_token_re("csrf")
_CSRF_TS_BODY_RE = _body_token_re("csrf_ts")


class AuthSession:
    """Authenticated session against the portal with CSRF management."""

    def __init__(
        self,
        transport: RetryingTransport,
        settings: PortalSettings | None = None,
    ) -> None:
        self.transport = transport
        self.settings = settings or PortalSettings()
        self.csrf_store = CsrfTokenStore()
        self._session: Session | None = None
        self._api_key: str | None = None

    # -------------------- state --------------------
    @property
    def session(self) -> Session | None:
        """Snapshot of the current session, including known CSRF tokens."""
        base = self._session
        if base is None:
            return None
        return base.with_csrf(self.csrf_store.get())

    def require_session(self) -> Session:
        session = self.session
        if session is None:
            raise SessionExpired("Not logged in; call login() first")
        return session

    @property
    def cookie(self) -> str | None:
        return self._session.cookie if self._session is not None else None

    @property
    def team_id(self) -> str | None:
        return self._session.default_team_id if self._session is not None else None

    def set_team_id(self, team_id: str) -> Session:
        """Store the team id chosen by the team selector."""
        self.require_session()
        self._session = self._session.with_team(team_id)
        return self.require_session()

    def logout(self) -> None:
        self._session = None
        self.csrf_store.clear()

    # -------------------- login --------------------
    def api_key(self) -> str:
        """Return the application key the login form must be posted with."""
        if self._api_key is not None:
            return self._api_key
        request = PortalRequest(
            "GET", self.settings.landing_url, expect_redirect=True)
        response = self.transport.dispatch(request).unwrap()
        match = _API_KEY_RE.search(response.headers.get("Location", ""))
        if match is None:
            raise UnexpectedResponse(
                "Could not find the API key on the account landing page")
        self._api_key = match.group(1)
        return self._api_key

    def _extract_cookie(self, set_cookie: str) -> str | None:
        name = re.escape(self.settings.session_cookie_name)
        match = re.search(rf"(?:^|[\s,;]){name}=([^;,\s]+)", set_cookie)
        if match is None:
            return None
        return f"{self.settings.session_cookie_name}={match.group(1)};"

    def login(self, username: str, password: str) -> Session:
        """Exchange credentials for a session cookie.

        Any previous session, including its CSRF pair, is dropped first.

        Raises:
            InvalidCredentials: If either field is empty or the portal
                rejects the combination.
        """
        self.logout()
        credentials = LoginCredentials(username=username, password=password)
        if not credentials.is_complete:
            logger.error("Login attempted without username or password")
            raise InvalidCredentials()

        request = PortalRequest(
            "POST",
            self.settings.login_url,
            data={
                "appleId": credentials.username,
                "accountPassword": credentials.password,
                "appIdKey": self.api_key(),
            },
            expect_redirect=True,
        )
        result = self.transport.dispatch(request)
        if isinstance(result.error, (SessionExpired, UnexpectedResponse)):
            logger.error("Login rejected by the portal")
            raise InvalidCredentials() from result.error
        response = result.unwrap()

        cookie = self._extract_cookie(response.headers.get("Set-Cookie", ""))
        if cookie is None:
            logger.error("Login rejected by the portal")
            raise InvalidCredentials()

        self._session = Session(
            cookie=cookie, default_team_id=self._extract_team_id(response))
        logger.info("Logged in")
        return self._session

    @staticmethod
    def _extract_team_id(response: Any) -> str | None:
        payload = decode_json(response)
        if isinstance(payload, dict) and payload.get("teamId"):
            return str(payload["teamId"]).strip()
        return None

    # -------------------- csrf --------------------
    def ensure_csrf_tokens(self) -> tuple[str, str]:
        """Return the CSRF pair, discovering it once per session.

        Concurrent callers wait for a discovery already in flight instead of
        issuing their own.
        """
        tokens = self.csrf_store.get()
        if tokens is None:
            with self.csrf_store.lock:
                tokens = self.csrf_store.get()
                if tokens is None:
                    tokens = self._discover_csrf_tokens()
        return tokens.token, tokens.timestamp

    def _discover_csrf_tokens(self) -> CsrfTokens:
        session = self.require_session()
        request = PortalRequest("GET", self.settings.csrf_landing_url)
        response = self.transport.dispatch(request, session).unwrap()

        token = response.headers.get("csrf")
        timestamp = response.headers.get("csrf_ts")
        if not token or not timestamp:
            body = response.text or ""
            token_match = _CSRF_BODY_RE.search(body)
            ts_match = _CSRF_TS_BODY_RE.search(body)
            if token_match and ts_match:
                token, timestamp = token_match.group(1), ts_match.group(1)
        if not token or not timestamp:
            raise UnexpectedResponse(
                "CSRF tokens not found on the account landing page")
        tokens = self.csrf_store.set(token, timestamp)
        current = self._session
        if current is None or current.cookie != session.cookie:
            # Logged out or replaced while the landing page was loading.
            self.csrf_store.clear()
            raise SessionExpired("Session changed while fetching CSRF tokens")
        logger.debug("Discovered CSRF tokens")
        return tokens

    # -------------------- account data --------------------
    def teams(self) -> list[dict[str, Any]]:
        """Return the teams the logged in account belongs to."""
        request = PortalRequest(
            "POST", self.settings.portal_url("account/listTeams.action"))
        response = self.transport.execute(request, self)
        return parse_json(response, "teams")


__all__ = ["AuthSession"]
