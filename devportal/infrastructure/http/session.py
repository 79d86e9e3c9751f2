"""Session state values and the CSRF token store."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace


@dataclass
class LoginCredentials:
    """Login inputs. Only lives for the duration of a login call."""

    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def is_complete(self) -> bool:
        return bool(self.username) and bool(self.password)


@dataclass(frozen=True)
class CsrfTokens:
    """The anti-forgery pair echoed back as ``csrf`` and ``csrf_ts`` headers."""

    token: str
    timestamp: str

    def as_headers(self) -> dict[str, str]:
        return {"csrf": self.token, "csrf_ts": self.timestamp}


@dataclass(frozen=True)
class Session:
    """Immutable snapshot of an authenticated session.

    ``csrf_token`` and ``csrf_timestamp`` are either both set or both unset.
    """

    cookie: str
    csrf_token: str | None = None
    csrf_timestamp: str | None = None
    default_team_id: str | None = None

    def __post_init__(self) -> None:
        if (self.csrf_token is None) != (self.csrf_timestamp is None):
            raise ValueError(
                "csrf_token and csrf_timestamp must be set together")

    @property
    def csrf(self) -> CsrfTokens | None:
        if self.csrf_token is None or self.csrf_timestamp is None:
            return None
        return CsrfTokens(self.csrf_token, self.csrf_timestamp)

    def with_csrf(self, tokens: CsrfTokens | None) -> "Session":
        if tokens is None:
            return replace(self, csrf_token=None, csrf_timestamp=None)
        return replace(
            self, csrf_token=tokens.token, csrf_timestamp=tokens.timestamp
        )

    def with_team(self, team_id: str | None) -> "Session":
        return replace(self, default_team_id=team_id)

    def headers(self) -> dict[str, str]:
        """Headers proving this session: cookie plus CSRF pair when known."""
        headers = {"Cookie": self.cookie}
        tokens = self.csrf
        if tokens is not None:
            headers.update(tokens.as_headers())
        return headers


class CsrfTokenStore:
    """Holds the CSRF pair of the active session.

    The store itself performs no network calls. ``lock`` is the critical
    section under which the owning :class:`AuthSession` discovers tokens.
    """

    def __init__(self) -> None:
        self._tokens: CsrfTokens | None = None
        self._guard = threading.Lock()
        self.lock = threading.Lock()

    def get(self) -> CsrfTokens | None:
        with self._guard:
            return self._tokens

    def set(self, token: str, timestamp: str) -> CsrfTokens:
        tokens = CsrfTokens(token=token, timestamp=timestamp)
        with self._guard:
            self._tokens = tokens
        return tokens

    def clear(self) -> None:
        with self._guard:
            self._tokens = None


__all__ = ["CsrfTokenStore", "CsrfTokens", "LoginCredentials", "Session"]
