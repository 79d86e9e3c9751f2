"""High-level portal client combining session, team choice and resources."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import requests

from devportal.app.config import PortalSettings
from devportal.infrastructure.http import (
    AuthSession,
    Paginator,
    RetryingTransport,
    Session,
)
from devportal.infrastructure.observability.logging import get_logger

from .resources import PortalResources
from .teams import TeamOverrides, select_team

logger = get_logger(__name__)


class PortalClient(PortalResources):
    """Authenticated portal client.

    Example::

        client = PortalClient(overrides=TeamOverrides(team_id="XXXXXXXXXX"))
        client.login("user@example.com", "secret")
        for device in client.devices():
            print(device["name"])
    """

    def __init__(
        self,
        settings: PortalSettings | None = None,
        *,
        overrides: TeamOverrides | None = None,
        http_session: requests.Session | None = None,
        transport: RetryingTransport | None = None,
        prompt: Callable[[list[str]], str] | None = None,
    ) -> None:
        self.settings = settings or PortalSettings()
        self.transport = transport or RetryingTransport.from_settings(
            self.settings, http_session)
        self.overrides = overrides or TeamOverrides()
        self.prompt = prompt
        super().__init__(
            AuthSession(self.transport, self.settings),
            Paginator(self.settings.page_size),
            team_id=lambda: self.team_id,
        )

    @classmethod
    def from_config(cls, path: str | Path, **kwargs: Any) -> "PortalClient":
        return cls(PortalSettings.from_file(path), **kwargs)

    @property
    def session(self) -> Session | None:
        return self.auth.session

    def login(self, username: str, password: str) -> Session:
        return self.auth.login(username, password)

    def logout(self) -> None:
        self.auth.logout()

    def teams(self) -> list[dict[str, Any]]:
        return self.auth.teams()

    @property
    def team_id(self) -> str:
        """The active team, resolved through the team selector on first use."""
        stored = self.auth.team_id
        if stored:
            return stored
        resolved = select_team(self.teams(), self.overrides, self.prompt)
        self.auth.set_team_id(resolved)
        logger.info("Using team %s", resolved)
        return resolved


__all__ = ["PortalClient"]
