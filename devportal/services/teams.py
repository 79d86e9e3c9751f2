"""Team selection for accounts that belong to several portal teams.

Resolution order: an identifier override, then a name override, then the
only team of the account, then an interactive choice. The interactive part
is split into :func:`format_choices` and the pure :func:`parse_selection` so
callers decide how input is actually read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from devportal.infrastructure.http.errors import PortalError
from devportal.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

TEAM_ID_ENV = "DEVPORTAL_TEAM_ID"
TEAM_NAME_ENV = "DEVPORTAL_TEAM_NAME"

Team = Mapping[str, Any]


@dataclass(frozen=True)
class TeamOverrides:
    """Optional explicit team choice."""

    team_id: str | None = None
    team_name: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TeamOverrides":
        env = os.environ if environ is None else environ
        return cls(team_id=env.get(TEAM_ID_ENV), team_name=env.get(TEAM_NAME_ENV))


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _member_id(team: Team) -> str:
    member = team.get("currentTeamMember") or {}
    return _clean(member.get("teamMemberId"))


def match_override(teams: Sequence[Team], overrides: TeamOverrides) -> str | None:
    """Resolve a team id without asking the user, or return ``None``."""
    team_id = _clean(overrides.team_id)
    team_name = _clean(overrides.team_name)

    if team_id:
        for team in teams:
            # The login page and the team page report different identifiers
            if _clean(team.get("teamId")) == team_id or _member_id(team) == team_id:
                return _clean(team.get("teamId"))
        logger.warning("Couldn't find team with ID '%s'", team_id)

    if team_name:
        for team in teams:
            if _clean(team.get("name")) == team_name:
                return _clean(team.get("teamId"))
        logger.warning("Couldn't find team with name '%s'", team_name)

    if len(teams) == 1:
        return _clean(teams[0].get("teamId"))
    return None


def format_choices(teams: Sequence[Team]) -> list[str]:
    return [
        f"{i}) {team.get('teamId')} {team.get('name')} ({team.get('type')})"
        for i, team in enumerate(teams, start=1)
    ]


def parse_selection(teams: Sequence[Team], raw: str | None) -> int | None:
    """Map a 1-based answer to a team index; ``None`` means ask again."""
    try:
        number = int((raw or "").strip())
    except ValueError:
        return None
    if 1 <= number <= len(teams):
        return number - 1
    return None


def select_team(
    teams: Sequence[Team],
    overrides: TeamOverrides | None = None,
    prompt: Callable[[list[str]], str] | None = None,
) -> str:
    """Return the id of the team to work with.

    ``prompt`` receives the enumerated choices and returns the raw answer;
    it is called again until the answer names a listed team.

    Raises:
        PortalError: If the account has no teams, or several teams and no
            way to ask.
    """
    if not teams:
        raise PortalError("Your account is in no teams")

    resolved = match_override(teams, overrides or TeamOverrides())
    if resolved is not None:
        return resolved

    if prompt is None:
        raise PortalError(
            f"Multiple teams found; set {TEAM_ID_ENV} or {TEAM_NAME_ENV}")

    choices = format_choices(teams)
    while True:
        index = parse_selection(teams, prompt(choices))
        if index is not None:
            return _clean(teams[index].get("teamId"))


__all__ = [
    "TEAM_ID_ENV",
    "TEAM_NAME_ENV",
    "TeamOverrides",
    "format_choices",
    "match_override",
    "parse_selection",
    "select_team",
]
