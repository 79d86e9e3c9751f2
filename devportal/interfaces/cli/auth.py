"""CLI helpers for constructing logged in portal clients."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

import click

from devportal.app.config import PortalSettings
from devportal.infrastructure.http import PortalError
from devportal.services import PortalClient, TeamOverrides


@dataclass(frozen=True)
class CLIOptions:
    """Global options collected by the top-level command group."""

    config_path: str | None
    username: str | None
    password: str | None
    team_id: str | None
    team_name: str | None


def prompt_for_team(choices: list[str]) -> str:
    """Print the enumerated teams and read one answer from the terminal."""
    click.echo(
        "Multiple teams found, please enter the number of the team you want to use: ")
    for line in choices:
        click.echo(line)
    return click.prompt("Team", default="", show_default=False)


def build_portal_client(
    options: CLIOptions, *, page_size: int | None = None
) -> PortalClient:
    """Return a :class:`PortalClient` that is already logged in.

    Raises:
        click.ClickException: When credentials are missing or login fails.
    """
    if not options.username:
        raise click.ClickException(
            "A username is required (--username or DEVPORTAL_USERNAME)")
    password = options.password
    if password is None:
        password = click.prompt("Password", hide_input=True)

    settings = (
        PortalSettings.from_file(Path(options.config_path))
        if options.config_path
        else PortalSettings()
    )
    if page_size:
        settings = replace(settings, page_size=page_size)

    client = PortalClient(
        settings,
        overrides=TeamOverrides(
            team_id=options.team_id, team_name=options.team_name),
        prompt=prompt_for_team,
    )
    try:
        client.login(options.username, password)
    except PortalError as exc:
        raise click.ClickException(str(exc)) from exc
    return client
