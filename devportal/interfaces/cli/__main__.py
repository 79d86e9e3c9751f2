"""Entry point for running the devportal CLI.

This module defines the top-level Click group that collects the global login
options and aggregates the subcommands of ``devportal.interfaces.cli``.
Executing ``python -m devportal.interfaces.cli`` invokes this group.
"""

import logging

import click

from devportal.infrastructure.observability import configure_logging
from devportal.services.teams import TEAM_ID_ENV, TEAM_NAME_ENV

from .auth import CLIOptions
from .listing import apps, certificates, devices, profiles, teams


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with portal settings.",
)
@click.option("--username", envvar="DEVPORTAL_USERNAME", default=None, help="Account username.")
@click.option(
    "--password",
    envvar="DEVPORTAL_PASSWORD",
    default=None,
    help="Account password (prompted when omitted).",
)
@click.option("--team-id", envvar=TEAM_ID_ENV, default=None, help="Team id to use.")
@click.option("--team-name", envvar=TEAM_NAME_ENV, default=None, help="Team name to use.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    username: str | None,
    password: str | None,
    team_id: str | None,
    team_name: str | None,
    verbose: bool,
) -> None:
    """devportal command-line interface."""
    configure_logging(level=logging.DEBUG if verbose else logging.INFO)
    ctx.obj = CLIOptions(
        config_path=config_path,
        username=username,
        password=password,
        team_id=team_id,
        team_name=team_name,
    )


cli.add_command(teams)
cli.add_command(devices)
cli.add_command(apps)
cli.add_command(certificates)
cli.add_command(profiles)


if __name__ == "__main__":
    cli()
