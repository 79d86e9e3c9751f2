"""Read-only listing commands for teams and portal resources."""

from __future__ import annotations

import json
from typing import Any, Callable, Sequence

import click
from rich.console import Console

from devportal.infrastructure.http import PortalError
from devportal.services import PortalClient, format_choices

from .auth import CLIOptions, build_portal_client

console = Console()

json_option = click.option(
    "--json-output", is_flag=True, help="Output the results as JSON.")
page_size_option = click.option(
    "--page-size", type=int, default=None, help="Records requested per page.")


def _emit(
    records: Sequence[dict[str, Any]],
    json_output: bool,
    format_line: Callable[[dict[str, Any]], str],
    empty_message: str,
) -> None:
    if json_output:
        console.print_json(json.dumps(list(records)))
        return
    if not records:
        console.print(f"[yellow]{empty_message}[/yellow]")
        return
    console.print(f"Showing {len(records)} record(s):")
    for record in records:
        console.print(format_line(record), markup=False)


def _run(
    options: CLIOptions,
    page_size: int | None,
    action: Callable[[PortalClient], list[dict[str, Any]]],
) -> list[dict[str, Any]]:
    client = build_portal_client(options, page_size=page_size)
    try:
        return action(client)
    except PortalError as exc:
        raise click.ClickException(str(exc)) from exc


@click.command()
@json_option
@click.pass_obj
def teams(options: CLIOptions, json_output: bool) -> None:
    """List the teams of the account."""
    records = _run(options, None, lambda client: client.teams())
    if json_output:
        console.print_json(json.dumps(records))
        return
    for line in format_choices(records):
        console.print(line, markup=False)


@click.command()
@page_size_option
@json_option
@click.pass_obj
def devices(options: CLIOptions, page_size: int | None, json_output: bool) -> None:
    """List registered devices."""
    records = _run(options, page_size, lambda client: client.devices())
    _emit(
        records,
        json_output,
        lambda d: f"- {d.get('name')} | {d.get('deviceNumber')} | {d.get('devicePlatform')}",
        "No devices registered.",
    )


@click.command()
@page_size_option
@json_option
@click.pass_obj
def apps(options: CLIOptions, page_size: int | None, json_output: bool) -> None:
    """List app ids."""
    records = _run(options, page_size, lambda client: client.apps())
    _emit(
        records,
        json_output,
        lambda a: f"- {a.get('name')} | {a.get('identifier')} | {a.get('appIdId')}",
        "No app ids found.",
    )


@click.command()
@click.option(
    "--type",
    "types",
    multiple=True,
    required=True,
    help="Certificate type id to include (repeatable).",
)
@page_size_option
@json_option
@click.pass_obj
def certificates(
    options: CLIOptions,
    types: tuple[str, ...],
    page_size: int | None,
    json_output: bool,
) -> None:
    """List certificates."""
    records = _run(options, page_size, lambda client: client.certificates(types))
    _emit(
        records,
        json_output,
        lambda c: f"- {c.get('name')} | {c.get('typeString')} | expires {c.get('expirationDateString')}",
        "No certificates found.",
    )


@click.command()
@page_size_option
@json_option
@click.pass_obj
def profiles(options: CLIOptions, page_size: int | None, json_output: bool) -> None:
    """List provisioning profiles."""
    records = _run(options, page_size, lambda client: client.provisioning_profiles())
    _emit(
        records,
        json_output,
        lambda p: f"- {p.get('name')} | {p.get('status')} | {p.get('distributionMethod')}",
        "No provisioning profiles found.",
    )
