"""Service layer for devportal.

Team selection, resource request builders and the high-level
:class:`PortalClient` built on the HTTP session pipeline.
"""

from .portal import PortalClient
from .resources import AppKind, PortalResources
from .teams import (
    TeamOverrides,
    format_choices,
    match_override,
    parse_selection,
    select_team,
)

__all__ = [
    "AppKind",
    "PortalClient",
    "PortalResources",
    "TeamOverrides",
    "format_choices",
    "match_override",
    "parse_selection",
    "select_team",
]
