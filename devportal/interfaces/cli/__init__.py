"""CLI interface facades for devportal.

This package is the home for all Click commands. Use
``python -m devportal.interfaces.cli`` or the ``devportal`` console script.
"""

from .__main__ import cli
from .listing import apps, certificates, devices, profiles, teams

__all__ = [
    "apps",
    "certificates",
    "cli",
    "devices",
    "profiles",
    "teams",
]
