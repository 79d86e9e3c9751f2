"""
devportal package initializer.

This package provides an authenticated session client for the developer
account portal: login, CSRF handling, paginated listings and retrying
transport.

The package exposes a ``__version__`` attribute indicating the installed
version of devportal. The version is read from pyproject.toml via
importlib.metadata – this is the single source of truth.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("devportal")
except PackageNotFoundError:
    # Package is not installed (running from source without pip install -e .)
    __version__ = "0.0.0.dev"

__all__: list[str] = ["__version__"]
