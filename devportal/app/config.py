"""Configuration utilities for devportal.

Provides helper functions for loading and parsing configuration from JSON
files, and the :class:`PortalSettings` object handed to the client.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping

DEFAULT_PAGE_SIZE = 500
# Fewest retries made before a timed out request is abandoned.
MIN_RETRIES = 5


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file.

    Returns:
        A dictionary of configuration values.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass(frozen=True)
class PortalSettings:
    """Endpoints and tuning knobs for a portal session."""

    login_url: str = "https://idmsa.apple.com/IDMSWebAuth/authenticate"
    landing_url: str = "https://developer.apple.com/account/"
    csrf_landing_url: str = (
        "https://developer.apple.com/account/ios/certificate/certificateList.action"
    )
    portal_base_url: str = "https://developer.apple.com/services-account/QH65B2/"
    session_cookie_name: str = "myacinfo"
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout_seconds: float = 30.0
    max_retries: int = MIN_RETRIES
    backoff_base_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError("page_size must be positive")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.max_retries < MIN_RETRIES:
            raise ValueError(f"max_retries must be at least {MIN_RETRIES}")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds cannot be negative")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PortalSettings":
        """Build settings from a config mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, raw in data.items():
            if key not in known:
                continue
            if key in ("page_size", "max_retries"):
                values[key] = int(raw)
            elif key in ("request_timeout_seconds", "backoff_base_seconds"):
                values[key] = float(raw)
            else:
                values[key] = str(raw)
        return cls(**values)

    @classmethod
    def from_file(cls, path: str | Path) -> "PortalSettings":
        return cls.from_mapping(load_config(path))

    def portal_url(self, path: str) -> str:
        return self.portal_base_url.rstrip("/") + "/" + path.lstrip("/")


__all__ = ["DEFAULT_PAGE_SIZE", "MIN_RETRIES", "PortalSettings", "load_config"]
