"""Application-level wiring (configuration) for devportal."""

from .config import DEFAULT_PAGE_SIZE, MIN_RETRIES, PortalSettings, load_config

__all__ = ["DEFAULT_PAGE_SIZE", "MIN_RETRIES", "PortalSettings", "load_config"]
