"""Core utilities for the service."""

from chromagent.app.core.config import Settings, get_settings
from chromagent.app.core.http_client import init_http_client
from chromagent.app.core.logging import get_logger, preview, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "init_http_client",
    "get_logger",
    "preview",
    "setup_logging",
]
