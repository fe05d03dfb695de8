"""Configuration module for Claude Web Proxy."""

from .backend import BackendSettings
from .http import HTTPSettings
from .logging import LoggingSettings
from .server import ServerSettings
from .settings import Settings, get_settings


__all__ = [
    "BackendSettings",
    "HTTPSettings",
    "LoggingSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
