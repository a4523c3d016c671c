"""Configuration and credentials."""

from .credentials import GitHubCredentials, resolve_credentials
from .settings import Settings

__all__ = [
    "GitHubCredentials",
    "Settings",
    "resolve_credentials",
]
