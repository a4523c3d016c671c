"""Shared utilities."""

from .datetime import ensure_utc, latest, now_utc

__all__ = [
    "ensure_utc",
    "latest",
    "now_utc",
]
