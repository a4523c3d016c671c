"""GitHub token resolution.

Tries, in order:
1. ``GITHUB_TOKEN`` environment variable
2. the user config file (``~/.ringmaster/config.json`` by default)
3. a bearer token supplied with the request
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

TokenSource = Literal["env", "file", "header"]


@dataclass(frozen=True)
class GitHubCredentials:
    """A resolved token and where it came from."""

    token: str
    source: TokenSource
    username: str | None = None


def read_config_token(config_file: Path) -> tuple[str, str | None] | None:
    """Read ``{"github": {"token": ..., "username": ...}}`` from the config file.

    Returns None if the file is missing, unreadable, or has no token.
    """
    if not config_file.exists():
        return None

    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", config_file, e)
        return None

    github = data.get("github") if isinstance(data, dict) else None
    if not isinstance(github, dict) or not github.get("token"):
        return None
    return github["token"], github.get("username")


def parse_bearer(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_credentials(
    config_file: Path,
    authorization: str | None = None,
) -> GitHubCredentials | None:
    """Resolve a GitHub token using the fixed precedence.

    Args:
        config_file: Path of the user config file
        authorization: Raw Authorization header value from the request, if any

    Returns:
        Credentials, or None when no source provides a token
    """
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        logger.debug("Using token from GITHUB_TOKEN environment variable")
        return GitHubCredentials(token, "env", os.environ.get("GITHUB_USERNAME"))

    from_file = read_config_token(config_file)
    if from_file is not None:
        logger.debug("Using token from %s", config_file)
        return GitHubCredentials(from_file[0], "file", from_file[1])

    token = parse_bearer(authorization)
    if token:
        logger.debug("Using token from Authorization header")
        return GitHubCredentials(token, "header")

    logger.debug("No GitHub token found")
    return None
