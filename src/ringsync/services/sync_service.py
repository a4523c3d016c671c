"""Request handling for a sync run.

Validates the incoming payload, resolves a token, runs the engine and maps
the outcome to an HTTP-style status code and JSON body.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..config.credentials import resolve_credentials
from ..config.settings import Settings
from ..github.client import GitHubAuthError, GitHubClient
from ..models import SyncDirection, Task
from ..sync.engine import GitHubSyncEngine

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., GitHubClient]


class SyncRequest(BaseModel):
    """Body of a sync request."""

    repo: str = Field(..., min_length=1, pattern=r"^[^/\s]+/[^/\s]+$")
    tasks: list[Task]
    direction: SyncDirection = SyncDirection.PUSH


@dataclass
class SyncResponse:
    """Status code plus JSON-compatible body."""

    status_code: int
    body: dict[str, Any]


def _error(status_code: int, message: str) -> SyncResponse:
    return SyncResponse(status_code, {"success": False, "error": message})


def handle_sync_request(
    payload: dict[str, Any],
    settings: Settings | None = None,
    authorization: str | None = None,
    client_factory: ClientFactory = GitHubClient,
    cancel_event: threading.Event | None = None,
) -> SyncResponse:
    """Run one sync for a request payload.

    Args:
        payload: Decoded JSON body with repo, tasks and optional direction
        settings: Settings for the run (defaults from the environment)
        authorization: Raw Authorization header value, if any
        client_factory: Builds the GitHub client; replaced in tests
        cancel_event: Event that aborts the run when set

    Returns:
        401 without a usable token, 400 for a malformed payload, 500 when
        the run failed outside its per-item loops, 200 otherwise
    """
    settings = settings or Settings()

    credentials = resolve_credentials(settings.config_file, authorization)
    if credentials is None:
        return _error(
            401,
            "GitHub token not configured. Set GITHUB_TOKEN, add it to "
            f"{settings.config_file}, or send an Authorization header.",
        )

    if not isinstance(payload, dict) or not payload.get("repo"):
        return _error(400, "Missing repo in request body")

    try:
        request = SyncRequest.model_validate(payload)
    except ValidationError as e:
        logger.warning("Rejected sync request: %s", e)
        return _error(400, f"Invalid request: {e.error_count()} validation error(s)")

    cancel_event = cancel_event or threading.Event()
    client = client_factory(
        credentials.token,
        api_url=settings.api_url,
        api_version=settings.api_version,
        timeout=settings.timeout,
        cancel_event=cancel_event,
    )

    try:
        engine = GitHubSyncEngine(client, settings, cancel_event)
        result = engine.run(request.repo, request.tasks, request.direction)
    except GitHubAuthError as e:
        logger.error("GitHub rejected the %s token: %s", credentials.source, e)
        return _error(401, "GitHub authentication failed")
    finally:
        client.close()

    if result.fatal:
        return SyncResponse(500, result.to_dict())
    return SyncResponse(200, result.to_dict())
