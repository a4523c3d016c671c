"""GitHub REST API client."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

import httpx

from ..models import RemoteIssue

logger = logging.getLogger(__name__)


class GitHubClientError(Exception):
    """Base exception for GitHub client errors.

    Carries the HTTP status and raw response body when the failure came from
    a response; both are None for transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class GitHubAuthError(GitHubClientError):
    """Authentication failed (401)."""

    pass


class GitHubNotFoundError(GitHubClientError):
    """Resource not found (404)."""

    pass


class GitHubForbiddenError(GitHubClientError):
    """Permission denied (403)."""

    pass


class GitHubRateLimitError(GitHubClientError):
    """Rate limit exceeded."""

    pass


class GitHubValidationError(GitHubClientError):
    """Validation failed (422), e.g. a label that already exists."""

    pass


class RequestCancelledError(Exception):
    """The caller cancelled the run before a request was sent."""

    pass


class GitHubClient:
    """GitHub REST API client.

    A single authenticated entry point (`request`) plus the handful of issue
    and label operations the sync engine needs. Every request sends the
    bearer token, the API version header and JSON content negotiation.

    Cancellation is checked before each request is sent. A request already
    in flight is not interrupted; it finishes or hits the timeout.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        api_version: str = "2022-11-28",
        timeout: float = 30.0,
        cancel_event: threading.Event | None = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token
            api_url: API base URL (override for Enterprise)
            api_version: Value for the X-GitHub-Api-Version header
            timeout: Request timeout in seconds
            cancel_event: When set, further requests raise RequestCancelledError
        """
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.cancel_event = cancel_event
        self._client = httpx.Client(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": api_version,
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and decode the JSON response.

        Args:
            method: HTTP method (GET, POST, PATCH)
            path: Path relative to the API base URL
            params: Query parameters
            json: JSON request body

        Returns:
            Decoded response body, or {} for 204 No Content

        Raises:
            RequestCancelledError: The cancel event is set
            GitHubAuthError: 401
            GitHubForbiddenError: 403
            GitHubRateLimitError: 403/429 rate limit responses
            GitHubNotFoundError: 404
            GitHubValidationError: 422
            GitHubClientError: Any other non-2xx response or transport failure
        """
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RequestCancelledError(f"{method} {path} cancelled")

        logger.debug("%s %s: params=%s", method, path, params)

        start_time = time.monotonic()
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.RequestError as e:
            elapsed_ms = (time.monotonic() - start_time) * 1000
            logger.error("%s %s failed after %.0fms: %s", method, path, elapsed_ms, e)
            raise GitHubClientError(f"Request failed: {e}") from e

        elapsed_ms = (time.monotonic() - start_time) * 1000
        status = response.status_code

        if status == 204:
            logger.info("%s %s: 204 No Content (%.0fms)", method, path, elapsed_ms)
            return {}

        if status >= 400:
            logger.error("%s %s: HTTP %d (%.0fms)", method, path, status, elapsed_ms)
            raise self._error_for(status, response.text)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("%s %s: Invalid JSON response (%.0fms)", method, path, elapsed_ms)
            raise GitHubClientError(f"Invalid JSON response: {e}", status, response.text) from e

        logger.info("%s %s: %d (%.0fms)", method, path, status, elapsed_ms)
        return data

    @staticmethod
    def _error_for(status: int, body: str) -> GitHubClientError:
        """Map a non-2xx status to the matching exception type."""
        message = f"GitHub API error {status}: {body}"
        if status == 401:
            return GitHubAuthError(message, status, body)
        if status in (403, 429) and "rate limit" in body.lower():
            return GitHubRateLimitError(message, status, body)
        if status == 403:
            return GitHubForbiddenError(message, status, body)
        if status == 404:
            return GitHubNotFoundError(message, status, body)
        if status == 422:
            return GitHubValidationError(message, status, body)
        return GitHubClientError(message, status, body)

    # --- Repository ---

    def get_repository(self, repo: str) -> dict[str, Any]:
        """Fetch repository metadata ("owner/name")."""
        return self.request("GET", f"/repos/{repo}")

    # --- Labels ---

    def list_labels(self, repo: str, per_page: int = 100) -> list[dict[str, Any]]:
        """List repository labels (single page)."""
        return self.request("GET", f"/repos/{repo}/labels", params={"per_page": per_page})

    def create_label(self, repo: str, name: str, color: str, description: str) -> dict[str, Any]:
        """Create a label. Raises GitHubValidationError if it already exists."""
        return self.request(
            "POST",
            f"/repos/{repo}/labels",
            json={"name": name, "color": color, "description": description},
        )

    # --- Issues ---

    def list_issues(
        self,
        repo: str,
        label: str,
        state: str = "all",
        per_page: int = 100,
    ) -> list[RemoteIssue]:
        """List issues carrying a label (single page, pull requests excluded)."""
        data = self.request(
            "GET",
            f"/repos/{repo}/issues",
            params={"labels": label, "state": state, "per_page": per_page},
        )
        return [RemoteIssue.from_api(item) for item in data if "pull_request" not in item]

    def create_issue(
        self,
        repo: str,
        title: str,
        body: str,
        labels: list[str],
    ) -> RemoteIssue:
        """Create an issue. New issues are always open."""
        data = self.request(
            "POST",
            f"/repos/{repo}/issues",
            json={"title": title, "body": body, "labels": labels},
        )
        return RemoteIssue.from_api(data)

    def update_issue(self, repo: str, number: int, **fields: Any) -> RemoteIssue:
        """PATCH an issue's title, body, labels and/or state."""
        data = self.request("PATCH", f"/repos/{repo}/issues/{number}", json=fields)
        return RemoteIssue.from_api(data)
