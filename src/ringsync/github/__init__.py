"""GitHub REST API access."""

from .client import (
    GitHubAuthError,
    GitHubClient,
    GitHubClientError,
    GitHubForbiddenError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubValidationError,
    RequestCancelledError,
)

__all__ = [
    "GitHubAuthError",
    "GitHubClient",
    "GitHubClientError",
    "GitHubForbiddenError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubValidationError",
    "RequestCancelledError",
]
