"""GitHub API client for repository and issue interactions.

This module provides a wrapper around the GitHub API for:
- Fetching and archiving repositories
- Creating comments on issues

Includes transient retry and rate limit handling for API resilience.
"""

from src.archiver.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
    SecondaryRateLimitError,
)
from src.archiver.github.factory import ClientFactory, new_client
from src.archiver.github.models import IssueComment, Repository
from src.archiver.github.throttling import (
    RateLimitHandler,
    ThrottledRequest,
    retry_once_on_rate_limit,
    retry_once_on_secondary_rate_limit,
)

__all__ = [
    "ClientFactory",
    "GitHubAPIError",
    "GitHubClient",
    "IssueComment",
    "RateLimitError",
    "RateLimitHandler",
    "Repository",
    "SecondaryRateLimitError",
    "ThrottledRequest",
    "new_client",
    "retry_once_on_rate_limit",
    "retry_once_on_secondary_rate_limit",
]
