"""GitHub API client for repository and issue interactions.

This module provides an async wrapper around the GitHub REST API for:
- Fetching repository metadata
- Updating repository settings (archiving)
- Creating comments on issues

Includes transient retry and rate limit throttling for API resilience.

Source:
- src/archiver/github/models.py (Repository, IssueComment)
- src/archiver/github/throttling.py (ThrottledRequest, RateLimitHandler)
"""

import asyncio
import logging
import random
import re
import time
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from src.archiver.config import DEFAULT_API_URL
from src.archiver.github.models import IssueComment, Repository
from src.archiver.github.throttling import RateLimitHandler, ThrottledRequest


logger = logging.getLogger(__name__)


SECONDARY_RATE_LIMIT_PATTERN = re.compile(r"\bsecondary rate\b|\babuse\b", re.IGNORECASE)

# Used when abuse detection does not send a Retry-After header
DEFAULT_SECONDARY_RETRY_AFTER = 60

ModelT = TypeVar("ModelT", bound=BaseModel)


def api_path(*segments: Any) -> str:
    """Join path segments, percent-encoding each one.

    A name containing ``#``, ``?`` or ``/`` stays inside its own segment
    instead of turning into a fragment, query or extra path level.
    """
    return "".join(f"/{quote(str(segment), safe='')}" for segment in segments)


class GitHubAPIError(Exception):
    """Raised when a GitHub API request fails.

    Attributes:
        message: Human-readable error description.
        status_code: HTTP status code from the response.
        response_body: Response body from GitHub API.
        request_url: The URL that was requested.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
        super().__init__(message)


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded and not retried.

    Attributes:
        reset_at: Unix timestamp when the rate limit resets.
        retry_after: Seconds to wait before retrying.
    """

    def __init__(
        self,
        message: str,
        reset_at: Optional[int] = None,
        retry_after: Optional[float] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.reset_at = reset_at
        self.retry_after = retry_after


class SecondaryRateLimitError(RateLimitError):
    """Raised when abuse detection throttles a request and it is not retried."""


class GitHubClient:
    """Async GitHub API client with retry and rate limit handling.

    This client implements:

    - Automatic retry with exponential backoff for transient failures
      (network errors, timeouts, 408 and 5xx responses)
    - Primary and secondary rate limit detection, delegating the retry
      decision to the configured handlers
    - Support for both github.com and GitHub Enterprise Server

    Attributes:
        token: GitHub API token (PAT or GitHub App token).
        base_url: Base URL for GitHub API (default: https://api.github.com).
        max_retries: Maximum number of retry attempts for transient failures.
        base_delay: Base delay in seconds for exponential backoff.
        max_delay: Maximum delay in seconds between retries.
        timeout: Request timeout in seconds.
        on_rate_limit: Handler consulted when the request quota is exhausted.
        on_secondary_rate_limit: Handler consulted when abuse detection
            throttles a request.

    Example:
        >>> async with GitHubClient(token="ghp_xxx") as client:
        ...     repo = await client.get_repo("octo-org", "old-service")
        ...     if not repo.archived:
        ...         await client.archive_repo("octo-org", "old-service")
    """

    # HTTP status codes that should trigger a retry
    RETRYABLE_STATUS_CODES = {408, 500, 502, 503, 504}

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        timeout: float = 30.0,
        on_rate_limit: Optional[RateLimitHandler] = None,
        on_secondary_rate_limit: Optional[RateLimitHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token: GitHub API token for authentication.
            base_url: Base URL for GitHub API. Use this to support
                      GitHub Enterprise Server endpoints.
            max_retries: Maximum number of retry attempts.
            base_delay: Base delay in seconds for exponential backoff.
            max_delay: Maximum delay in seconds between retries.
            timeout: Request timeout in seconds.
            on_rate_limit: Primary rate limit handler. Without one,
                           rate limited requests fail immediately.
            on_secondary_rate_limit: Secondary rate limit handler. Without
                                     one, throttled requests fail immediately.
            transport: Optional httpx transport, mainly for tests.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self.on_rate_limit = on_rate_limit
        self.on_secondary_rate_limit = on_secondary_rate_limit
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating it if necessary."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._default_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "repo-archiver/1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(
        self,
        exc_type: Any,
        exc_val: Any,
        exc_tb: Any,
    ) -> None:
        await self.close()

    def _calculate_backoff(self, attempt: int) -> float:
        """Calculate backoff delay with full jitter.

        Args:
            attempt: The current retry attempt (0-indexed).

        Returns:
            Delay in seconds before the next retry.
        """
        exponential_delay = self.base_delay * (2 ** attempt)
        capped_delay = min(exponential_delay, self.max_delay)
        return random.uniform(0, capped_delay)

    def _parse_int_header(
        self,
        headers: httpx.Headers,
        name: str,
    ) -> Optional[int]:
        value = headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                pass
        return None

    def _error_message(self, response: httpx.Response) -> str:
        """Extract the ``message`` field from an error response body."""
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, dict):
            return str(payload.get("message", ""))
        return ""

    def _is_secondary_rate_limit(self, response: httpx.Response) -> bool:
        if response.status_code not in (403, 429):
            return False
        return bool(SECONDARY_RATE_LIMIT_PATTERN.search(self._error_message(response)))

    def _is_primary_rate_limit(self, response: httpx.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            remaining = self._parse_int_header(response.headers, "x-ratelimit-remaining")
            return remaining == 0
        return False

    def _retry_after(self, response: httpx.Response, secondary: bool) -> float:
        """Work out how long the server asked us to wait.

        The Retry-After header wins. Otherwise primary limits wait until
        X-RateLimit-Reset and secondary limits fall back to a fixed delay.
        """
        retry_after = self._parse_int_header(response.headers, "retry-after")
        if retry_after is not None:
            return float(max(0, retry_after))
        if secondary:
            return float(DEFAULT_SECONDARY_RETRY_AFTER)
        reset_at = self._parse_int_header(response.headers, "x-ratelimit-reset")
        if reset_at is not None:
            return float(max(0, reset_at - int(time.time())))
        return 0.0

    def _rate_limit_error(
        self,
        response: httpx.Response,
        secondary: bool,
        retry_after: float,
    ) -> RateLimitError:
        error_cls = SecondaryRateLimitError if secondary else RateLimitError
        kind = "secondary rate limit" if secondary else "rate limit"
        return error_cls(
            message=f"GitHub API {kind} exceeded: {self._error_message(response)}",
            status_code=response.status_code,
            response_body=response.text,
            request_url=str(response.url),
            reset_at=self._parse_int_header(response.headers, "x-ratelimit-reset"),
            retry_after=retry_after,
        )

    def _parse(self, response: httpx.Response, model: Type[ModelT]) -> ModelT:
        """Parse a successful response body into a model.

        Raises:
            GitHubAPIError: If the body is not JSON or does not match the model.
        """
        try:
            return model.from_github_response(response.json())
        except (ValueError, ValidationError) as e:
            raise GitHubAPIError(
                message=f"Unexpected response from GitHub API: {response.status_code} {e}",
                status_code=response.status_code,
                response_body=response.text,
                request_url=str(response.url),
            ) from e

    async def _request(
        self,
        method: str,
        path: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Make an HTTP request with retry and throttling.

        Transient failures are retried up to ``max_retries`` times with
        exponential backoff. Rate limited responses are handed to the
        matching handler, which decides whether to wait and retry. The two
        budgets are tracked separately for the lifetime of this call.

        Args:
            method: HTTP method (GET, POST, PATCH, ...).
            path: API path (e.g., /repos/owner/repo).
            json_data: Optional JSON body for the request.

        Returns:
            The HTTP response from GitHub.

        Raises:
            GitHubAPIError: If the request fails after all retries.
            RateLimitError: If a rate limit is hit and not retried.
        """
        attempt = 0
        throttle_retries = 0
        request_info = ThrottledRequest(method=method, url=f"{self.base_url}{path}")

        while True:
            try:
                response = await self.client.request(
                    method=method,
                    url=path,
                    json=json_data,
                )
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    delay = self._calculate_backoff(attempt)
                    attempt += 1
                    logger.warning(
                        "Request error, retrying",
                        extra={
                            "error": str(e),
                            "attempt": attempt,
                            "max_retries": self.max_retries,
                            "delay": delay,
                            "path": path,
                        },
                    )
                    await asyncio.sleep(delay)
                    continue

                logger.error(
                    "GitHub API request failed after all retries",
                    extra={
                        "path": path,
                        "method": method,
                        "max_retries": self.max_retries,
                        "last_error": str(e),
                    },
                )
                raise GitHubAPIError(
                    message=f"Request failed after {self.max_retries} retries: {e}",
                    request_url=request_info.url,
                ) from e

            secondary = self._is_secondary_rate_limit(response)
            if secondary or self._is_primary_rate_limit(response):
                retry_after = self._retry_after(response, secondary)
                handler = self.on_secondary_rate_limit if secondary else self.on_rate_limit
                if handler is not None and handler(retry_after, request_info, throttle_retries):
                    throttle_retries += 1
                    await asyncio.sleep(retry_after)
                    continue
                raise self._rate_limit_error(response, secondary, retry_after)

            if response.status_code in self.RETRYABLE_STATUS_CODES and attempt < self.max_retries:
                delay = self._calculate_backoff(attempt)
                attempt += 1
                logger.warning(
                    "Retryable error from GitHub API",
                    extra={
                        "status_code": response.status_code,
                        "attempt": attempt,
                        "max_retries": self.max_retries,
                        "delay": delay,
                        "path": path,
                    },
                )
                await asyncio.sleep(delay)
                continue

            if response.status_code >= 400:
                error_body = response.text
                logger.debug(
                    "GitHub API error",
                    extra={
                        "status_code": response.status_code,
                        "path": path,
                        "method": method,
                        "response_body": error_body[:500],
                    },
                )
                raise GitHubAPIError(
                    message=(
                        f"GitHub API error: {response.status_code} "
                        f"{self._error_message(response)}"
                    ).rstrip(),
                    status_code=response.status_code,
                    response_body=error_body,
                    request_url=str(response.url),
                )

            return response

    async def get_repo(self, owner: str, repo: str) -> Repository:
        """Fetch repository metadata.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.

        Returns:
            The repository representation.

        Raises:
            GitHubAPIError: If the repository cannot be fetched (including 404).
        """
        response = await self._request(method="GET", path=api_path("repos", owner, repo))
        logger.debug(response.text)
        return self._parse(response, Repository)

    async def update_repo(self, owner: str, repo: str, **fields: Any) -> Repository:
        """Update repository settings.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            **fields: Settings to change, e.g. ``archived=True``.

        Returns:
            The updated repository representation.

        Raises:
            GitHubAPIError: If the request fails.
        """
        logger.info(
            "Updating repository",
            extra={"owner": owner, "repo": repo, "fields": sorted(fields)},
        )
        response = await self._request(
            method="PATCH",
            path=api_path("repos", owner, repo),
            json_data=fields,
        )
        return self._parse(response, Repository)

    async def archive_repo(self, owner: str, repo: str) -> Repository:
        """Mark a repository as archived."""
        return await self.update_repo(owner, repo, archived=True)

    async def create_comment(
        self,
        owner: str,
        repo: str,
        issue_number: int,
        body: str,
    ) -> IssueComment:
        """Create a comment on an issue.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            issue_number: Issue number to comment on.
            body: Comment body in markdown format.

        Returns:
            The created comment.

        Raises:
            GitHubAPIError: If the request fails.
        """
        path = api_path("repos", owner, repo, "issues", issue_number, "comments")

        logger.info(
            "Creating comment on issue",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "body_length": len(body),
            },
        )

        response = await self._request(
            method="POST",
            path=path,
            json_data={"body": body},
        )

        result = self._parse(response, IssueComment)
        logger.info(
            "Comment created successfully",
            extra={
                "owner": owner,
                "repo": repo,
                "issue_number": issue_number,
                "comment_id": result.id,
            },
        )

        return result
