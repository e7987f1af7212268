"""Client factory for the archive step.

Each phase of the step builds its own client bound to its own credential,
configured with bounded transient retry and the one-shot rate limit
policies.

Source:
- src/archiver/config.py (ArchiverSettings)
- src/archiver/github/client.py (GitHubClient)
- src/archiver/github/throttling.py (retry-once handlers)
"""

from typing import Callable, Optional

from src.archiver.config import ArchiverSettings
from src.archiver.github.client import GitHubClient
from src.archiver.github.throttling import (
    retry_once_on_rate_limit,
    retry_once_on_secondary_rate_limit,
)


ClientFactory = Callable[[str, ArchiverSettings], GitHubClient]


def new_client(token: str, settings: Optional[ArchiverSettings] = None) -> GitHubClient:
    """Build a GitHub client bound to one credential.

    Args:
        token: Credential the client authenticates with.
        settings: Base URL and retry tuning. Read from the environment
                  when not given.

    Returns:
        A ready-to-use client. No request is made until it is used.
    """
    if settings is None:
        settings = ArchiverSettings()

    return GitHubClient(
        token=token,
        base_url=settings.api_url,
        max_retries=settings.max_retries,
        base_delay=settings.base_delay,
        max_delay=settings.max_delay,
        timeout=settings.timeout,
        on_rate_limit=retry_once_on_rate_limit,
        on_secondary_rate_limit=retry_once_on_secondary_rate_limit,
    )
