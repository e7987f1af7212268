"""Rate limit policies for the GitHub client.

GitHub signals two kinds of throttling:
- Primary rate limit: the request quota for the credential is exhausted
- Secondary rate limit: abuse detection triggered by the request pattern

When either occurs the client asks a handler whether to retry. The handlers
here allow exactly one retry per request, after the delay the server
advised, and give up on any further occurrence.
"""

import logging
from dataclasses import dataclass
from typing import Callable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThrottledRequest:
    """The request that hit a rate limit.

    Attributes:
        method: HTTP method.
        url: Full request URL.
    """

    method: str
    url: str


# (retry_after seconds, request, throttle retries already made) -> retry?
RateLimitHandler = Callable[[float, ThrottledRequest, int], bool]


def retry_once_on_rate_limit(
    retry_after: float,
    request: ThrottledRequest,
    retry_count: int,
) -> bool:
    """Retry a request once when the primary rate limit is hit."""
    logger.warning(
        f"Request quota exhausted for request {request.method} {request.url}"
    )
    if retry_count == 0:
        logger.info(f"Retrying after {retry_after:g} seconds!")
        return True
    return False


def retry_once_on_secondary_rate_limit(
    retry_after: float,
    request: ThrottledRequest,
    retry_count: int,
) -> bool:
    """Retry a request once when abuse detection is triggered."""
    logger.warning(f"Abuse detected for request {request.method} {request.url}")
    if retry_count == 0:
        logger.info(f"Retrying after {retry_after:g} seconds!")
        return True
    return False
