"""Archive resolution for the target repository.

Given an organization and a repository name, this module looks the
repository up and archives it when it exists and is not archived yet.
Running it again on an archived repository changes nothing.

Outcomes:
- NOT_FOUND: the lookup failed (404, permissions, network, ...)
- ALREADY_ARCHIVED: the repository was archived before this run
- ARCHIVED: this run archived the repository

Source:
- src/archiver/github/client.py (GitHubClient, GitHubAPIError)
"""

import logging
from dataclasses import dataclass
from enum import Enum

from src.archiver.github.client import GitHubAPIError, GitHubClient


logger = logging.getLogger(__name__)


class ArchiveOutcome(str, Enum):
    """Result of resolving an archive request."""

    NOT_FOUND = "not_found"
    ALREADY_ARCHIVED = "already_archived"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class ArchiveResult:
    """Outcome of an archive request and the status message to post.

    Attributes:
        outcome: Which branch the request took.
        repository: Name of the repository that was requested.
        message: Human-readable status for the issue comment.
    """

    outcome: ArchiveOutcome
    repository: str
    message: str


def build_status_message(outcome: ArchiveOutcome, repository: str, org: str) -> str:
    """Build the status comment for an archive outcome.

    Args:
        outcome: The archive outcome.
        repository: Name of the requested repository.
        org: Organization the repository was looked up in.

    Returns:
        The status message.
    """
    if outcome is ArchiveOutcome.ARCHIVED:
        return f"Archived repo {repository}!"
    if outcome is ArchiveOutcome.ALREADY_ARCHIVED:
        return f"Repo {repository} already archived!"
    return f"Repo {repository} does not exist in {org}"


async def archive_repository(
    client: GitHubClient,
    org: str,
    repository: str,
) -> ArchiveResult:
    """Archive a repository if it exists and is not archived yet.

    Any lookup failure is treated as the repository not existing: the
    error is logged and the NOT_FOUND outcome returned. A failure while
    archiving is not caught here.

    Args:
        client: Client authenticated with a credential allowed to
                administer the organization's repositories.
        org: Organization that owns the repository.
        repository: Repository name.

    Returns:
        The archive result, including the status message.

    Raises:
        GitHubAPIError: If the archive update fails.
    """
    logger.info("Getting repo")
    try:
        repo = await client.get_repo(org, repository)
    except GitHubAPIError as exc:
        logger.error(exc.message)
        outcome = ArchiveOutcome.NOT_FOUND
        message = build_status_message(outcome, repository, org)
        logger.info(message)
        return ArchiveResult(outcome=outcome, repository=repository, message=message)

    logger.info("Got repo", extra={"full_name": repo.full_name, "archived": repo.archived})

    if repo.archived:
        outcome = ArchiveOutcome.ALREADY_ARCHIVED
    else:
        await client.archive_repo(org, repository)
        outcome = ArchiveOutcome.ARCHIVED

    message = build_status_message(outcome, repository, org)
    logger.info(message)
    return ArchiveResult(outcome=outcome, repository=repository, message=message)
