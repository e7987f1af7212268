"""Posting the archive status back to the triggering issue.

Source:
- src/archiver/github/client.py (GitHubClient)
"""

import logging

from src.archiver.github.client import GitHubClient
from src.archiver.github.models import IssueComment


logger = logging.getLogger(__name__)


async def post_status_comment(
    client: GitHubClient,
    owner: str,
    repo: str,
    issue_number: int,
    message: str,
) -> IssueComment:
    """Post the status message as a new comment on the issue.

    No retry is attempted beyond the client's own policy.

    Args:
        client: Client authenticated with the comment credential.
        owner: Owner of the repository holding the issue.
        repo: Repository holding the issue.
        issue_number: Issue to comment on.
        message: Comment body.

    Returns:
        The created comment.

    Raises:
        GitHubAPIError: If the comment cannot be created.
    """
    logger.info("Creating issue comment")
    comment = await client.create_comment(
        owner=owner,
        repo=repo,
        issue_number=issue_number,
        body=message,
    )
    logger.debug("Issue comment created")
    return comment
