"""Unit tests for posting the status comment."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.archiver.github.client import GitHubAPIError, GitHubClient
from src.archiver.github.models import IssueComment
from src.archiver.notify import post_status_comment


def run_async(coro):
    return asyncio.run(coro)


def test_posts_message_on_issue():
    client = AsyncMock(spec=GitHubClient)
    client.create_comment.return_value = IssueComment(id=7, body="Archived repo old-service!")

    comment = run_async(
        post_status_comment(client, "octo-org", "requests", 17, "Archived repo old-service!")
    )

    client.create_comment.assert_awaited_once_with(
        owner="octo-org",
        repo="requests",
        issue_number=17,
        body="Archived repo old-service!",
    )
    assert comment.id == 7


def test_failure_propagates_without_retry():
    client = AsyncMock(spec=GitHubClient)
    client.create_comment.side_effect = GitHubAPIError("GitHub API error: 422 Validation Failed", status_code=422)

    with pytest.raises(GitHubAPIError):
        run_async(post_status_comment(client, "octo-org", "requests", 17, ""))

    assert client.create_comment.await_count == 1
