"""Property-based tests for target extraction, archive resolution and the
two-phase run.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

import asyncio
from unittest.mock import AsyncMock

from hypothesis import given, settings, strategies as st

from src.archiver.archive import ArchiveOutcome, archive_repository
from src.archiver.config import ActionInputs, ArchiverSettings
from src.archiver.github.client import GitHubAPIError, GitHubClient
from src.archiver.github.models import IssueComment, Repository
from src.archiver.main import run


def run_async(coro):
    return asyncio.run(coro)


name_strategy = st.from_regex(r"[A-Za-z0-9][A-Za-z0-9._-]{0,39}", fullmatch=True)

word_strategy = st.text(
    alphabet=st.characters(categories=("L", "N", "P", "S")),
    min_size=1,
    max_size=20,
)

separator_strategy = st.sampled_from([" ", "  ", "\t", "\n", " \n "])

# None means the lookup fails
lookup_strategy = st.sampled_from([None, False, True])


def _make_client(archived, comment_error=None, archive_error=None) -> AsyncMock:
    client = AsyncMock(spec=GitHubClient)
    client.__aenter__.return_value = client
    if archived is None:
        client.get_repo.side_effect = GitHubAPIError("GitHub API error: 404 Not Found", status_code=404)
    else:
        client.get_repo.return_value = Repository(name="r", archived=archived)
    if archive_error is not None:
        client.archive_repo.side_effect = archive_error
    if comment_error is not None:
        client.create_comment.side_effect = comment_error
    else:
        client.create_comment.return_value = IssueComment(id=1)
    return client


class TestRepoNameExtractionProperty:
    """*For any* leading words and separators, the repository to archive is
    the last whitespace-delimited token of the body."""

    @given(
        leading=st.lists(word_strategy, min_size=0, max_size=8),
        target=name_strategy,
        separator=separator_strategy,
    )
    @settings(max_examples=100)
    def test_last_token_is_target(self, leading, target, separator):
        body = separator.join(leading + [target])
        inputs = ActionInputs(
            actor="a",
            admin_token="b",
            body=body,
            issue_number=1,
            org="o",
            repo="r",
            token="t",
        )
        assert inputs.repo_to_archive == target


class TestArchiveResolutionProperty:
    """*For any* org and repository, the number of archive calls and the
    status message are fully determined by the lookup result."""

    @given(org=name_strategy, repository=name_strategy, lookup=lookup_strategy)
    @settings(max_examples=100, deadline=None)
    def test_outcome_matches_lookup(self, org, repository, lookup):
        client = _make_client(lookup)

        result = run_async(archive_repository(client, org, repository))

        if lookup is None:
            assert client.archive_repo.await_count == 0
            assert result.outcome is ArchiveOutcome.NOT_FOUND
            assert result.message == f"Repo {repository} does not exist in {org}"
        elif lookup:
            assert client.archive_repo.await_count == 0
            assert result.outcome is ArchiveOutcome.ALREADY_ARCHIVED
            assert result.message == f"Repo {repository} already archived!"
        else:
            assert client.archive_repo.await_count == 1
            assert result.outcome is ArchiveOutcome.ARCHIVED
            assert result.message == f"Archived repo {repository}!"


class TestCommentAlwaysPostedProperty:
    """*For any* archive phase result, including failures, the comment is
    attempted exactly once and the run fails iff a phase raised."""

    @given(
        lookup=lookup_strategy,
        archive_fails=st.booleans(),
        comment_fails=st.booleans(),
    )
    @settings(max_examples=100, deadline=None)
    def test_comment_attempted_once(self, lookup, archive_fails, comment_fails):
        client = _make_client(
            lookup,
            archive_error=GitHubAPIError("archive failed") if archive_fails else None,
            comment_error=GitHubAPIError("comment failed") if comment_fails else None,
        )
        inputs = ActionInputs(
            actor="a",
            admin_token="admin",
            body="archive r",
            issue_number=1,
            org="o",
            repo="requests",
            token="comment",
        )

        result = run_async(run(inputs, ArchiverSettings(), client_factory=lambda token, s: client))

        assert client.create_comment.await_count == 1
        archive_raised = archive_fails and lookup is False
        assert result.failed == (archive_raised or comment_fails)
        assert result.comment_posted == (not comment_fails)
