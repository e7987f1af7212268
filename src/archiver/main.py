"""Entry point for the repository archive step.

The step runs two phases in sequence, each behind its own error boundary:

1. Archive: with the admin credential, archive the repository named by the
   last word of the issue body, unless it is missing or already archived.
2. Notify: with the comment credential, post the status message on the
   triggering issue. This runs even when the archive phase failed.

A failure in either phase marks the run failed (non-zero exit code) and is
reported as an error annotation.

Source:
- src/archiver/config.py (ActionInputs, ArchiverSettings)
- src/archiver/archive.py (archive_repository)
- src/archiver/notify.py (post_status_comment)
- src/archiver/actions.py (configure_logging, set_failed, set_output)
"""

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError

from src.archiver.actions import configure_logging, set_failed, set_output
from src.archiver.archive import ArchiveOutcome, archive_repository
from src.archiver.config import ActionInputs, ArchiverSettings, get_inputs, get_settings
from src.archiver.github.factory import ClientFactory, new_client
from src.archiver.notify import post_status_comment


logger = logging.getLogger(__name__)


class RunStage(str, Enum):
    """Stages a run passes through, in order.

    Stage Flow:
        start → params_read → repo_lookup
        → {not_found | already_archived | archived | lookup_or_update_failed}
        → {comment_posted | comment_failed} → end
    """

    START = "start"
    PARAMS_READ = "params_read"
    REPO_LOOKUP = "repo_lookup"
    NOT_FOUND = "not_found"
    ALREADY_ARCHIVED = "already_archived"
    ARCHIVED = "archived"
    LOOKUP_OR_UPDATE_FAILED = "lookup_or_update_failed"
    COMMENT_POSTED = "comment_posted"
    COMMENT_FAILED = "comment_failed"
    END = "end"


@dataclass
class RunResult:
    """Record of a single run.

    Attributes:
        archive_outcome: Outcome of the archive phase, None if it failed.
        message: Status message posted on the issue. Empty when the
                 archive phase failed before producing one.
        comment_posted: Whether the status comment was created.
        stages: Stages visited, in order.
        failures: Failure messages reported for this run.
    """

    archive_outcome: Optional[ArchiveOutcome] = None
    message: str = ""
    comment_posted: bool = False
    stages: List[RunStage] = field(default_factory=lambda: [RunStage.START])
    failures: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def result_label(self) -> str:
        """Step output summarising the archive phase."""
        if self.archive_outcome is None:
            return "failed"
        return self.archive_outcome.value

    def advance(self, stage: RunStage) -> None:
        logger.debug("Run stage: %s", stage.value)
        self.stages.append(stage)

    def fail(self, message: str) -> None:
        self.failures.append(message)
        set_failed(message)


def _redact_secret(value: str, visible_chars: int = 4) -> str:
    """Redact a secret value, showing only the first few characters.

    Args:
        value: The secret value to redact.
        visible_chars: Number of characters to show at the start.

    Returns:
        Redacted string with asterisks replacing hidden characters.
    """
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def _log_inputs(inputs: ActionInputs) -> None:
    """Log the step inputs with credentials redacted."""
    logger.info(f"ACTOR: {inputs.actor}")
    logger.info(f"Admin token: {_redact_secret(inputs.admin_token)}")
    logger.info(f"Token: {_redact_secret(inputs.token)}")
    logger.info(f"body: {inputs.body_tokens}")
    logger.info(f"ORG: {inputs.org}")
    logger.info(f"Current REPO: {inputs.repo}")
    logger.info(f"Issue number: {inputs.issue_number}")
    logger.info(f"REPO to archive: {inputs.repo_to_archive}")


async def run(
    inputs: ActionInputs,
    settings: ArchiverSettings,
    client_factory: ClientFactory = new_client,
) -> RunResult:
    """Run both phases of the step.

    Args:
        inputs: Validated step inputs.
        settings: Client settings shared by both phases.
        client_factory: Builds a client for a credential. Each phase gets
                        its own client.

    Returns:
        The run record. Errors are recorded on it, never raised.
    """
    result = RunResult()
    result.advance(RunStage.PARAMS_READ)
    _log_inputs(inputs)

    result.advance(RunStage.REPO_LOOKUP)
    try:
        logger.info("Creating repo client")
        async with client_factory(inputs.admin_token, settings) as client:
            logger.debug("Repo client created")
            archive = await archive_repository(client, inputs.org, inputs.repo_to_archive)
        result.archive_outcome = archive.outcome
        result.message = archive.message
        result.advance(RunStage(archive.outcome.value))
    except Exception as exc:
        logger.debug("Archive phase failed", exc_info=True)
        result.advance(RunStage.LOOKUP_OR_UPDATE_FAILED)
        result.fail(f"Failed to archive repo: {exc}")

    try:
        logger.info("Creating client")
        async with client_factory(inputs.token, settings) as client:
            logger.debug("Client created")
            await post_status_comment(
                client,
                owner=inputs.org,
                repo=inputs.repo,
                issue_number=inputs.issue_number,
                message=result.message,
            )
        result.comment_posted = True
        result.advance(RunStage.COMMENT_POSTED)
    except Exception as exc:
        logger.debug("Notify phase failed", exc_info=True)
        result.advance(RunStage.COMMENT_FAILED)
        result.fail(f"Failed to comment on issue: {exc}")

    result.advance(RunStage.END)
    return result


def main() -> int:
    """Process entry point. Returns the exit code."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_logging()
        set_failed(f"Invalid settings: {exc}")
        return 1

    configure_logging(settings.log_level)

    try:
        inputs = get_inputs()
    except ValidationError as exc:
        set_failed(f"Invalid inputs: {exc}")
        return 1

    try:
        result = asyncio.run(run(inputs, settings))
    except Exception as exc:
        set_failed(str(exc))
        return 1

    set_output("message", result.message)
    set_output("result", result.result_label)
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
