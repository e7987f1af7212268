"""Workflow runner integration: logging, failure reporting and step outputs.

The workflow runner scans step output for workflow commands such as
``::warning::message`` and turns them into annotations. This module maps
standard logging levels onto those commands so the rest of the package can
keep using plain ``logging`` calls.
"""

import logging
import os
import sys
import uuid
from typing import Optional


logger = logging.getLogger(__name__)


LOG_FORMAT = "%(message)s"


def escape_data(value: str) -> str:
    """Escape a workflow command payload.

    The runner splits commands on newlines, so CR and LF are percent
    encoded along with the percent sign itself.
    """
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Formatter that renders log records as workflow commands.

    Level mapping:
    - DEBUG: ``::debug::`` (only shown when step debug logging is on)
    - INFO: plain line
    - WARNING: ``::warning::`` annotation
    - ERROR and CRITICAL: ``::error::`` annotation
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"::error::{escape_data(message)}"
        if record.levelno >= logging.WARNING:
            return f"::warning::{escape_data(message)}"
        if record.levelno < logging.INFO:
            return f"::debug::{escape_data(message)}"
        return message


def configure_logging(level: str = "INFO") -> None:
    """Route root logging to stdout as workflow commands.

    Args:
        level: Root log level name. DEBUG records are always emitted as
               ``::debug::`` commands, which the runner hides unless
               step debugging is enabled.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(WorkflowCommandFormatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)


def set_failed(message: str) -> None:
    """Report the step as failed.

    The message is emitted as an error annotation. The caller is
    responsible for exiting with a non-zero status.
    """
    logger.error(message)


def set_output(name: str, value: str, output_path: Optional[str] = None) -> bool:
    """Write a step output using the GITHUB_OUTPUT file command.

    Values are written with a random heredoc delimiter so multi-line
    values survive intact.

    Args:
        name: Output name.
        value: Output value.
        output_path: File to append to. Defaults to $GITHUB_OUTPUT.

    Returns:
        True if the output was written, False when no output file is
        available (e.g. when running outside the workflow runner).
    """
    path = output_path or os.environ.get("GITHUB_OUTPUT")
    if not path:
        logger.debug("GITHUB_OUTPUT not set, skipping output %s", name)
        return False

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
    return True
