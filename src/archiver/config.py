"""Step configuration using pydantic-settings.

This module defines two settings classes:
- ActionInputs: the named step inputs, read from INPUT_* environment
  variables the way the workflow runner exposes them
- ArchiverSettings: client tuning and logging knobs, prefixed ARCHIVER_

All step inputs are required. String values are trimmed before validation
and empty values are rejected.
"""

from typing import Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_URL = "https://api.github.com"


class ActionInputs(BaseSettings):
    """Named inputs of the archive step.

    The workflow runner exposes an input named ``admin_token`` as the
    environment variable ``INPUT_ADMIN_TOKEN``.

    Attributes:
        actor: Login of the user who triggered the run. Logged only.
        admin_token: Elevated credential used to archive the repository.
        body: Raw issue or comment text naming the repository.
        issue_number: Issue to post the status comment on.
        org: Organization owning both repositories.
        repo: Current repository, where the issue lives.
        token: Credential used to post the status comment.
    """

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        case_sensitive=False,
    )

    actor: str
    admin_token: str
    body: str
    issue_number: int = Field(..., gt=0)
    org: str
    repo: str
    token: str

    @field_validator("*", mode="before")
    @classmethod
    def trim_whitespace(cls, v: Any) -> Any:
        """Trim surrounding whitespace from every string input."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("actor", "admin_token", "body", "org", "repo", "token")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that a required input is not empty."""
        if not v:
            raise ValueError("input is required and cannot be empty")
        return v

    @property
    def body_tokens(self) -> list[str]:
        """Whitespace-separated words of the body."""
        return self.body.split()

    @property
    def repo_to_archive(self) -> str:
        """Name of the repository to archive.

        This is the last whitespace-separated token of the body with any
        ``owner/`` prefix dropped, so both "please archive my-repo" and
        "please archive my-org/my-repo" name ``my-repo``. No further
        validation is applied.
        """
        token = self.body_tokens[-1]
        name = token.rstrip("/").rsplit("/", 1)[-1]
        return name or token


class ArchiverSettings(BaseSettings):
    """Runtime settings for the GitHub clients and logging.

    All environment variables are prefixed with ARCHIVER_, except that the
    API base URL also honours the runner's GITHUB_API_URL so that GitHub
    Enterprise Server deployments work without extra configuration.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARCHIVER_",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Base URL for the REST API (supports GitHub Enterprise)
    api_url: str = Field(
        default=DEFAULT_API_URL,
        validation_alias=AliasChoices("ARCHIVER_API_URL", "GITHUB_API_URL"),
    )

    # Transient failure retries per request
    max_retries: int = 10

    # Exponential backoff bounds in seconds
    base_delay: float = 1.0
    max_delay: float = 60.0

    # Per-request timeout in seconds
    timeout: float = 30.0

    log_level: str = "INFO"

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate that the API URL is an http(s) URL."""
        v = v.strip()
        if not v:
            return DEFAULT_API_URL
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries cannot be negative")
        return v

    @field_validator("base_delay", "max_delay", "timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("delays and timeout must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level


def get_inputs() -> ActionInputs:
    """Create and return the step inputs.

    Raises:
        pydantic.ValidationError: If a required input is missing or invalid.
    """
    return ActionInputs()


def get_settings() -> ArchiverSettings:
    """Create and return ArchiverSettings instance.

    Raises:
        pydantic.ValidationError: If a setting is invalid.
    """
    return ArchiverSettings()
