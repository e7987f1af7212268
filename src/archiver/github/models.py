"""GitHub REST API response models.

Only the fields the archive step reads are modelled; everything else in
the API representation is ignored.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """Repository representation returned by ``GET /repos/{owner}/{repo}``.

    Attributes:
        name: Repository name without the owner prefix.
        full_name: ``owner/name``.
        archived: Whether the repository is archived (read-only).
        html_url: Web URL of the repository.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    full_name: str = ""
    archived: bool = False
    html_url: Optional[str] = None

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "Repository":
        return cls.model_validate(data)


class IssueComment(BaseModel):
    """Issue comment returned by the create comment endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: int
    body: str = ""
    html_url: Optional[str] = None

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "IssueComment":
        return cls.model_validate(data)
