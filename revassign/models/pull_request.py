"""Pull request models.

Timestamps are serialized as createdAt / mergedAt to keep the public JSON
shape of the service.
"""

import enum
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class PRStatus(str, enum.Enum):
    """Pull request lifecycle: OPEN -> MERGED, never back."""

    OPEN = "OPEN"
    MERGED = "MERGED"


class PullRequest(BaseModel):
    """Pull request with its assigned reviewers (0..2)."""

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus = PRStatus.OPEN
    assigned_reviewers: List[str] = Field(default_factory=list)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    merged_at: datetime | None = Field(default=None, alias="mergedAt")

    model_config = {"populate_by_name": True}

    @property
    def is_merged(self) -> bool:
        return self.status == PRStatus.MERGED

    def to_dict(self) -> dict:
        """JSON-ready dict; mergedAt is omitted until the PR is merged."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PullRequestShort(BaseModel):
    """Pull request without reviewers and timestamps."""

    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PRStatus
