"""Results of engine operations that are more than a single entity."""

from typing import List

from pydantic import BaseModel, Field

from revassign.models.pull_request import PullRequest


class ReassignResult(BaseModel):
    """Pull request after a reviewer swap and the id of the new reviewer."""

    pr: PullRequest
    replaced_by: str


class Reassignment(BaseModel):
    """One reviewer replaced on one pull request during team deactivation."""

    pr_id: str
    old_reviewer: str
    new_reviewer: str


class DeactivationResult(BaseModel):
    """Outcome of deactivating a whole team."""

    team_name: str
    deactivated_count: int = 0
    reassignments: List[Reassignment] = Field(default_factory=list)
    failed_reassignments: List[str] = Field(
        default_factory=list,
        description="PR ids where a reviewer was dropped with no replacement",
    )


class UserStats(BaseModel):
    """Per-user review counters."""

    user_id: str
    username: str
    review_count: int = 0
    authored_prs: int = 0
    open_reviews: int = 0
    merged_reviews: int = 0


class Stats(BaseModel):
    """Service-wide counters."""

    total_teams: int = 0
    total_users: int = 0
    active_users: int = 0
    total_prs: int = 0
    open_prs: int = 0
    merged_prs: int = 0
    top_reviewers: List[UserStats] = Field(default_factory=list)
