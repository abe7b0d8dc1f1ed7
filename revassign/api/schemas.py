"""Request bodies accepted by the HTTP API."""

from pydantic import BaseModel, Field


class SetIsActiveRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    is_active: bool


class CreatePullRequestRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    pull_request_name: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)


class MergePullRequestRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)


class ReassignReviewerRequest(BaseModel):
    pull_request_id: str = Field(..., min_length=1)
    old_user_id: str = Field(..., min_length=1)


class DeactivateTeamRequest(BaseModel):
    team_name: str = Field(..., min_length=1)
