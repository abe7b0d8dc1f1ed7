"""Team and team member models."""

from typing import List

from pydantic import BaseModel, Field


class TeamMember(BaseModel):
    """User as listed inside a team."""

    user_id: str = Field(..., min_length=1)
    username: str
    is_active: bool = True


class Team(BaseModel):
    """Team with its members."""

    team_name: str = Field(..., min_length=1)
    members: List[TeamMember] = Field(default_factory=list)
