"""Data models for teams, users, pull requests and operation results (Pydantic)."""

from revassign.models.pull_request import PRStatus, PullRequest, PullRequestShort
from revassign.models.results import (
    DeactivationResult,
    Reassignment,
    ReassignResult,
    Stats,
    UserStats,
)
from revassign.models.team import Team, TeamMember
from revassign.models.user import User

__all__ = [
    "DeactivationResult",
    "PRStatus",
    "PullRequest",
    "PullRequestShort",
    "ReassignResult",
    "Reassignment",
    "Stats",
    "Team",
    "TeamMember",
    "User",
    "UserStats",
]
