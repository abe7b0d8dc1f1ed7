"""Abstract repository interface.

The engine depends on Repository, not on a concrete backend. Every read and
write goes through a RepositorySession obtained from Repository.transaction(),
so the reads that inform a decision and the writes that realize it always
share one transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from revassign.models import PullRequest, PullRequestShort, Stats, TeamMember, User


class RepositorySession(ABC):
    """Operations available inside one transaction."""

    @abstractmethod
    def team_exists(self, team_name: str) -> bool:
        """Return True if the team exists."""

    @abstractmethod
    def create_team(self, team_name: str) -> None:
        """Insert a team row."""

    @abstractmethod
    def upsert_user(self, user_id: str, username: str, team_name: str, is_active: bool) -> None:
        """Insert a user or update name, team and activity of a known one."""

    @abstractmethod
    def get_user(self, user_id: str) -> User | None:
        """Look up a user by id."""

    @abstractmethod
    def team_members(self, team_name: str) -> list[TeamMember]:
        """All members of a team, active or not, ordered by user id."""

    @abstractmethod
    def active_team_members(self, team_name: str, exclude_ids: Iterable[str] = ()) -> list[str]:
        """Ids of active team members not in exclude_ids, ordered by user id."""

    @abstractmethod
    def create_pr(self, pr_id: str, name: str, author_id: str) -> datetime:
        """Insert an OPEN pull request and return its creation time.

        Raises PRExistsError if the id is taken.
        """

    @abstractmethod
    def get_pr(self, pr_id: str) -> PullRequest | None:
        """Pull request with status, timestamps and reviewers, or None."""

    @abstractmethod
    def add_reviewer(self, pr_id: str, user_id: str) -> None:
        """Link a reviewer to a pull request."""

    @abstractmethod
    def remove_reviewer(self, pr_id: str, user_id: str) -> None:
        """Unlink a reviewer from a pull request."""

    @abstractmethod
    def replace_reviewer(self, pr_id: str, old_user_id: str, new_user_id: str) -> None:
        """Swap one reviewer for another, keeping its position."""

    @abstractmethod
    def merge_pr(self, pr_id: str) -> datetime | None:
        """Mark an OPEN pull request MERGED and return merged_at.

        Already merged pull requests are left untouched.
        """

    @abstractmethod
    def set_user_active(self, user_id: str, is_active: bool) -> bool:
        """Set the activity flag. Returns False if the user does not exist."""

    @abstractmethod
    def deactivate_all_active_in_team(self, team_name: str) -> int:
        """Deactivate every active member of a team and return how many."""

    @abstractmethod
    def prs_reviewed_by(self, user_id: str) -> list[PullRequestShort]:
        """Pull requests (any status) where the user is a reviewer."""

    @abstractmethod
    def open_prs_reviewed_by(self, user_id: str) -> list[PullRequestShort]:
        """OPEN pull requests where the user is a reviewer."""

    @abstractmethod
    def stats(self, top: int = 10) -> Stats:
        """Aggregate counters and the top reviewers."""


class Repository(ABC):
    """Transactional store of teams, users, pull requests and reviewer links."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[RepositorySession]:
        """Open a transaction.

        Commits when the block exits normally; rolls back and re-raises on any
        exception, so a refused or failed operation leaves no partial change.
        """

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store answers a trivial query."""

    def close(self) -> None:
        """Release resources held by the store. Default is a no-op."""
