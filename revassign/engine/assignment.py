"""Reviewer assignment engine - policy layer over the repository.

Decides who may review a pull request and performs every reviewer mutation
atomically:
- PR creation assigns up to two active members of the author's team.
- Reassignment swaps one reviewer for an active member of the outgoing
  reviewer's team.
- Merge freezes the reviewer set.
- Team deactivation resolves every open review of the team's active members
  (replace or drop) and then deactivates them.

Each public operation runs inside a single repository transaction. A refused
operation raises an AssignmentError subclass carrying its ErrorCode; the
transaction is rolled back, so nothing is partially applied.
"""

from __future__ import annotations

import logging
from typing import Iterable

from revassign.engine.selector import RandomSelector, Selector
from revassign.errors import (
    NoCandidateError,
    NotAssignedError,
    NotFoundError,
    PRExistsError,
    PRMergedError,
    TeamExistsError,
)
from revassign.models import (
    DeactivationResult,
    PullRequest,
    PullRequestShort,
    Reassignment,
    ReassignResult,
    Stats,
    Team,
    User,
)
from revassign.store.base import Repository, RepositorySession

MAX_REVIEWERS = 2

LOG = logging.getLogger("revassign.engine.assignment")


def eligible_candidates(
    session: RepositorySession,
    team_name: str,
    exclude_ids: Iterable[str] = (),
) -> list[str]:
    """Active members of team_name not in exclude_ids. May be empty."""
    return session.active_team_members(team_name, set(exclude_ids))


def _require_pr(session: RepositorySession, pr_id: str) -> PullRequest:
    pr = session.get_pr(pr_id)
    if pr is None:
        raise NotFoundError("PR not found")
    return pr


class ReviewerAssignmentEngine:
    """Reviewer assignment rules on top of a Repository.

    Usage:
        engine = ReviewerAssignmentEngine(SQLiteRepository("revassign.db"))
        pr = engine.create_pull_request("pr-1", "Add search", "u1")
    """

    def __init__(self, repository: Repository, selector: Selector | None = None) -> None:
        self._repo = repository
        self._selector = selector or RandomSelector()

    # --- teams and users ---

    def add_team(self, team: Team) -> Team:
        """Create a team and upsert its members. Raises TeamExistsError."""
        with self._repo.transaction() as session:
            if session.team_exists(team.team_name):
                LOG.warning("Team %s already exists", team.team_name)
                raise TeamExistsError("team_name already exists")
            session.create_team(team.team_name)
            for member in team.members:
                session.upsert_user(member.user_id, member.username, team.team_name, member.is_active)
        LOG.info("Created team %s with %d members", team.team_name, len(team.members))
        return team

    def get_team(self, team_name: str) -> Team:
        with self._repo.transaction() as session:
            if not session.team_exists(team_name):
                raise NotFoundError("team not found")
            members = session.team_members(team_name)
        return Team(team_name=team_name, members=members)

    def set_user_active(self, user_id: str, is_active: bool) -> User:
        """Flip the activity flag of one user (open reviews are left as is)."""
        with self._repo.transaction() as session:
            if not session.set_user_active(user_id, is_active):
                raise NotFoundError("user not found")
            user = session.get_user(user_id)
        LOG.info("User %s is_active -> %s", user_id, is_active)
        return user

    def get_user_reviews(self, user_id: str) -> list[PullRequestShort]:
        """Pull requests of any status where user_id is a reviewer."""
        with self._repo.transaction() as session:
            return session.prs_reviewed_by(user_id)

    def candidates(self, team_name: str, exclude_ids: Iterable[str] = ()) -> list[str]:
        """Active members of an existing team not in exclude_ids."""
        with self._repo.transaction() as session:
            if not session.team_exists(team_name):
                raise NotFoundError("team not found")
            return eligible_candidates(session, team_name, exclude_ids)

    # --- pull request lifecycle ---

    def create_pull_request(self, pr_id: str, name: str, author_id: str) -> PullRequest:
        """Create an OPEN pull request with up to two reviewers from the author's team."""
        with self._repo.transaction() as session:
            if session.get_pr(pr_id) is not None:
                LOG.warning("PR %s already exists", pr_id)
                raise PRExistsError("PR id already exists")
            author = session.get_user(author_id)
            if author is None:
                raise NotFoundError("author not found")

            pool = eligible_candidates(session, author.team_name, {author_id})
            reviewers = self._selector.sample(pool, MAX_REVIEWERS)

            session.create_pr(pr_id, name, author_id)
            for reviewer_id in reviewers:
                session.add_reviewer(pr_id, reviewer_id)
            pr = _require_pr(session, pr_id)

        LOG.info(
            "Created PR %s by %s, reviewers %s (pool of %d)",
            pr_id,
            author_id,
            pr.assigned_reviewers,
            len(pool),
        )
        return pr

    def merge_pull_request(self, pr_id: str) -> PullRequest:
        """Mark a pull request MERGED. Merging twice returns the stored state."""
        with self._repo.transaction() as session:
            pr = _require_pr(session, pr_id)
            if pr.is_merged:
                LOG.debug("PR %s already merged", pr_id)
                return pr
            session.merge_pr(pr_id)
            pr = _require_pr(session, pr_id)
        LOG.info("PR %s merged", pr_id)
        return pr

    def reassign_reviewer(self, pr_id: str, old_user_id: str) -> ReassignResult:
        """Replace old_user_id on an OPEN pull request.

        The replacement is drawn at random from active members of the
        outgoing reviewer's team, never the author or a current reviewer.
        """
        with self._repo.transaction() as session:
            pr = _require_pr(session, pr_id)
            if pr.is_merged:
                LOG.warning("Refused reassign on merged PR %s", pr_id)
                raise PRMergedError("cannot reassign on merged PR")
            if old_user_id not in pr.assigned_reviewers:
                LOG.warning("Refused reassign: %s is not a reviewer of PR %s", old_user_id, pr_id)
                raise NotAssignedError("reviewer is not assigned to this PR")
            old_reviewer = session.get_user(old_user_id)
            if old_reviewer is None:
                raise NotFoundError("user not found")

            exclude = set(pr.assigned_reviewers) | {pr.author_id}
            pool = eligible_candidates(session, old_reviewer.team_name, exclude)
            if not pool:
                LOG.warning("No replacement for %s on PR %s in team %s", old_user_id, pr_id, old_reviewer.team_name)
                raise NoCandidateError("no active replacement candidate in team")

            new_user_id = self._selector.choose(pool)
            session.replace_reviewer(pr_id, old_user_id, new_user_id)
            pr = _require_pr(session, pr_id)

        LOG.info("PR %s: reviewer %s replaced by %s", pr_id, old_user_id, new_user_id)
        return ReassignResult(pr=pr, replaced_by=new_user_id)

    # --- team deactivation ---

    def deactivate_team(self, team_name: str) -> DeactivationResult:
        """Deactivate every active member of a team.

        Before anyone is deactivated, each of their open reviews is handed to
        the first eligible active teammate, or dropped and reported in
        failed_reassignments when there is none.

        Eligible means active, in the same team, not the author and not a
        current reviewer, and also not one of the users deactivated by this
        call. That last rule is stricter than excluding only reviewers and
        author: the pool is the team minus its own active members, so with a
        real store it is empty and every open review of the team is dropped.
        It guarantees that no deactivated user is left on an open pull
        request.
        """
        result = DeactivationResult(team_name=team_name)
        with self._repo.transaction() as session:
            if not session.team_exists(team_name):
                raise NotFoundError("team not found")

            leaving = eligible_candidates(session, team_name)
            leaving_set = set(leaving)

            for user_id in leaving:
                for short in session.open_prs_reviewed_by(user_id):
                    pr = _require_pr(session, short.pull_request_id)
                    exclude = set(pr.assigned_reviewers) | {pr.author_id} | leaving_set
                    pool = eligible_candidates(session, team_name, exclude)
                    if pool:
                        replacement = pool[0]
                        session.replace_reviewer(pr.pull_request_id, user_id, replacement)
                        result.reassignments.append(
                            Reassignment(
                                pr_id=pr.pull_request_id,
                                old_reviewer=user_id,
                                new_reviewer=replacement,
                            )
                        )
                    else:
                        session.remove_reviewer(pr.pull_request_id, user_id)
                        if pr.pull_request_id not in result.failed_reassignments:
                            result.failed_reassignments.append(pr.pull_request_id)

            result.deactivated_count = session.deactivate_all_active_in_team(team_name)

        LOG.info(
            "Team %s deactivated: %d users, %d reassigned, %d dropped",
            team_name,
            result.deactivated_count,
            len(result.reassignments),
            len(result.failed_reassignments),
        )
        return result

    # --- service info ---

    def health(self) -> dict:
        if self._repo.ping():
            return {"status": "healthy"}
        return {"status": "unhealthy", "error": "database unavailable"}

    def stats(self, top: int = 10) -> Stats:
        with self._repo.transaction() as session:
            return session.stats(top)
