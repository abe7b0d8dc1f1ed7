"""Shared fixtures: in-memory repository, engine with a deterministic selector."""

from typing import Sequence

import pytest

from revassign.engine import ReviewerAssignmentEngine, Selector
from revassign.models import Team, TeamMember
from revassign.store import SQLiteRepository


class FirstSelector(Selector):
    """Takes candidates in the order given (ordered by user id by the store)."""

    def sample(self, candidates: Sequence[str], k: int) -> list[str]:
        return list(candidates)[:k]


def make_team(name: str, *members: str, inactive: Sequence[str] = ()) -> Team:
    """Team with members named after their ids; ids in inactive get is_active=False."""
    return Team(
        team_name=name,
        members=[TeamMember(user_id=m, username=m.upper(), is_active=m not in inactive) for m in members],
    )


@pytest.fixture
def repo() -> SQLiteRepository:
    repository = SQLiteRepository(":memory:")
    yield repository
    repository.close()


@pytest.fixture
def engine(repo: SQLiteRepository) -> ReviewerAssignmentEngine:
    return ReviewerAssignmentEngine(repo, FirstSelector())


@pytest.fixture
def backend(engine: ReviewerAssignmentEngine) -> Team:
    """Team backend = {u1, u2, u3, u4}, all active."""
    return engine.add_team(make_team("backend", "u1", "u2", "u3", "u4"))
