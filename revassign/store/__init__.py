"""Transactional storage for teams, users, pull requests and reviewer links."""

from revassign.store.base import Repository, RepositorySession
from revassign.store.sqlite import SQLiteRepository, SQLiteSession

__all__ = [
    "Repository",
    "RepositorySession",
    "SQLiteRepository",
    "SQLiteSession",
]
