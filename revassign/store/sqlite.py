"""SQLiteRepository - relational store for teams, users and pull requests.

Schema:
  teams          - one row per team name.
  users          - one row per user, owned by exactly one team.
  pull_requests  - OPEN/MERGED pull requests with store-assigned timestamps.
  pr_reviewers   - (pull_request_id, user_id) links; the primary key rejects a
                   duplicate reviewer on the same pull request.

One connection is shared by all threads. Transactions are serialized behind a
lock and opened with BEGIN IMMEDIATE, so a decision and its writes never
interleave with another operation.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator

from revassign.errors import PRExistsError, StorageError
from revassign.models import (
    PRStatus,
    PullRequest,
    PullRequestShort,
    Stats,
    TeamMember,
    User,
    UserStats,
)
from revassign.store.base import Repository, RepositorySession

LOG = logging.getLogger("revassign.store.sqlite")

MEMORY = ":memory:"

_NOW = "strftime('%Y-%m-%dT%H:%M:%SZ', 'now')"

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS teams (
    team_name   TEXT PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS users (
    user_id     TEXT PRIMARY KEY,
    username    TEXT NOT NULL,
    team_name   TEXT NOT NULL REFERENCES teams (team_name),
    is_active   INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS pull_requests (
    pull_request_id     TEXT PRIMARY KEY,
    pull_request_name   TEXT NOT NULL,
    author_id           TEXT NOT NULL REFERENCES users (user_id),
    status              TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN', 'MERGED')),
    created_at          TEXT NOT NULL DEFAULT ({_NOW}),
    merged_at           TEXT
);
CREATE TABLE IF NOT EXISTS pr_reviewers (
    pull_request_id TEXT NOT NULL REFERENCES pull_requests (pull_request_id),
    user_id         TEXT NOT NULL REFERENCES users (user_id),
    PRIMARY KEY (pull_request_id, user_id)
);
CREATE INDEX IF NOT EXISTS idx_users_team_active ON users (team_name, is_active);
CREATE INDEX IF NOT EXISTS idx_pr_reviewers_user ON pr_reviewers (user_id);
"""


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def connect(
    db_path: str,
    retries: int = 1,
    retry_delay: float = 0.0,
    timeout: float = 5.0,
) -> sqlite3.Connection:
    """Open the database, retrying up to `retries` times.

    Raises StorageError when every attempt fails.
    """
    attempts = max(1, retries)
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            if db_path != MEMORY:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                db_path,
                timeout=timeout,
                check_same_thread=False,
                isolation_level=None,
            )
            conn.execute("SELECT 1")
            return conn
        except (sqlite3.Error, OSError) as e:
            last_error = e
            LOG.warning("Waiting for database... (%d/%d): %s", attempt, attempts, e)
            if attempt < attempts:
                time.sleep(retry_delay)
    raise StorageError(f"cannot open database {db_path}: {last_error}") from last_error


class SQLiteSession(RepositorySession):
    """Repository operations bound to the connection of an open transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise StorageError(f"{type(e).__name__}: {e}") from e

    def _scalar(self, sql: str, params: Iterable[Any] = ()) -> Any:
        row = self._execute(sql, params).fetchone()
        return row[0] if row else None

    # --- teams and users ---

    def team_exists(self, team_name: str) -> bool:
        return self._scalar("SELECT 1 FROM teams WHERE team_name = ?", (team_name,)) is not None

    def create_team(self, team_name: str) -> None:
        self._execute("INSERT INTO teams (team_name) VALUES (?)", (team_name,))

    def upsert_user(self, user_id: str, username: str, team_name: str, is_active: bool) -> None:
        self._execute(
            """
            INSERT INTO users (user_id, username, team_name, is_active)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (user_id) DO UPDATE
            SET username = excluded.username,
                team_name = excluded.team_name,
                is_active = excluded.is_active
            """,
            (user_id, username, team_name, int(is_active)),
        )

    def get_user(self, user_id: str) -> User | None:
        row = self._execute(
            "SELECT user_id, username, team_name, is_active FROM users WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return User(
            user_id=row["user_id"],
            username=row["username"],
            team_name=row["team_name"],
            is_active=bool(row["is_active"]),
        )

    def team_members(self, team_name: str) -> list[TeamMember]:
        rows = self._execute(
            "SELECT user_id, username, is_active FROM users WHERE team_name = ? ORDER BY user_id",
            (team_name,),
        ).fetchall()
        return [
            TeamMember(user_id=r["user_id"], username=r["username"], is_active=bool(r["is_active"]))
            for r in rows
        ]

    def active_team_members(self, team_name: str, exclude_ids: Iterable[str] = ()) -> list[str]:
        exclude = sorted(set(exclude_ids))
        sql = "SELECT user_id FROM users WHERE team_name = ? AND is_active = 1"
        if exclude:
            sql += " AND user_id NOT IN (" + ", ".join("?" for _ in exclude) + ")"
        sql += " ORDER BY user_id"
        rows = self._execute(sql, [team_name, *exclude]).fetchall()
        return [r["user_id"] for r in rows]

    def set_user_active(self, user_id: str, is_active: bool) -> bool:
        cur = self._execute(
            "UPDATE users SET is_active = ? WHERE user_id = ?",
            (int(is_active), user_id),
        )
        return cur.rowcount > 0

    def deactivate_all_active_in_team(self, team_name: str) -> int:
        cur = self._execute(
            "UPDATE users SET is_active = 0 WHERE team_name = ? AND is_active = 1",
            (team_name,),
        )
        return cur.rowcount

    # --- pull requests ---

    def create_pr(self, pr_id: str, name: str, author_id: str) -> datetime:
        try:
            self._conn.execute(
                """
                INSERT INTO pull_requests (pull_request_id, pull_request_name, author_id, status)
                VALUES (?, ?, ?, 'OPEN')
                """,
                (pr_id, name, author_id),
            )
        except sqlite3.IntegrityError as e:
            if self._scalar("SELECT 1 FROM pull_requests WHERE pull_request_id = ?", (pr_id,)):
                raise PRExistsError("PR id already exists") from e
            raise StorageError(f"IntegrityError: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"{type(e).__name__}: {e}") from e
        created = self._scalar(
            "SELECT created_at FROM pull_requests WHERE pull_request_id = ?",
            (pr_id,),
        )
        return _parse_ts(created)

    def get_pr(self, pr_id: str) -> PullRequest | None:
        row = self._execute(
            """
            SELECT pull_request_id, pull_request_name, author_id, status, created_at, merged_at
            FROM pull_requests
            WHERE pull_request_id = ?
            """,
            (pr_id,),
        ).fetchone()
        if row is None:
            return None
        reviewers = self._execute(
            "SELECT user_id FROM pr_reviewers WHERE pull_request_id = ? ORDER BY rowid",
            (pr_id,),
        ).fetchall()
        return PullRequest(
            pull_request_id=row["pull_request_id"],
            pull_request_name=row["pull_request_name"],
            author_id=row["author_id"],
            status=PRStatus(row["status"]),
            assigned_reviewers=[r["user_id"] for r in reviewers],
            created_at=_parse_ts(row["created_at"]),
            merged_at=_parse_ts(row["merged_at"]),
        )

    def add_reviewer(self, pr_id: str, user_id: str) -> None:
        self._execute(
            "INSERT INTO pr_reviewers (pull_request_id, user_id) VALUES (?, ?)",
            (pr_id, user_id),
        )

    def remove_reviewer(self, pr_id: str, user_id: str) -> None:
        self._execute(
            "DELETE FROM pr_reviewers WHERE pull_request_id = ? AND user_id = ?",
            (pr_id, user_id),
        )

    def replace_reviewer(self, pr_id: str, old_user_id: str, new_user_id: str) -> None:
        cur = self._execute(
            "UPDATE pr_reviewers SET user_id = ? WHERE pull_request_id = ? AND user_id = ?",
            (new_user_id, pr_id, old_user_id),
        )
        if cur.rowcount != 1:
            raise StorageError(f"reviewer {old_user_id} is not linked to PR {pr_id}")

    def merge_pr(self, pr_id: str) -> datetime | None:
        self._execute(
            f"""
            UPDATE pull_requests
            SET status = 'MERGED', merged_at = {_NOW}
            WHERE pull_request_id = ? AND status = 'OPEN'
            """,
            (pr_id,),
        )
        merged = self._scalar(
            "SELECT merged_at FROM pull_requests WHERE pull_request_id = ?",
            (pr_id,),
        )
        return _parse_ts(merged)

    def _short_prs(self, user_id: str, status: PRStatus | None) -> list[PullRequestShort]:
        sql = """
            SELECT pr.pull_request_id, pr.pull_request_name, pr.author_id, pr.status
            FROM pull_requests pr
            JOIN pr_reviewers r ON pr.pull_request_id = r.pull_request_id
            WHERE r.user_id = ?
        """
        params: list[Any] = [user_id]
        if status is not None:
            sql += " AND pr.status = ?"
            params.append(status.value)
        sql += " ORDER BY pr.created_at, pr.pull_request_id"
        return [
            PullRequestShort(
                pull_request_id=r["pull_request_id"],
                pull_request_name=r["pull_request_name"],
                author_id=r["author_id"],
                status=PRStatus(r["status"]),
            )
            for r in self._execute(sql, params).fetchall()
        ]

    def prs_reviewed_by(self, user_id: str) -> list[PullRequestShort]:
        return self._short_prs(user_id, None)

    def open_prs_reviewed_by(self, user_id: str) -> list[PullRequestShort]:
        return self._short_prs(user_id, PRStatus.OPEN)

    # --- stats ---

    def stats(self, top: int = 10) -> Stats:
        stats = Stats(
            total_teams=self._scalar("SELECT COUNT(*) FROM teams"),
            total_users=self._scalar("SELECT COUNT(*) FROM users"),
            active_users=self._scalar("SELECT COUNT(*) FROM users WHERE is_active = 1"),
            total_prs=self._scalar("SELECT COUNT(*) FROM pull_requests"),
            open_prs=self._scalar("SELECT COUNT(*) FROM pull_requests WHERE status = 'OPEN'"),
            merged_prs=self._scalar("SELECT COUNT(*) FROM pull_requests WHERE status = 'MERGED'"),
        )
        rows = self._execute(
            """
            SELECT
                u.user_id,
                u.username,
                COUNT(DISTINCT r.pull_request_id) AS review_count,
                COUNT(DISTINCT pa.pull_request_id) AS authored_prs,
                COUNT(DISTINCT CASE WHEN pr.status = 'OPEN' THEN r.pull_request_id END) AS open_reviews,
                COUNT(DISTINCT CASE WHEN pr.status = 'MERGED' THEN r.pull_request_id END) AS merged_reviews
            FROM users u
            LEFT JOIN pr_reviewers r ON u.user_id = r.user_id
            LEFT JOIN pull_requests pr ON r.pull_request_id = pr.pull_request_id
            LEFT JOIN pull_requests pa ON u.user_id = pa.author_id
            GROUP BY u.user_id, u.username
            ORDER BY review_count DESC, u.user_id
            LIMIT ?
            """,
            (top,),
        ).fetchall()
        stats.top_reviewers = [UserStats(**dict(r)) for r in rows]
        return stats


class SQLiteRepository(Repository):
    """Repository backed by a SQLite database file (or :memory:).

    Configure via config.yaml `database.path` or env DATABASE_PATH.
    """

    def __init__(
        self,
        db_path: str = "revassign.db",
        connect_retries: int = 1,
        retry_delay_seconds: float = 0.0,
        busy_timeout_seconds: float = 5.0,
    ) -> None:
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = connect(
            db_path,
            retries=connect_retries,
            retry_delay=retry_delay_seconds,
            timeout=busy_timeout_seconds,
        )
        self._conn.row_factory = sqlite3.Row
        try:
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            self._conn.close()
            raise StorageError(f"failed to initialize schema: {e}") from e
        LOG.info("Database initialized at %s", db_path)

    @contextmanager
    def transaction(self) -> Iterator[SQLiteSession]:
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StorageError(f"cannot begin transaction: {e}") from e
            try:
                yield SQLiteSession(self._conn)
            except BaseException:
                self._rollback()
                raise
            try:
                self._conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback()
                raise StorageError(f"commit failed: {e}") from e

    def _rollback(self) -> None:
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            LOG.error("Rollback failed: %s", e)

    def ping(self) -> bool:
        with self._lock:
            try:
                self._conn.execute("SELECT 1").fetchone()
                return True
            except sqlite3.Error as e:
                LOG.warning("Database ping failed: %s", e)
                return False

    def close(self) -> None:
        with self._lock:
            self._conn.close()
