"""SQLite-backed shared store for organizations, PR insights and job locks."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from pr_radar.exceptions import StoreError
from pr_radar.models import JobLockState, OrgMember, Organization, PRInsight, PRState

_SCHEMA = """
CREATE TABLE IF NOT EXISTS organizations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    slack_webhook_url TEXT,
    slack_bot_token TEXT,
    slack_channel TEXT,
    deleted_at REAL
);
CREATE TABLE IF NOT EXISTS members (
    id TEXT PRIMARY KEY,
    org_id TEXT NOT NULL,
    handle TEXT,
    name TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_members_org ON members(org_id);
CREATE TABLE IF NOT EXISTS pr_insights (
    org_id TEXT NOT NULL,
    repo TEXT NOT NULL,
    number INTEGER NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    author TEXT,
    status TEXT NOT NULL,
    is_draft INTEGER NOT NULL DEFAULT 0,
    size_score REAL NOT NULL DEFAULT 0,
    risk_score REAL NOT NULL DEFAULT 0,
    risk_factors TEXT NOT NULL DEFAULT '{}',
    recommendations TEXT NOT NULL DEFAULT '[]',
    suggested_reviewers TEXT NOT NULL DEFAULT '[]',
    touched_paths TEXT NOT NULL DEFAULT '[]',
    opened_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    PRIMARY KEY (org_id, repo, number)
);
CREATE INDEX IF NOT EXISTS idx_insights_stale ON pr_insights(org_id, status, updated_at);
CREATE TABLE IF NOT EXISTS job_locks (
    job_name TEXT PRIMARY KEY,
    is_locked INTEGER NOT NULL DEFAULT 0,
    locked_at REAL,
    locked_by TEXT
);
"""


def _to_ts(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp()


def _from_ts(value: float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=UTC)


class Store:
    """SQLite shared store with WAL mode.

    Several processes may open the same database file; the job lock
    relies on SQLite serializing writers.
    """

    def __init__(self, db_path: Path | str, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path), timeout=timeout)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def _write(self, sql: str, params: Sequence[Any]) -> int:
        """Execute a single write statement and commit. Returns the row count."""
        try:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StoreError(f"Store write failed: {exc}") from exc
        return cursor.rowcount

    def _read(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Store read failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Organizations and members
    # ------------------------------------------------------------------

    def upsert_organization(self, org: Organization) -> None:
        self._write(
            """INSERT OR REPLACE INTO organizations
               (id, name, slack_webhook_url, slack_bot_token, slack_channel, deleted_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                org.id,
                org.name,
                org.slack_webhook_url,
                org.slack_bot_token,
                org.slack_channel,
                _to_ts(org.deleted_at) if org.deleted_at else None,
            ),
        )

    def list_alerting_organizations(self) -> list[Organization]:
        """Organizations that are not deleted and have a Slack integration."""
        rows = self._read(
            """SELECT * FROM organizations
               WHERE deleted_at IS NULL
                 AND (slack_webhook_url IS NOT NULL OR slack_bot_token IS NOT NULL)
               ORDER BY rowid"""
        )
        return [self._row_to_org(row) for row in rows]

    def get_organization(self, org_id: str) -> Organization | None:
        rows = self._read("SELECT * FROM organizations WHERE id = ?", (org_id,))
        return self._row_to_org(rows[0]) if rows else None

    @staticmethod
    def _row_to_org(row: sqlite3.Row) -> Organization:
        return Organization(
            id=row["id"],
            name=row["name"],
            slack_webhook_url=row["slack_webhook_url"],
            slack_bot_token=row["slack_bot_token"],
            slack_channel=row["slack_channel"],
            deleted_at=_from_ts(row["deleted_at"]),
        )

    def upsert_member(self, member: OrgMember) -> None:
        self._write(
            """INSERT INTO members (id, org_id, handle, name) VALUES (?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   org_id = excluded.org_id, handle = excluded.handle, name = excluded.name""",
            (member.id, member.org_id, member.handle, member.name),
        )

    def list_members(self, org_id: str) -> list[OrgMember]:
        """Members of *org_id* with a source-control handle, in insertion order."""
        rows = self._read(
            "SELECT * FROM members WHERE org_id = ? AND handle IS NOT NULL ORDER BY rowid",
            (org_id,),
        )
        return [
            OrgMember(id=row["id"], org_id=row["org_id"], handle=row["handle"], name=row["name"])
            for row in rows
        ]

    # ------------------------------------------------------------------
    # PR insights
    # ------------------------------------------------------------------

    def upsert_insight(self, insight: PRInsight) -> None:
        self._write(
            """INSERT OR REPLACE INTO pr_insights
               (org_id, repo, number, title, author, status, is_draft, size_score,
                risk_score, risk_factors, recommendations, suggested_reviewers,
                touched_paths, opened_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                insight.org_id,
                insight.repo,
                insight.number,
                insight.title,
                insight.author,
                insight.status.value,
                int(insight.is_draft),
                insight.size_score,
                insight.risk_score,
                json.dumps(insight.risk_factors),
                json.dumps(insight.recommendations),
                json.dumps(insight.suggested_reviewers),
                json.dumps(insight.touched_paths),
                _to_ts(insight.opened_at),
                _to_ts(insight.updated_at),
            ),
        )

    def get_insight(self, org_id: str, repo: str, number: int) -> PRInsight | None:
        rows = self._read(
            "SELECT * FROM pr_insights WHERE org_id = ? AND repo = ? AND number = ?",
            (org_id, repo, number),
        )
        return self._row_to_insight(rows[0]) if rows else None

    def list_stale_insights(
        self,
        org_id: str,
        updated_before: datetime,
        repos: Sequence[str] | None = None,
        exclude_draft: bool = True,
    ) -> list[PRInsight]:
        """Open insights of *org_id* last updated strictly before *updated_before*."""
        sql = (
            "SELECT * FROM pr_insights "
            "WHERE org_id = ? AND status = ? AND updated_at < ?"
        )
        params: list[Any] = [org_id, PRState.OPEN.value, _to_ts(updated_before)]
        if repos:
            sql += f" AND repo IN ({', '.join('?' for _ in repos)})"
            params.extend(repos)
        if exclude_draft:
            sql += " AND is_draft = 0"
        sql += " ORDER BY updated_at ASC"
        return [self._row_to_insight(row) for row in self._read(sql, params)]

    @staticmethod
    def _row_to_insight(row: sqlite3.Row) -> PRInsight:
        return PRInsight(
            org_id=row["org_id"],
            repo=row["repo"],
            number=row["number"],
            title=row["title"],
            author=row["author"],
            status=PRState(row["status"]),
            is_draft=bool(row["is_draft"]),
            size_score=row["size_score"],
            risk_score=row["risk_score"],
            risk_factors=json.loads(row["risk_factors"]),
            recommendations=json.loads(row["recommendations"]),
            suggested_reviewers=json.loads(row["suggested_reviewers"]),
            touched_paths=json.loads(row["touched_paths"]),
            opened_at=_from_ts(row["opened_at"]),
            updated_at=_from_ts(row["updated_at"]),
        )

    # ------------------------------------------------------------------
    # Job locks
    # ------------------------------------------------------------------

    def try_acquire_lock(
        self, job_name: str, owner: str, now: datetime, ttl: timedelta
    ) -> bool:
        """Atomically take the lock unless another holder's lease is still live.

        A single conditional upsert decides the outcome, so two callers
        racing on the same row cannot both succeed.
        """
        now_ts = _to_ts(now)
        expired_before = now_ts - ttl.total_seconds()
        changed = self._write(
            """INSERT INTO job_locks (job_name, is_locked, locked_at, locked_by)
               VALUES (?, 1, ?, ?)
               ON CONFLICT(job_name) DO UPDATE SET
                   is_locked = 1,
                   locked_at = excluded.locked_at,
                   locked_by = excluded.locked_by
               WHERE job_locks.is_locked = 0 OR job_locks.locked_at < ?""",
            (job_name, now_ts, owner, expired_before),
        )
        return changed == 1

    def release_lock(self, job_name: str, now: datetime, owner: str | None = None) -> bool:
        """Mark the lock released. The row is kept, only its state changes."""
        sql = "UPDATE job_locks SET is_locked = 0, locked_at = ? WHERE job_name = ? AND is_locked = 1"
        params: list[Any] = [_to_ts(now), job_name]
        if owner is not None:
            sql += " AND locked_by = ?"
            params.append(owner)
        return self._write(sql, params) > 0

    def release_expired_lock(self, job_name: str, now: datetime, ttl: timedelta) -> bool:
        """Release the lock only if its lease is older than *ttl*."""
        now_ts = _to_ts(now)
        return self._write(
            """UPDATE job_locks SET is_locked = 0, locked_at = ?
               WHERE job_name = ? AND is_locked = 1 AND locked_at < ?""",
            (now_ts, job_name, now_ts - ttl.total_seconds()),
        ) > 0

    def get_lock(self, job_name: str) -> JobLockState | None:
        rows = self._read("SELECT * FROM job_locks WHERE job_name = ?", (job_name,))
        if not rows:
            return None
        row = rows[0]
        return JobLockState(
            job_name=row["job_name"],
            is_locked=bool(row["is_locked"]),
            locked_at=_from_ts(row["locked_at"]),
            locked_by=row["locked_by"],
        )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
