"""Job, item and user repository using SQLite."""
import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Any

import structlog

from profile_batch_core.jobs.models import (
    DEFAULT_BATCH_SIZE,
    ITEM_FAILED,
    ITEM_PENDING,
    PAUSED,
    PENDING,
    PROCESSING,
    TERMINAL_STATUSES,
)
from profile_batch_core.util.time import utc_now_iso

logger = structlog.get_logger()

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    username TEXT NOT NULL UNIQUE,
    access_token TEXT,
    refresh_token TEXT,
    token_expiry TEXT,
    created_at TEXT
);
CREATE TABLE IF NOT EXISTS jobs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id INTEGER NOT NULL,
    file_name TEXT NOT NULL,
    file_path TEXT NOT NULL,
    status TEXT NOT NULL,
    total_items INTEGER DEFAULT 0,
    processed INTEGER DEFAULT 0,
    successful INTEGER DEFAULT 0,
    failed INTEGER DEFAULT 0,
    batch_size INTEGER DEFAULT 50,
    processing_rate REAL,
    estimated_completion TEXT,
    active_seconds REAL DEFAULT 0,
    result_path TEXT,
    error_message TEXT,
    started_at TEXT,
    completed_at TEXT,
    created_at TEXT,
    updated_at TEXT
);
CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    job_id INTEGER NOT NULL,
    position INTEGER NOT NULL,
    url TEXT NOT NULL,
    status TEXT NOT NULL,
    payload TEXT,
    error_kind TEXT,
    error_message TEXT,
    retry_count INTEGER DEFAULT 0,
    last_attempt TEXT,
    extracted_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_items_job ON items (job_id, position);
"""

JOB_FIELDS = {
    "total_items",
    "processed",
    "successful",
    "failed",
    "processing_rate",
    "estimated_completion",
    "active_seconds",
    "result_path",
    "error_message",
    "started_at",
    "completed_at",
}

ITEM_FIELDS = {
    "payload",
    "error_kind",
    "error_message",
    "retry_count",
    "last_attempt",
    "extracted_at",
}


def _get_sqlite_path() -> str:
    return os.environ.get("SQLITE_PATH", "/data/jobs.db")


@contextmanager
def get_conn():
    """Get a database connection."""
    path = _get_sqlite_path()
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        conn.executescript(SCHEMA)
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db():
    """Initialize the database."""
    with get_conn():
        pass
    logger.info("sqlite_initialized", path=_get_sqlite_path())


# Users


def get_user(user_id: int) -> dict[str, Any] | None:
    """Get a user by ID."""
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row) if row else None


def ensure_user(user_id: int, username: str | None = None) -> dict[str, Any]:
    """Get a user, creating an empty one if it does not exist yet."""
    with get_conn() as conn:
        conn.execute(
            "INSERT OR IGNORE INTO users (id, username, created_at) VALUES (?, ?, ?)",
            (user_id, username or f"user{user_id}", utc_now_iso()),
        )
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return dict(row)


def update_user_tokens(
    user_id: int,
    access_token: str | None,
    refresh_token: str | None = None,
    token_expiry: str | None = None,
) -> None:
    """Store (or clear) a user's profile API credential."""
    ensure_user(user_id)
    with get_conn() as conn:
        conn.execute(
            """
            UPDATE users SET access_token = ?, refresh_token = ?, token_expiry = ?
            WHERE id = ?
            """,
            (access_token, refresh_token, token_expiry, user_id),
        )


# Jobs


def create_job(
    owner_id: int,
    file_name: str,
    file_path: str,
    batch_size: int = DEFAULT_BATCH_SIZE,
    total_items: int = 0,
) -> dict[str, Any]:
    """Insert a new pending job."""
    now = utc_now_iso()
    with get_conn() as conn:
        cur = conn.execute(
            """
            INSERT INTO jobs (owner_id, file_name, file_path, status, total_items, batch_size, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (owner_id, file_name, file_path, PENDING, total_items, batch_size, now, now),
        )
        row = conn.execute("SELECT * FROM jobs WHERE id = ?", (cur.lastrowid,)).fetchone()
        return dict(row)


def get_job(job_id: int) -> dict[str, Any] | None:
    """Get a job by ID."""
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        if row is None:
            return None
        return dict(row)


def get_job_status(job_id: int) -> str | None:
    """Get only the status of a job."""
    with get_conn() as conn:
        row = conn.execute("SELECT status FROM jobs WHERE id = ?", (job_id,)).fetchone()
        return row["status"] if row else None


def update_job(job_id: int, status: str | None = None, **fields: Any) -> None:
    """Update a job's status and/or progress fields."""
    unknown = set(fields) - JOB_FIELDS
    if unknown:
        raise ValueError(f"Unknown job fields: {sorted(unknown)}")
    assignments = ["updated_at = ?"]
    values: list[Any] = [utc_now_iso()]
    if status is not None:
        assignments.append("status = ?")
        values.append(status)
    for key, value in fields.items():
        assignments.append(f"{key} = ?")
        values.append(value)
    values.append(job_id)
    with get_conn() as conn:
        conn.execute(f"UPDATE jobs SET {', '.join(assignments)} WHERE id = ?", values)


def transition_job(job_id: int, from_statuses: tuple[str, ...], to_status: str) -> bool:
    """Atomically move a job to ``to_status`` if it is in one of ``from_statuses``."""
    placeholders = ", ".join("?" for _ in from_statuses)
    with get_conn() as conn:
        cur = conn.execute(
            f"UPDATE jobs SET status = ?, updated_at = ? WHERE id = ? AND status IN ({placeholders})",
            (to_status, utc_now_iso(), job_id, *from_statuses),
        )
        return cur.rowcount == 1


def claim_job(job_id: int) -> bool:
    """Move a pending job to processing. False if another loop got there first."""
    return transition_job(job_id, (PENDING,), PROCESSING)


def list_jobs_for_owner(owner_id: int, limit: int | None = None) -> list[dict[str, Any]]:
    """List an owner's jobs, newest first."""
    sql = "SELECT * FROM jobs WHERE owner_id = ? ORDER BY id DESC"
    params: tuple = (owner_id,)
    if limit is not None:
        sql += " LIMIT ?"
        params = (owner_id, limit)
    with get_conn() as conn:
        return [dict(r) for r in conn.execute(sql, params).fetchall()]


def list_unfinished_jobs() -> list[dict[str, Any]]:
    """List all non-terminal jobs in submission order."""
    with get_conn() as conn:
        rows = conn.execute(
            "SELECT * FROM jobs WHERE status NOT IN (?, ?) ORDER BY id",
            TERMINAL_STATUSES,
        ).fetchall()
        return [dict(r) for r in rows]


def get_active_job(owner_id: int) -> dict[str, Any] | None:
    """The owner's job that is processing or paused, if any."""
    with get_conn() as conn:
        row = conn.execute(
            """
            SELECT * FROM jobs WHERE owner_id = ? AND status IN (?, ?)
            ORDER BY CASE status WHEN 'processing' THEN 0 ELSE 1 END, id
            LIMIT 1
            """,
            (owner_id, PROCESSING, PAUSED),
        ).fetchone()
        return dict(row) if row else None


# Items


def _item_from_row(row: sqlite3.Row) -> dict[str, Any]:
    item = dict(row)
    if item.get("payload"):
        item["payload"] = json.loads(item["payload"])
    return item


def create_items(job_id: int, urls: list[str]) -> int:
    """Create one pending item per URL, keeping file order. Returns the count."""
    with get_conn() as conn:
        conn.executemany(
            "INSERT INTO items (job_id, position, url, status) VALUES (?, ?, ?, ?)",
            [(job_id, i, url, ITEM_PENDING) for i, url in enumerate(urls)],
        )
    return len(urls)


def update_item(item_id: int, status: str, **fields: Any) -> None:
    """Update an item's status and payload/error fields."""
    unknown = set(fields) - ITEM_FIELDS
    if unknown:
        raise ValueError(f"Unknown item fields: {sorted(unknown)}")
    if "payload" in fields and fields["payload"] is not None:
        fields["payload"] = json.dumps(fields["payload"])
    assignments = ["status = ?"] + [f"{key} = ?" for key in fields]
    values = [status, *fields.values(), item_id]
    with get_conn() as conn:
        conn.execute(f"UPDATE items SET {', '.join(assignments)} WHERE id = ?", values)


def list_items_by_job(job_id: int, status: str | None = None) -> list[dict[str, Any]]:
    """List a job's items in file order, optionally filtered by status."""
    sql = "SELECT * FROM items WHERE job_id = ?"
    params: tuple = (job_id,)
    if status is not None:
        sql += " AND status = ?"
        params = (job_id, status)
    sql += " ORDER BY position"
    with get_conn() as conn:
        return [_item_from_row(r) for r in conn.execute(sql, params).fetchall()]


def count_items(job_id: int) -> int:
    with get_conn() as conn:
        row = conn.execute("SELECT COUNT(*) AS n FROM items WHERE job_id = ?", (job_id,)).fetchone()
        return row["n"]


def list_items_for_owner(owner_id: int, statuses: tuple[str, ...]) -> list[dict[str, Any]]:
    """Items across all of an owner's jobs, for exports."""
    placeholders = ", ".join("?" for _ in statuses)
    with get_conn() as conn:
        rows = conn.execute(
            f"""
            SELECT items.* FROM items JOIN jobs ON jobs.id = items.job_id
            WHERE jobs.owner_id = ? AND items.status IN ({placeholders})
            ORDER BY items.job_id, items.position
            """,
            (owner_id, *statuses),
        ).fetchall()
        return [_item_from_row(r) for r in rows]


# Statistics


def get_job_stats(owner_id: int) -> dict[str, Any]:
    """Totals across an owner's jobs."""
    with get_conn() as conn:
        row = conn.execute(
            """
            SELECT
                COUNT(*) AS total_jobs,
                COALESCE(SUM(total_items), 0) AS total_items,
                COALESCE(SUM(successful), 0) AS successful,
                COALESCE(SUM(failed), 0) AS failed
            FROM jobs WHERE owner_id = ?
            """,
            (owner_id,),
        ).fetchone()
    stats = dict(row)
    processed = stats["successful"] + stats["failed"]
    rate = (stats["successful"] / processed * 100) if processed else 0.0
    stats["success_rate"] = f"{rate:.1f}%"
    return stats


def get_error_breakdown(owner_id: int) -> dict[str, int]:
    """Count failed items per error kind across an owner's jobs."""
    with get_conn() as conn:
        rows = conn.execute(
            """
            SELECT COALESCE(items.error_kind, 'unknown') AS kind, COUNT(*) AS n
            FROM items JOIN jobs ON jobs.id = items.job_id
            WHERE jobs.owner_id = ? AND items.status = ?
            GROUP BY kind
            """,
            (owner_id, ITEM_FAILED),
        ).fetchall()
    return {r["kind"]: r["n"] for r in rows}

