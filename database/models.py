"""Database CRUD operations for the key/value blob store."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime


def _now() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


def get_value(conn: sqlite3.Connection, key: str) -> str | None:
    """Return the value stored under *key*, or None when absent."""
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    if row is None:
        return None
    return row["value"]


def set_value(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Insert or replace the value stored under *key*."""
    conn.execute(
        """
        INSERT INTO kv_store (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            updated_at = excluded.updated_at
        """,
        (key, value, _now()),
    )
    conn.commit()


def list_keys(conn: sqlite3.Connection) -> list[str]:
    """Return all stored keys in alphabetical order."""
    return [row["key"] for row in conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()]
