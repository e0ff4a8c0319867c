"""Read-only SQLite access to VRCX online/offline feed tables."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

FEED_TABLE_PREFIX = "usr"
FEED_TABLE_SUFFIX = "_feed_online_offline"


def open_database(path: Path) -> sqlite3.Connection:
    """Open the VRCX database read-only."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Database not found: {path}")
    conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def database_connection(path: Path) -> Iterator[sqlite3.Connection]:
    conn = open_database(path)
    try:
        yield conn
    finally:
        conn.close()


def ensure_safe_table_name(table: str) -> str:
    """Reject anything that is not a ``usr*_feed_online_offline`` table name."""
    if not table or not table.strip():
        raise ValueError("No feed table selected.")
    lowered = table.lower()
    if not lowered.startswith(FEED_TABLE_PREFIX) or not lowered.endswith(FEED_TABLE_SUFFIX):
        raise ValueError(f"Table {table!r} is not an online/offline feed table.")
    if not all(ch.isalnum() or ch == "_" for ch in table):
        raise ValueError(f"Table {table!r} contains disallowed characters.")
    return table


def list_feed_tables(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(
        """
        SELECT name FROM sqlite_master
        WHERE type = 'table' AND name LIKE 'usr%_feed_online_offline'
        ORDER BY name;
        """
    )
    return [row["name"] for row in rows]


def require_feed_table(conn: sqlite3.Connection, table: str) -> str:
    """Validate ``table`` and check that the database actually has it."""
    table = ensure_safe_table_name(table)
    if table.lower() not in {name.lower() for name in list_feed_tables(conn)}:
        raise ValueError(f"Feed table {table!r} does not exist.")
    return table


def list_display_names(
    conn: sqlite3.Connection, table: str, limit: int = 200
) -> list[str]:
    table = require_feed_table(conn, table)
    rows = conn.execute(
        f"""
        SELECT DISTINCT display_name
        FROM {table}
        WHERE display_name IS NOT NULL AND display_name <> ''
        ORDER BY display_name
        LIMIT ?;
        """,
        (limit,),
    )
    return [row["display_name"] for row in rows]


def search_display_names(
    conn: sqlite3.Connection, table: str, keyword: str, limit: int = 50
) -> list[str]:
    """Display names containing ``keyword`` (SQLite LIKE, case-insensitive for ASCII)."""
    table = require_feed_table(conn, table)
    if not keyword or not keyword.strip():
        return []
    pattern = f"%{_escape_like(keyword.strip())}%"
    rows = conn.execute(
        f"""
        SELECT DISTINCT display_name
        FROM {table}
        WHERE display_name IS NOT NULL AND display_name <> ''
          AND display_name LIKE ? ESCAPE '\\'
        ORDER BY display_name
        LIMIT ?;
        """,
        (pattern, limit),
    )
    return [row["display_name"] for row in rows]


def read_user_events(
    conn: sqlite3.Connection, table: str, display_name: str
) -> list[tuple[str, str]]:
    """Raw ``(type, created_at)`` rows for one user, oldest first."""
    table = require_feed_table(conn, table)
    if not display_name or not display_name.strip():
        raise ValueError("Display name must not be empty.")
    rows = conn.execute(
        f"""
        SELECT type, created_at
        FROM {table}
        WHERE display_name = ? COLLATE NOCASE
        ORDER BY created_at;
        """,
        (display_name,),
    )
    return [(row["type"], row["created_at"]) for row in rows]


def read_online_created_at(conn: sqlite3.Connection, table: str) -> list[str]:
    """``created_at`` of every Online event in the feed, for any user."""
    table = require_feed_table(conn, table)
    rows = conn.execute(
        f"""
        SELECT created_at
        FROM {table}
        WHERE type = 'Online'
        ORDER BY created_at;
        """
    )
    return [row["created_at"] for row in rows]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
