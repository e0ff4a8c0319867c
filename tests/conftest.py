from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from vrcx_predictor.models import Session

UTC = ZoneInfo("UTC")
FEED_TABLE = "usr0a1b2c3d_feed_online_offline"
CREATED_AT_FMT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


def make_session(start: datetime, hours: float, is_open: bool = False) -> Session:
    return Session(start, start + timedelta(hours=hours), hours, is_open)


def daily_rows(days: int, start_hour: int = 20, hours: int = 2) -> list[tuple[str, str]]:
    """Raw (type, created_at) rows: one session per day for the last ``days`` days."""
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    rows: list[tuple[str, str]] = []
    for offset in range(days, 0, -1):
        start = today - timedelta(days=offset) + timedelta(hours=start_hour)
        end = start + timedelta(hours=hours)
        rows.append(("Online", start.strftime(CREATED_AT_FMT)))
        rows.append(("Offline", end.strftime(CREATED_AT_FMT)))
    return rows


@pytest.fixture()
def feed_db(tmp_path):
    path = tmp_path / "VRCX.sqlite3"
    conn = sqlite3.connect(path)
    conn.executescript(
        f"""
        CREATE TABLE {FEED_TABLE} (
            id INTEGER PRIMARY KEY,
            created_at TEXT,
            user_id TEXT,
            display_name TEXT,
            type TEXT,
            location TEXT
        );
        CREATE TABLE configs (key TEXT PRIMARY KEY, value TEXT);
        """
    )
    rows = [(t, c, "Alice") for t, c in daily_rows(40)]
    rows += [(t, c, "Bob") for t, c in daily_rows(2, start_hour=9, hours=1)]
    rows += [("Online", "2024-01-01T10:00:00.000Z", "50%er"), ("Online", "", "")]
    conn.executemany(
        f"INSERT INTO {FEED_TABLE} (type, created_at, display_name) VALUES (?, ?, ?)",
        rows,
    )
    conn.commit()
    conn.close()
    return path
