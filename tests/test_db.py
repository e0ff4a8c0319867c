from __future__ import annotations

import sqlite3

import pytest

from vrcx_predictor.db import (
    database_connection,
    ensure_safe_table_name,
    list_display_names,
    list_feed_tables,
    read_online_created_at,
    read_user_events,
    require_feed_table,
    search_display_names,
)

from conftest import FEED_TABLE


def test_list_feed_tables(feed_db):
    with database_connection(feed_db) as conn:
        assert list_feed_tables(conn) == [FEED_TABLE]


def test_list_display_names_skips_blank(feed_db):
    with database_connection(feed_db) as conn:
        assert list_display_names(conn, FEED_TABLE) == ["50%er", "Alice", "Bob"]
        assert list_display_names(conn, FEED_TABLE, limit=1) == ["50%er"]


def test_search_escapes_like_wildcards(feed_db):
    with database_connection(feed_db) as conn:
        assert search_display_names(conn, FEED_TABLE, "%") == ["50%er"]
        assert search_display_names(conn, FEED_TABLE, "li") == ["Alice"]
        assert search_display_names(conn, FEED_TABLE, "  ") == []


def test_read_user_events_is_case_insensitive_and_ordered(feed_db):
    with database_connection(feed_db) as conn:
        rows = read_user_events(conn, FEED_TABLE, "alice")
    assert len(rows) == 80
    assert rows[0][0] == "Online"
    assert [created for _, created in rows] == sorted(created for _, created in rows)


def test_read_user_events_requires_name(feed_db):
    with database_connection(feed_db) as conn:
        with pytest.raises(ValueError):
            read_user_events(conn, FEED_TABLE, " ")


def test_read_online_created_at(feed_db):
    with database_connection(feed_db) as conn:
        created = read_online_created_at(conn, FEED_TABLE)
    assert len(created) == 40 + 2 + 2
    assert created[0] == ""


@pytest.mark.parametrize(
    "table",
    ["", "configs", "usr1_feed_gps", "usr1_feed_online_offline; DROP TABLE x", "usr-1_feed_online_offline"],
)
def test_unsafe_table_names_are_rejected(table):
    with pytest.raises(ValueError):
        ensure_safe_table_name(table)


def test_missing_database(tmp_path):
    with pytest.raises(FileNotFoundError):
        with database_connection(tmp_path / "nope.sqlite3"):
            pass


def test_connection_is_read_only(feed_db):
    with database_connection(feed_db) as conn:
        with pytest.raises(sqlite3.OperationalError):
            conn.execute("DELETE FROM configs")


def test_readers_reject_missing_feed_table(feed_db):
    missing = "usrdeadbeef_feed_online_offline"
    with database_connection(feed_db) as conn:
        with pytest.raises(ValueError, match="does not exist"):
            read_user_events(conn, missing, "Alice")
        with pytest.raises(ValueError):
            list_display_names(conn, missing)
        assert require_feed_table(conn, FEED_TABLE.upper()) == FEED_TABLE.upper()
