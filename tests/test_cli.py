from __future__ import annotations

from typer.testing import CliRunner

from vrcx_predictor.cli import app

from conftest import FEED_TABLE

runner = CliRunner()


def test_tables(feed_db):
    result = runner.invoke(app, ["tables", "--db", str(feed_db)])
    assert result.exit_code == 0
    assert FEED_TABLE in result.output


def test_users_with_search(feed_db):
    result = runner.invoke(app, ["users", "--db", str(feed_db), "--search", "bo"])
    assert result.exit_code == 0
    assert result.output.split() == ["Bob"]


def test_analyze_prints_summary(feed_db):
    result = runner.invoke(app, ["analyze", "Alice", "--db", str(feed_db), "--tz", "UTC"])
    assert result.exit_code == 0, result.output
    assert "Analysis for Alice" in result.output
    assert "Sessions:          40" in result.output
    assert "very high regularity" in result.output


def test_analyze_unknown_user_fails(feed_db):
    result = runner.invoke(app, ["analyze", "Nobody", "--db", str(feed_db)])
    assert result.exit_code == 1


def test_analyze_rejects_bad_bin_width(feed_db):
    result = runner.invoke(
        app, ["analyze", "Alice", "--db", str(feed_db), "--bin-minutes", "7"]
    )
    assert result.exit_code == 2


def test_missing_database(tmp_path):
    result = runner.invoke(app, ["tables", "--db", str(tmp_path / "missing.sqlite3")])
    assert result.exit_code == 1


def test_analyze_missing_feed_table(feed_db):
    result = runner.invoke(
        app,
        ["analyze", "Alice", "--db", str(feed_db), "--table", "usrdeadbeef_feed_online_offline"],
    )
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
