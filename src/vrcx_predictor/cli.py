"""Command-line interface for the predictor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import AnalyzerSettings
from .paths import get_default_db_path

app = typer.Typer(help="Predict when a VRCX friend is likely to be online.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _resolve_table(conn, table: Optional[str]) -> str:
    from .db import list_feed_tables

    if table:
        return table
    tables = list_feed_tables(conn)
    if not tables:
        typer.echo("No online/offline feed tables found in the database.", err=True)
        raise typer.Exit(code=1)
    return tables[0]


@app.command()
def tables(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of VRCX.sqlite3."
    ),
) -> None:
    """List the online/offline feed tables in the database."""
    from .db import database_connection, list_feed_tables

    try:
        with database_connection(db_path or get_default_db_path()) as conn:
            names = list_feed_tables(conn)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    for name in names:
        typer.echo(name)


@app.command()
def users(
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of VRCX.sqlite3."
    ),
    table: Optional[str] = typer.Option(
        None, "--table", help="Feed table to read (defaults to the first one)."
    ),
    search: Optional[str] = typer.Option(
        None, "--search", "-s", help="Only show names containing this text."
    ),
    limit: int = typer.Option(200, "--limit", min=1, help="Maximum names to list."),
) -> None:
    """List display names present in a feed table."""
    from .db import database_connection, list_display_names, search_display_names

    try:
        with database_connection(db_path or get_default_db_path()) as conn:
            feed = _resolve_table(conn, table)
            if search:
                names = search_display_names(conn, feed, search, limit=limit)
            else:
                names = list_display_names(conn, feed, limit=limit)
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    for name in names:
        typer.echo(name)


@app.command()
def analyze(
    display_name: str = typer.Argument(..., help="Display name of the user to analyze."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of VRCX.sqlite3."
    ),
    table: Optional[str] = typer.Option(
        None, "--table", help="Feed table to read (defaults to the first one)."
    ),
    timezone_id: str = typer.Option(
        "", "--tz", help="Time zone id (IANA or Windows name). Defaults to the host zone."
    ),
    created_at_mode: str = typer.Option(
        "utc", "--mode", help="How to read created_at: 'utc' or 'local'."
    ),
    half_life_days: int = typer.Option(21, "--half-life", help="Recency half-life in days."),
    history_days: int = typer.Option(
        180, "--history-days", min=0, help="Ignore events older than this (0 = keep all)."
    ),
    bin_minutes: int = typer.Option(
        15, "--bin-minutes", min=1, help="Width of a time-of-day bin; must divide 1440."
    ),
    separate_weekday_weekend: bool = typer.Option(
        True,
        "--separate-weekend/--no-separate-weekend",
        help="Model workdays and weekends/holidays as two profiles.",
    ),
    recent_weeks: int = typer.Option(
        12, "--recent-weeks", min=0, help="Hard cutoff age in weeks (0 = none)."
    ),
    holidays: Optional[List[str]] = typer.Option(
        None, "--holiday", help="Holiday date (YYYY-MM-DD). Repeatable."
    ),
    workdays: Optional[List[str]] = typer.Option(
        None, "--workday", help="Special workday date (YYYY-MM-DD). Repeatable."
    ),
    include_global: bool = typer.Option(
        True, "--global/--no-global", help="Also build the feed-wide activity grid."
    ),
) -> None:
    """Analyze one user's presence history and print a forecast."""
    from .analyzer import analyze_user
    from .db import database_connection, read_online_created_at, read_user_events
    from .errors import AnalysisError
    from .reporting import AnalysisPrinter

    try:
        settings = AnalyzerSettings.from_options(
            timezone_id=timezone_id,
            created_at_mode=created_at_mode,
            half_life_days=half_life_days,
            history_days=history_days,
            bin_minutes=bin_minutes,
            separate_weekday_weekend=separate_weekday_weekend,
            recent_weeks=recent_weeks,
            holiday_dates=holidays or (),
            special_workday_dates=workdays or (),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        with database_connection(db_path or get_default_db_path()) as conn:
            feed = _resolve_table(conn, table)
            raw_events = read_user_events(conn, feed, display_name)
            global_created_at = read_online_created_at(conn, feed) if include_global else None
        result = analyze_user(raw_events, settings, global_created_at=global_created_at)
    except (FileNotFoundError, ValueError, AnalysisError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    AnalysisPrinter(display_name).print_summary(result)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of VRCX.sqlite3."
    ),
    timezone_id: str = typer.Option("", "--tz", help="Default time zone id."),
) -> None:
    """Serve the JSON API locally."""
    from .server_runner import run_server

    run_server(
        host=host,
        port=port,
        db_path=db_path or get_default_db_path(),
        settings=AnalyzerSettings(timezone_id=timezone_id),
    )
