"""Bucket sessions and online events into weekday × time-of-day grids."""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Iterator, Sequence

import numpy as np

from .cleaning import FUTURE_SKEW
from .config import MINUTES_PER_DAY
from .models import Session
from .timeutil import bin_index, floor_to_bin, shift_instant, step_bins, week_start_monday

DAYS_PER_WEEK = 7


def bins_per_day(bin_minutes: int) -> int:
    return MINUTES_PER_DAY // bin_minutes


def iter_session_bins(
    session: Session, bin_minutes: int, tz: tzinfo
) -> Iterator[datetime]:
    """Yield the local start of every bin a session touches."""
    cursor = floor_to_bin(session.start, bin_minutes, tz)
    end = session.end.timestamp()
    while cursor.timestamp() < end:
        yield cursor
        cursor = step_bins(cursor, 1, bin_minutes, tz)


def build_by_week(
    sessions: Iterable[Session], bin_minutes: int, tz: tzinfo
) -> dict[date, np.ndarray]:
    """Return one boolean ``(7, bins)`` occupancy grid per Monday-keyed week."""
    width = bins_per_day(bin_minutes)
    by_week: dict[date, np.ndarray] = {}

    for session in sessions:
        for cursor in iter_session_bins(session, bin_minutes, tz):
            week = week_start_monday(cursor, tz)
            grid = by_week.get(week)
            if grid is None:
                grid = np.zeros((DAYS_PER_WEEK, width), dtype=bool)
                by_week[week] = grid
            grid[cursor.weekday(), bin_index(cursor, bin_minutes)] = True

    return by_week


def clean_global_online(instants: Iterable[datetime], now: datetime) -> list[datetime]:
    """Drop future instants (beyond a 5 minute skew), de-duplicate and sort."""
    latest_allowed = shift_instant(now, FUTURE_SKEW)
    unique = {t for t in instants if t <= latest_allowed}
    return sorted(unique)


def build_online_counts(
    online_events: Sequence[datetime],
    bin_minutes: int,
    tz: tzinfo,
    now: datetime,
    history_days: int,
) -> np.ndarray:
    """Count Online events per cell and min-max normalize to [0, 1]."""
    counts = np.zeros((DAYS_PER_WEEK, bins_per_day(bin_minutes)), dtype=float)
    cutoff = shift_instant(now, -timedelta(days=history_days)) if history_days > 0 else None

    for event in online_events:
        if cutoff is not None and event < cutoff:
            continue
        local = event.astimezone(tz)
        counts[local.weekday(), bin_index(local, bin_minutes)] += 1.0

    peak = counts.max()
    if peak <= 0:
        return counts
    return counts / peak
