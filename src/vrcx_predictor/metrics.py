"""Descriptive metrics over reconstructed sessions."""

from __future__ import annotations

import statistics
from datetime import datetime, timedelta, tzinfo
from typing import Optional, Sequence

from .models import Session
from .timeutil import elapsed_hours, shift_instant

INSUFFICIENT_DATA = "insufficient data"
NO_ACTIVE_HOURS = "none"

MIN_SESSIONS_FOR_STABILITY = 8


def stability(sessions: Sequence[Session], tz: tzinfo) -> tuple[str, Optional[float]]:
    """Classify how regular session start times are.

    Returns a label and the population standard deviation (hours) of the
    local time-of-day at which sessions start.
    """
    if len(sessions) < MIN_SESSIONS_FOR_STABILITY:
        return INSUFFICIENT_DATA, None

    starts = []
    for session in sessions:
        local = session.start.astimezone(tz)
        starts.append(local.hour + local.minute / 60.0)
    std = statistics.pstdev(starts)

    if std < 1.5:
        return "very high regularity", std
    if std < 3.0:
        return "regular", std
    return "random", std


def average_start_interval_hours(
    sessions: Sequence[Session], recent_intervals: int = 10
) -> Optional[float]:
    """Mean gap between the most recent session starts, ignoring non-positive gaps."""
    if len(sessions) < 2:
        return None

    ordered = sorted(sessions, key=lambda s: s.start.timestamp())
    take = min(recent_intervals, len(ordered) - 1)
    if take <= 0:
        return None

    gaps = [
        elapsed_hours(ordered[i - 1].start, ordered[i].start)
        for i in range(len(ordered) - take, len(ordered))
    ]
    gaps = [gap for gap in gaps if gap > 0]
    if not gaps:
        return None
    return sum(gaps) / len(gaps)


def recent_active_hours_text(
    sessions: Sequence[Session], tz: tzinfo, now: datetime, days: int = 7
) -> str:
    """Summarize the busiest hours of the last ``days`` days, e.g. ``"20:00-23:00"``."""
    if not sessions:
        return NO_ACTIVE_HOURS

    since = shift_instant(now, -timedelta(days=days))
    minutes_by_hour = [0.0] * 24

    for session in sessions:
        if session.end < since or session.start > now:
            continue
        cursor = max(session.start, since).astimezone(tz)
        stop = min(session.end, now)
        while cursor < stop:
            hour_start = cursor.replace(minute=0, second=0, microsecond=0)
            next_hour = shift_instant(hour_start, timedelta(hours=1)).astimezone(tz)
            segment_end = min(next_hour, stop).astimezone(tz)
            minutes_by_hour[cursor.hour] += elapsed_hours(cursor, segment_end) * 60.0
            cursor = segment_end

    ranked = sorted(
        (hour for hour in range(24) if minutes_by_hour[hour] > 0),
        key=lambda hour: minutes_by_hour[hour],
        reverse=True,
    )
    top_hours = sorted(ranked[:4])
    if not top_hours:
        return NO_ACTIVE_HOURS
    return ", ".join(_format_hour_range(start, end) for start, end in _merge_runs(top_hours))


def _merge_runs(hours: list[int]) -> list[tuple[int, int]]:
    runs: list[tuple[int, int]] = []
    start = prev = hours[0]
    for hour in hours[1:]:
        if hour == prev + 1:
            prev = hour
            continue
        runs.append((start, prev))
        start = prev = hour
    runs.append((start, prev))
    return runs


def _format_hour_range(start: int, end: int) -> str:
    if start == end:
        return f"{start:02d}:00"
    return f"{start:02d}:00-{end + 1:02d}:00"


def confidence_label(sessions: Sequence[Session], now: datetime, days: int = 90) -> str:
    """Rate how much data backs the prediction."""
    count = len(sessions)
    if count < 5:
        return "very low"
    if count < 15:
        return "low"
    if count < 30:
        return "medium"

    since = shift_instant(now, -timedelta(days=days))
    active_days = {s.start.date() for s in sessions if s.start >= since}
    if len(active_days) < 10:
        return "low"
    return "high"
