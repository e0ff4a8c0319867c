"""Top-level presence analysis for a single user."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from .cleaning import clean_raw_events
from .config import AnalyzerSettings
from .errors import AnalysisCancelled, EmptyAfterFilter, MalformedTimestamp, NoUserRecords
from .metrics import (
    INSUFFICIENT_DATA,
    average_start_interval_hours,
    confidence_label,
    recent_active_hours_text,
    stability,
)
from .models import ONLINE, AnalysisResult, BestWindow, DataQuality
from .occupancy import DAYS_PER_WEEK, build_online_counts, clean_global_online
from .probability import (
    best_window_next_24h,
    build_probability_matrix_from_sessions,
    prob_next_hours,
)
from .sessions import build_sessions
from .timeutil import local_now, parse_created_at, parse_date, resolve_timezone, shift_instant

logger = logging.getLogger(__name__)

MIN_SESSIONS_FOR_MODEL = 5
FORECAST_HOURS = 2.0

CancelCheck = Callable[[], bool]


def analyze_user(
    raw_events: Sequence[tuple[str, str]],
    settings: AnalyzerSettings,
    *,
    global_created_at: Optional[Sequence[str]] = None,
    now: Optional[datetime] = None,
    cancel_check: Optional[CancelCheck] = None,
) -> AnalysisResult:
    """Run the full pipeline for one user's raw ``(type, created_at)`` rows.

    ``global_created_at`` holds the ``created_at`` strings of every Online
    event in the feed, used for the optional global activity grid.
    ``cancel_check`` is polled before the global events are parsed and
    before the probability grid is built; a truthy return aborts the run
    with :class:`AnalysisCancelled`.
    """
    if not raw_events:
        raise NoUserRecords("No records found for this user.")

    tz = resolve_timezone(settings.timezone_id)
    now_local = local_now(tz, now)

    report = clean_raw_events(raw_events, tz, settings.created_at_mode, now_local)
    events = report.events
    outside_history = 0
    malformed_global = 0
    if settings.history_days > 0:
        cutoff = shift_instant(now_local, -timedelta(days=settings.history_days))
        kept = [event for event in events if event.time >= cutoff]
        outside_history = len(events) - len(kept)
        events = kept

    if not events:
        raise EmptyAfterFilter(
            "No events left after filtering (history_days may be too small "
            "or timestamps could not be parsed)."
        )

    sessions = tuple(build_sessions(events, now_local))
    last = events[-1]
    avg_duration = (
        sum(s.duration_hours for s in sessions) / len(sessions) if sessions else 0.0
    )

    _checkpoint(cancel_check)
    global_matrix = None
    if global_created_at is not None:
        global_matrix, malformed_global = _global_online_matrix(
            global_created_at, settings, tz, now_local
        )

    avg_interval = average_start_interval_hours(sessions)
    active_text = recent_active_hours_text(sessions, tz, now_local)
    confidence = confidence_label(sessions, now_local)

    quality = DataQuality(
        unknown_type=report.unknown_type,
        malformed_timestamp=report.malformed_timestamp,
        future_timestamp=report.future_timestamp,
        outside_history=outside_history,
        malformed_global=malformed_global,
    )

    if len(sessions) < MIN_SESSIONS_FOR_MODEL:
        logger.info(
            "Only %d sessions; returning a reduced result without a forecast.",
            len(sessions),
        )
        return AnalysisResult(
            sessions=sessions,
            is_online_now=last.type == ONLINE,
            last_event_type=last.type,
            last_event_time=last.time,
            session_count=len(sessions),
            avg_duration_hours=avg_duration,
            avg_start_interval_hours=avg_interval,
            recent_active_hours_text=active_text,
            confidence_label=confidence,
            prob_next_2_hours=0.0,
            stability_label=INSUFFICIENT_DATA,
            stability_std_hours=None,
            best_window=BestWindow(now_local, now_local, 0.0),
            probability_matrix=_freeze(
                np.zeros((DAYS_PER_WEEK, settings.bins_per_day), dtype=float)
            ),
            global_online_matrix=global_matrix,
            data_quality=quality,
        )

    holidays, bad_holidays = _build_date_set(settings.holiday_dates)
    special_workdays, bad_workdays = _build_date_set(settings.special_workday_dates)
    quality = replace(quality, invalid_dates=bad_holidays + bad_workdays)

    _checkpoint(cancel_check)
    matrix = build_probability_matrix_from_sessions(
        sessions,
        settings.bin_minutes,
        tz,
        now_local,
        settings.half_life_days,
        settings.recent_weeks,
        settings.separate_weekday_weekend,
        holidays,
        special_workdays,
    )

    p_next = prob_next_hours(matrix, now_local, FORECAST_HOURS, settings.bin_minutes, tz)
    label, std = stability(sessions, tz)
    window = best_window_next_24h(matrix, now_local, settings.bin_minutes, tz)

    logger.info(
        "Analyzed %d sessions (%d raw rows, %d skipped); P(next %.0fh)=%.3f",
        len(sessions),
        len(raw_events),
        quality.total_skipped,
        FORECAST_HOURS,
        p_next,
    )

    return AnalysisResult(
        sessions=sessions,
        is_online_now=last.type == ONLINE,
        last_event_type=last.type,
        last_event_time=last.time,
        session_count=len(sessions),
        avg_duration_hours=avg_duration,
        avg_start_interval_hours=avg_interval,
        recent_active_hours_text=active_text,
        confidence_label=confidence,
        prob_next_2_hours=p_next,
        stability_label=label,
        stability_std_hours=std,
        best_window=window,
        probability_matrix=_freeze(matrix),
        global_online_matrix=global_matrix,
        data_quality=quality,
    )


def _checkpoint(cancel_check: Optional[CancelCheck]) -> None:
    if cancel_check is not None and cancel_check():
        raise AnalysisCancelled("Analysis cancelled.")


def _global_online_matrix(
    created_at: Iterable[str],
    settings: AnalyzerSettings,
    tz: tzinfo,
    now: datetime,
) -> tuple[np.ndarray, int]:
    instants: list[datetime] = []
    malformed = 0
    for value in created_at:
        try:
            instants.append(parse_created_at(value, tz, settings.created_at_mode))
        except MalformedTimestamp:
            malformed += 1
    if malformed:
        logger.debug("Skipped %d malformed global timestamps.", malformed)

    matrix = build_online_counts(
        clean_global_online(instants, now),
        settings.bin_minutes,
        tz,
        now,
        settings.history_days,
    )
    return _freeze(matrix), malformed


def _build_date_set(values: Iterable[str]) -> tuple[frozenset[date], int]:
    days: set[date] = set()
    invalid = 0
    for value in values or ():
        try:
            days.add(parse_date(value))
        except (ValueError, TypeError, AttributeError):
            invalid += 1
            logger.debug("Ignoring invalid date %r.", value)
    return frozenset(days), invalid


def _freeze(matrix: np.ndarray) -> np.ndarray:
    matrix.flags.writeable = False
    return matrix
