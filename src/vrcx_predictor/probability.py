"""Recency-weighted presence probabilities and short-horizon forecasts."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, tzinfo
from typing import AbstractSet, Mapping, Sequence

import numpy as np

from .config import MINUTES_PER_DAY
from .models import BestWindow, Session
from .occupancy import (
    DAYS_PER_WEEK,
    bins_per_day,
    build_by_week,
    iter_session_bins,
)
from .smoothing import smooth
from .timeutil import (
    bin_index,
    floor_to_bin,
    local_midnight,
    step_bins,
    week_start_monday,
)

DEFAULT_SIGMA_TIME = 1.2
DEFAULT_SIGMA_DAY = 0.6
WEEK_MIDPOINT = timedelta(days=3.5)

WEEKDAY_ROWS = slice(0, 5)
WEEKEND_ROWS = slice(5, 7)


def week_weights(
    weeks: Sequence[date],
    now: datetime,
    half_life_days: int,
    recent_weeks: int,
    tz: tzinfo,
) -> np.ndarray:
    """Weight each week by exponential decay of its age, tapered to a cutoff.

    A week's age is measured from its midpoint (Monday 00:00 + 3.5 days).
    With ``recent_weeks > 0`` the weight also ramps linearly to zero at
    ``recent_weeks`` weeks and stays zero beyond it.
    """
    weights = np.zeros(len(weeks), dtype=float)
    for i, week in enumerate(weeks):
        mid = local_midnight(week, tz).timestamp() + WEEK_MIDPOINT.total_seconds()
        age_days = max(0.0, (now.timestamp() - mid) / 86400.0)

        weight = 1.0 if half_life_days <= 0 else math.exp(-age_days / half_life_days)
        if recent_weeks > 0:
            age_weeks = age_days / 7.0
            if age_weeks >= recent_weeks:
                weight = 0.0
            else:
                weight *= (recent_weeks - age_weeks) / recent_weeks
        weights[i] = weight
    return weights


def _normalizer(weights: np.ndarray) -> float:
    total = float(weights.sum())
    return total if total > 0 else 1.0


def build_probability_matrix(
    week_grids: Mapping[date, np.ndarray],
    now: datetime,
    half_life_days: int,
    recent_weeks: int,
    tz: tzinfo,
    sigma_time: float = DEFAULT_SIGMA_TIME,
    sigma_day: float = DEFAULT_SIGMA_DAY,
) -> np.ndarray:
    """Merge weekly occupancy grids into one smoothed probability grid."""
    if not week_grids:
        raise ValueError("No sessions/occupancy available.")

    weeks = sorted(week_grids)
    weights = week_weights(weeks, now, half_life_days, recent_weeks, tz)

    first = week_grids[weeks[0]]
    merged = np.zeros(first.shape, dtype=float)
    for week, weight in zip(weeks, weights):
        merged += week_grids[week].astype(float) * weight

    merged = np.clip(merged / _normalizer(weights), 0.0, 1.0)
    return np.clip(smooth(merged, sigma_time, sigma_day), 0.0, 1.0)


def is_weekend_or_holiday(
    day: date, holidays: AbstractSet[date], special_workdays: AbstractSet[date]
) -> bool:
    if day in special_workdays:
        return False
    if day in holidays:
        return True
    return day.weekday() >= 5


def build_weekday_weekend_matrix(
    sessions: Sequence[Session],
    bin_minutes: int,
    tz: tzinfo,
    now: datetime,
    half_life_days: int,
    recent_weeks: int,
    holidays: AbstractSet[date],
    special_workdays: AbstractSet[date],
    sigma_time: float = DEFAULT_SIGMA_TIME,
) -> np.ndarray:
    """Probability grid built from two day classes: workdays and rest days.

    Each marked bin is classified by its local calendar date; rows 0-4 carry
    the workday profile and rows 5-6 the rest-day profile. Only the time
    axis is smoothed.
    """
    width = bins_per_day(bin_minutes)
    # row 0: workday bins, row 1: weekend/holiday bins
    by_week: dict[date, np.ndarray] = {}

    for session in sessions:
        for cursor in iter_session_bins(session, bin_minutes, tz):
            week = week_start_monday(cursor, tz)
            buckets = by_week.get(week)
            if buckets is None:
                buckets = np.zeros((2, width), dtype=bool)
                by_week[week] = buckets
            row = 1 if is_weekend_or_holiday(cursor.date(), holidays, special_workdays) else 0
            buckets[row, bin_index(cursor, bin_minutes)] = True

    if not by_week:
        raise ValueError("No sessions/occupancy available.")

    weeks = sorted(by_week)
    weights = week_weights(weeks, now, half_life_days, recent_weeks, tz)

    profiles = np.zeros((2, width), dtype=float)
    for week, weight in zip(weeks, weights):
        if weight <= 0:
            continue
        profiles += by_week[week].astype(float) * weight
    profiles /= _normalizer(weights)

    grid = np.zeros((DAYS_PER_WEEK, width), dtype=float)
    grid[WEEKDAY_ROWS, :] = profiles[0]
    grid[WEEKEND_ROWS, :] = profiles[1]
    grid = np.clip(grid, 0.0, 1.0)
    return np.clip(smooth(grid, sigma_time, 0.0), 0.0, 1.0)


def build_probability_matrix_from_sessions(
    sessions: Sequence[Session],
    bin_minutes: int,
    tz: tzinfo,
    now: datetime,
    half_life_days: int,
    recent_weeks: int,
    separate_weekday_weekend: bool,
    holidays: AbstractSet[date] = frozenset(),
    special_workdays: AbstractSet[date] = frozenset(),
    sigma_time: float = DEFAULT_SIGMA_TIME,
) -> np.ndarray:
    if separate_weekday_weekend:
        return build_weekday_weekend_matrix(
            sessions,
            bin_minutes,
            tz,
            now,
            half_life_days,
            recent_weeks,
            holidays,
            special_workdays,
            sigma_time=sigma_time,
        )
    week_grids = build_by_week(sessions, bin_minutes, tz)
    return build_probability_matrix(
        week_grids,
        now,
        half_life_days,
        recent_weeks,
        tz,
        sigma_time=sigma_time,
        sigma_day=DEFAULT_SIGMA_DAY,
    )


def _lookup(grid: np.ndarray, when: datetime, bin_minutes: int) -> float:
    return float(grid[when.weekday(), bin_index(when, bin_minutes) % grid.shape[1]])


def prob_next_hours(
    grid: np.ndarray,
    now: datetime,
    hours: float,
    bin_minutes: int,
    tz: tzinfo,
) -> float:
    """Chance of at least one online bin within ``hours``.

    Upcoming bins are treated as independent trials, so strongly
    autocorrelated presence is overstated.
    """
    steps = round(hours * 60.0 / bin_minutes)
    if steps <= 0:
        return 0.0

    cursor = floor_to_bin(now, bin_minutes, tz)
    q = 1.0
    for _ in range(steps):
        cursor = step_bins(cursor, 1, bin_minutes, tz)
        q *= 1.0 - _lookup(grid, cursor, bin_minutes)
    return min(max(1.0 - q, 0.0), 1.0)


def best_window_next_24h(
    grid: np.ndarray, now: datetime, bin_minutes: int, tz: tzinfo
) -> BestWindow:
    """Highest-probability bin in the next day, reported as peak ± one bin."""
    horizon = MINUTES_PER_DAY // bin_minutes
    cursor = floor_to_bin(now, bin_minutes, tz)
    best_time = cursor
    best_p = -1.0

    for _ in range(horizon):
        cursor = step_bins(cursor, 1, bin_minutes, tz)
        p = _lookup(grid, cursor, bin_minutes)
        if p > best_p:
            best_p = p
            best_time = cursor

    return BestWindow(
        start=step_bins(best_time, -1, bin_minutes, tz),
        end=step_bins(best_time, 1, bin_minutes, tz),
        peak=min(max(best_p, 0.0), 1.0),
    )
