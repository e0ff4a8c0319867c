"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import numpy as np

from .models import AnalysisResult

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class AnalysisPrinter:
    """Render a human-readable analysis summary in the console."""

    def __init__(self, display_name: str) -> None:
        self.display_name = display_name

    def print_summary(self, result: AnalysisResult) -> None:
        print(f"Analysis for {self.display_name}")
        print("-" * 40)
        status = "online" if result.is_online_now else "offline"
        print(f"Status:            {status} (last {result.last_event_type} at {format_time(result.last_event_time)})")
        print(f"Sessions:          {result.session_count}")
        print(f"Avg. duration:     {format_duration(result.avg_duration_hours * 3600)}")
        print(f"Avg. interval:     {format_hours(result.avg_start_interval_hours)}")
        print(f"Active hours (7d): {result.recent_active_hours_text}")
        print(f"Confidence:        {result.confidence_label}")
        print(f"Stability:         {result.stability_label}{_format_std(result.stability_std_hours)}")
        print(f"Online in 2h:      {format_percent(result.prob_next_2_hours)}")

        window = result.best_window
        if window.peak > 0:
            print(
                f"Best window (24h): {format_time(window.start)} - {format_time(window.end)}"
                f" ({format_percent(window.peak)})"
            )

        peaks = daily_peaks(result.probability_matrix)
        if peaks:
            print()
            print("Peak hour per weekday:")
            for day, minute, probability in peaks:
                print(f"  {WEEKDAY_NAMES[day]}  {minute // 60:02d}:{minute % 60:02d}  {format_percent(probability)}")

        skipped = result.data_quality.total_skipped
        if skipped:
            print()
            print(f"Skipped records:   {skipped}")


def daily_peaks(matrix: np.ndarray) -> list[tuple[int, int, float]]:
    """Return ``(weekday, minute_of_day, probability)`` of each row's maximum."""
    if not matrix.any():
        return []
    bin_minutes = (24 * 60) // matrix.shape[1]
    peaks = []
    for day in range(matrix.shape[0]):
        column = int(np.argmax(matrix[day]))
        peaks.append((day, column * bin_minutes, float(matrix[day, column])))
    return peaks


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_hours(hours: Optional[float]) -> str:
    if hours is None:
        return "n/a"
    return f"{hours:.1f} h"


def format_percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _format_std(std: Optional[float]) -> str:
    return "" if std is None else f" (std {std:.2f} h)"
