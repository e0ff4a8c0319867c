from __future__ import annotations

from datetime import timedelta
from zoneinfo import ZoneInfo

import pytest

from vrcx_predictor.metrics import (
    average_start_interval_hours,
    confidence_label,
    recent_active_hours_text,
    stability,
)

from conftest import UTC, make_session, utc

NOW = utc(2024, 3, 11, 12, 0)


def _starting_at_hours(hours):
    return [make_session(utc(2024, 3, 1 + i, h, 30), 1.0) for i, h in enumerate(hours)]


def test_stability_needs_eight_sessions():
    assert stability(_starting_at_hours([20] * 7), UTC) == ("insufficient data", None)


def test_identical_start_times_are_very_regular():
    label, std = stability(_starting_at_hours([20] * 8), UTC)
    assert label == "very high regularity"
    assert std == 0.0


def test_stability_labels():
    assert stability(_starting_at_hours([19, 20, 21, 22] * 2), UTC)[0] == "very high regularity"
    label, std = stability(_starting_at_hours(range(16, 24)), UTC)
    assert label == "regular"
    assert std == pytest.approx(5.25**0.5)
    assert stability(_starting_at_hours(range(0, 24, 3)), UTC)[0] == "random"


def test_stability_uses_local_time_of_day():
    sessions = _starting_at_hours([12] * 8)
    _, std = stability(sessions, ZoneInfo("Asia/Taipei"))
    assert std == 0.0


def test_average_start_interval():
    base = utc(2024, 3, 1, 20)
    sessions = [make_session(base + timedelta(hours=24 * i), 1.0) for i in range(3)]
    assert average_start_interval_hours(sessions) == pytest.approx(24.0)
    assert average_start_interval_hours(list(reversed(sessions))) == pytest.approx(24.0)


def test_average_start_interval_uses_recent_gaps_only():
    base = utc(2024, 3, 1)
    starts = [base, base + timedelta(hours=10), base + timedelta(hours=30), base + timedelta(hours=60)]
    sessions = [make_session(s, 1.0) for s in starts]
    assert average_start_interval_hours(sessions, recent_intervals=2) == pytest.approx(25.0)
    assert average_start_interval_hours(sessions) == pytest.approx(20.0)


def test_average_start_interval_without_valid_gaps():
    assert average_start_interval_hours([]) is None
    assert average_start_interval_hours([make_session(NOW, 1.0)]) is None
    same = [make_session(NOW, 1.0), make_session(NOW, 2.0)]
    assert average_start_interval_hours(same) is None


def test_recent_active_hours_merges_consecutive_hours():
    sessions = [
        make_session(utc(2024, 3, 9, 8, 15), 0.5),
        make_session(utc(2024, 3, 10, 20, 0), 2.5),
        make_session(utc(2024, 2, 1, 5, 0), 3.0),
    ]
    assert recent_active_hours_text(sessions, UTC, NOW) == "08:00, 20:00-23:00"


def test_recent_active_hours_keeps_top_four():
    sessions = [
        make_session(utc(2024, 3, 10, 1, 0), 0.25),
        make_session(utc(2024, 3, 10, 3, 0), 1.0),
        make_session(utc(2024, 3, 10, 5, 0), 1.0),
        make_session(utc(2024, 3, 10, 7, 0), 1.0),
        make_session(utc(2024, 3, 9, 7, 0), 1.0),
        make_session(utc(2024, 3, 10, 9, 0), 1.0),
    ]
    assert recent_active_hours_text(sessions, UTC, NOW) == "03:00, 05:00, 07:00, 09:00"


def test_recent_active_hours_clips_to_window():
    sessions = [make_session(utc(2024, 3, 4, 11, 0), 2.0)]
    assert recent_active_hours_text(sessions, UTC, NOW) == "12:00"


def test_recent_active_hours_in_local_zone():
    sessions = [make_session(utc(2024, 3, 10, 12, 0), 1.0)]
    assert recent_active_hours_text(sessions, ZoneInfo("Asia/Taipei"), NOW) == "20:00"


def test_recent_active_hours_without_data():
    assert recent_active_hours_text([], UTC, NOW) == "none"
    old = [make_session(utc(2024, 1, 1, 10), 1.0)]
    assert recent_active_hours_text(old, UTC, NOW) == "none"


@pytest.mark.parametrize(
    "count, expected", [(0, "very low"), (4, "very low"), (14, "low"), (29, "medium")]
)
def test_confidence_by_session_count(count, expected):
    sessions = [make_session(NOW - timedelta(days=1 + i), 1.0) for i in range(count)]
    assert confidence_label(sessions, NOW) == expected


def test_confidence_with_few_active_days_is_low():
    sessions = [
        make_session(NOW - timedelta(days=1 + i % 5, hours=i), 0.5) for i in range(30)
    ]
    assert confidence_label(sessions, NOW) == "low"


def test_confidence_with_many_active_days_is_high():
    sessions = [make_session(NOW - timedelta(days=1 + i), 1.0) for i in range(30)]
    assert confidence_label(sessions, NOW) == "high"


def test_confidence_ignores_days_outside_window():
    sessions = [make_session(NOW - timedelta(days=100 + i), 1.0) for i in range(30)]
    assert confidence_label(sessions, NOW) == "low"
