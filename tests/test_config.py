from __future__ import annotations

import dataclasses

import pytest

from vrcx_predictor.config import AnalyzerSettings


def test_defaults():
    settings = AnalyzerSettings()
    assert settings.created_at_mode == "utc"
    assert settings.half_life_days == 21
    assert settings.history_days == 180
    assert settings.bin_minutes == 15
    assert settings.bins_per_day == 96
    assert settings.separate_weekday_weekend is True
    assert settings.recent_weeks == 12


@pytest.mark.parametrize("bin_minutes", [0, -15, 7, 25, 2000])
def test_bin_minutes_must_divide_a_day(bin_minutes):
    with pytest.raises(ValueError):
        AnalyzerSettings(bin_minutes=bin_minutes)


def test_negative_windows_are_rejected():
    with pytest.raises(ValueError):
        AnalyzerSettings(history_days=-1)
    with pytest.raises(ValueError):
        AnalyzerSettings(recent_weeks=-1)


def test_settings_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        AnalyzerSettings().bin_minutes = 30


def test_from_options_overrides_only_given_values():
    base = AnalyzerSettings(timezone_id="Asia/Tokyo", bin_minutes=30)
    settings = AnalyzerSettings.from_options(
        history_days=0, holiday_dates=["2024-01-01"], base=base
    )
    assert settings.timezone_id == "Asia/Tokyo"
    assert settings.bin_minutes == 30
    assert settings.history_days == 0
    assert settings.holiday_dates == ("2024-01-01",)
    assert settings.special_workday_dates == ()


def test_from_options_validates():
    with pytest.raises(ValueError):
        AnalyzerSettings.from_options(bin_minutes=11)
