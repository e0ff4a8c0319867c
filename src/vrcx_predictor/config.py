"""Configuration models and helpers for the predictor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True, slots=True)
class AnalyzerSettings:
    """Read-only parameters for one analysis run."""

    timezone_id: str = ""
    created_at_mode: str = "utc"
    half_life_days: int = 21
    history_days: int = 180
    bin_minutes: int = 15
    separate_weekday_weekend: bool = True
    recent_weeks: int = 12
    holiday_dates: tuple[str, ...] = ()
    special_workday_dates: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.bin_minutes <= 0 or MINUTES_PER_DAY % self.bin_minutes != 0:
            raise ValueError(
                f"bin_minutes must evenly divide {MINUTES_PER_DAY}, got {self.bin_minutes}"
            )
        if self.history_days < 0:
            raise ValueError("history_days must be >= 0")
        if self.recent_weeks < 0:
            raise ValueError("recent_weeks must be >= 0")

    @property
    def bins_per_day(self) -> int:
        return MINUTES_PER_DAY // self.bin_minutes

    @classmethod
    def from_options(
        cls,
        timezone_id: Optional[str] = None,
        created_at_mode: Optional[str] = None,
        half_life_days: Optional[int] = None,
        history_days: Optional[int] = None,
        bin_minutes: Optional[int] = None,
        separate_weekday_weekend: Optional[bool] = None,
        recent_weeks: Optional[int] = None,
        holiday_dates: Optional[Iterable[str]] = None,
        special_workday_dates: Optional[Iterable[str]] = None,
        base: Optional["AnalyzerSettings"] = None,
    ) -> "AnalyzerSettings":
        """Build settings from optional overrides, falling back to ``base``."""
        base = base or cls()
        return cls(
            timezone_id=timezone_id if timezone_id is not None else base.timezone_id,
            created_at_mode=(
                created_at_mode if created_at_mode is not None else base.created_at_mode
            ),
            half_life_days=(
                half_life_days if half_life_days is not None else base.half_life_days
            ),
            history_days=history_days if history_days is not None else base.history_days,
            bin_minutes=bin_minutes if bin_minutes is not None else base.bin_minutes,
            separate_weekday_weekend=(
                separate_weekday_weekend
                if separate_weekday_weekend is not None
                else base.separate_weekday_weekend
            ),
            recent_weeks=recent_weeks if recent_weeks is not None else base.recent_weeks,
            holiday_dates=(
                tuple(holiday_dates) if holiday_dates is not None else base.holiday_dates
            ),
            special_workday_dates=(
                tuple(special_workday_dates)
                if special_workday_dates is not None
                else base.special_workday_dates
            ),
        )
