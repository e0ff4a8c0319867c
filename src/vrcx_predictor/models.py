"""Domain models for presence analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np

ONLINE = "Online"
OFFLINE = "Offline"


@dataclass(frozen=True, slots=True)
class CleanEvent:
    """A canonical presence toggle in the analysis timezone."""

    type: str
    time: datetime

    @property
    def is_online(self) -> bool:
        return self.type == ONLINE


@dataclass(frozen=True, slots=True)
class Session:
    """A contiguous online interval reconstructed from Online/Offline pairs."""

    start: datetime
    end: datetime
    duration_hours: float
    is_open: bool = False


@dataclass(frozen=True, slots=True)
class BestWindow:
    start: datetime
    end: datetime
    peak: float


@dataclass(frozen=True, slots=True)
class DataQuality:
    """Counts of records skipped while preparing the input."""

    unknown_type: int = 0
    malformed_timestamp: int = 0
    future_timestamp: int = 0
    outside_history: int = 0
    malformed_global: int = 0
    invalid_dates: int = 0

    @property
    def total_skipped(self) -> int:
        return (
            self.unknown_type
            + self.malformed_timestamp
            + self.future_timestamp
            + self.outside_history
            + self.malformed_global
            + self.invalid_dates
        )


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    """Read-only snapshot produced by one analysis run.

    ``probability_matrix`` and ``global_online_matrix`` have shape
    ``(7, bins_per_day)`` with Monday in row 0; both arrays are marked
    read-only.
    """

    sessions: tuple[Session, ...]
    is_online_now: bool
    last_event_type: str
    last_event_time: datetime
    session_count: int
    avg_duration_hours: float
    avg_start_interval_hours: Optional[float]
    recent_active_hours_text: str
    confidence_label: str
    prob_next_2_hours: float
    stability_label: str
    stability_std_hours: Optional[float]
    best_window: BestWindow
    probability_matrix: np.ndarray
    global_online_matrix: Optional[np.ndarray] = None
    data_quality: DataQuality = field(default_factory=DataQuality)

    @property
    def bins_per_day(self) -> int:
        return int(self.probability_matrix.shape[1])
