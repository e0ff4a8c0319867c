"""Canonicalization and de-duplication of raw presence events."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Optional

from .errors import MalformedTimestamp
from .models import OFFLINE, ONLINE, CleanEvent
from .timeutil import parse_created_at, shift_instant

logger = logging.getLogger(__name__)

FUTURE_SKEW = timedelta(minutes=5)

_CANONICAL_TYPES = {"online": ONLINE, "offline": OFFLINE}


@dataclass(slots=True)
class CleaningReport:
    """Cleaned events plus counts of what was dropped and why."""

    events: list[CleanEvent] = field(default_factory=list)
    unknown_type: int = 0
    malformed_timestamp: int = 0
    future_timestamp: int = 0

    @property
    def skipped(self) -> int:
        return self.unknown_type + self.malformed_timestamp + self.future_timestamp


def normalize_event_type(value: Optional[str]) -> Optional[str]:
    if not value or not str(value).strip():
        return None
    return _CANONICAL_TYPES.get(str(value).strip().lower())


def clean_raw_events(
    raw_events: Iterable[tuple[str, str]],
    tz: tzinfo,
    created_at_mode: str,
    now: datetime,
) -> CleaningReport:
    """Turn raw ``(type, created_at)`` rows into an ordered, de-duplicated list.

    Rows with an unknown type or an unparsable timestamp are skipped, as are
    rows more than five minutes in the future. Consecutive rows of the same
    type collapse into one entry carrying the latest time of the run.
    """
    report = CleaningReport()
    latest_allowed = shift_instant(now, FUTURE_SKEW)
    parsed: list[tuple[float, int, CleanEvent]] = []

    for index, (raw_type, created_at) in enumerate(raw_events):
        event_type = normalize_event_type(raw_type)
        if event_type is None:
            report.unknown_type += 1
            continue
        try:
            when = parse_created_at(created_at, tz, created_at_mode)
        except MalformedTimestamp:
            report.malformed_timestamp += 1
            continue
        if when > latest_allowed:
            report.future_timestamp += 1
            continue
        parsed.append((when.timestamp(), index, CleanEvent(event_type, when)))

    parsed.sort(key=lambda item: (item[0], item[1]))

    cleaned = report.events
    for _, _, event in parsed:
        if cleaned and cleaned[-1].type == event.type:
            cleaned[-1] = event
            continue
        cleaned.append(event)

    if report.skipped:
        logger.debug(
            "Dropped %d raw events (unknown type=%d, malformed=%d, future=%d).",
            report.skipped,
            report.unknown_type,
            report.malformed_timestamp,
            report.future_timestamp,
        )
    return report
