"""Reconstruct online sessions from a cleaned event stream."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from .models import OFFLINE, ONLINE, CleanEvent, Session
from .timeutil import elapsed_hours

MIN_SESSION_HOURS = 0.02
MAX_SESSION_HOURS = 24.0


def is_plausible_duration(hours: float) -> bool:
    return MIN_SESSION_HOURS < hours < MAX_SESSION_HOURS


def build_sessions(events: Sequence[CleanEvent], now: datetime) -> list[Session]:
    """Pair each Online with the next Offline.

    Pairs shorter than ~1 minute or longer than a day are discarded. A
    trailing Online with no Offline becomes an open session ending at
    ``now`` when it passes the same bound.
    """
    sessions: list[Session] = []
    pending: Optional[datetime] = None

    for event in events:
        if event.type == ONLINE:
            pending = event.time
            continue
        if event.type != OFFLINE or pending is None:
            continue

        hours = elapsed_hours(pending, event.time)
        if hours >= 0 and is_plausible_duration(hours):
            sessions.append(Session(pending, event.time, hours, is_open=False))
        pending = None

    if pending is not None:
        hours = elapsed_hours(pending, now)
        if is_plausible_duration(hours):
            sessions.append(Session(pending, now, hours, is_open=True))

    return sessions
