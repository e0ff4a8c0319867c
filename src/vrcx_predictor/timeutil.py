"""Timezone resolution, timestamp parsing and time-bin helpers."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser
from dateutil import tz as dateutil_tz

from .errors import MalformedTimestamp

logger = logging.getLogger(__name__)

# Windows time zone names seen in configs written on Windows hosts.
_WINDOWS_TO_IANA: dict[str, str] = {
    "taipei standard time": "Asia/Taipei",
    "utc": "UTC",
    "china standard time": "Asia/Shanghai",
    "tokyo standard time": "Asia/Tokyo",
    "korea standard time": "Asia/Seoul",
    "singapore standard time": "Asia/Singapore",
    "pacific standard time": "America/Los_Angeles",
    "mountain standard time": "America/Denver",
    "central standard time": "America/Chicago",
    "eastern standard time": "America/New_York",
    "gmt standard time": "Europe/London",
    "w. europe standard time": "Europe/Berlin",
    "romance standard time": "Europe/Paris",
    "aus eastern standard time": "Australia/Sydney",
}


def resolve_timezone(tz_id: Optional[str]) -> tzinfo:
    """Return a tzinfo for ``tz_id``; falls back to the host zone, never raises."""
    key = (tz_id or "").strip()
    if not key:
        return dateutil_tz.tzlocal()

    zone = _load_zone(key)
    if zone is not None:
        return zone

    mapped = _WINDOWS_TO_IANA.get(key.lower())
    if mapped:
        zone = _load_zone(mapped)
        if zone is not None:
            return zone

    logger.warning("Unknown time zone %r; using the host local zone.", key)
    return dateutil_tz.tzlocal()


def _load_zone(key: str) -> Optional[tzinfo]:
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def normalize_mode(mode: Optional[str]) -> str:
    return "local" if (mode or "").strip().lower() == "local" else "utc"


# Two different fill-in dates; a string that names a full date parses the
# same against both.
_DATE_PROBES = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_created_at(value: Optional[str], tz: tzinfo, mode: Optional[str] = "utc") -> datetime:
    """Parse a raw ``created_at`` string into an aware datetime in ``tz``.

    In ``utc`` mode the string is an absolute instant (UTC unless it carries
    an offset). In ``local`` mode it is a wall-clock time in ``tz``; any
    offset in the string is ignored.
    """
    if value is None or not str(value).strip():
        raise MalformedTimestamp("empty timestamp")
    text = str(value).strip()
    try:
        parsed = date_parser.parse(text, default=_DATE_PROBES[0])
        check = date_parser.parse(text, default=_DATE_PROBES[1])
    except (ValueError, OverflowError) as exc:
        raise MalformedTimestamp(f"unparsable timestamp: {text!r}") from exc
    if parsed.date() != check.date():
        raise MalformedTimestamp(f"timestamp has no complete date: {text!r}")

    if normalize_mode(mode) == "local":
        return parsed.replace(tzinfo=tz)

    if parsed.tzinfo is None or parsed.utcoffset() is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(tz)


def parse_date(value: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` date string."""
    return date.fromisoformat(value.strip())


def elapsed_hours(start: datetime, end: datetime) -> float:
    """Real elapsed hours between two aware datetimes, DST-safe."""
    delta = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
    return delta.total_seconds() / 3600.0


def bin_index(dt: datetime, bin_minutes: int) -> int:
    return (dt.hour * 60 + dt.minute) // bin_minutes


def floor_to_bin(dt: datetime, bin_minutes: int, tz: tzinfo) -> datetime:
    """Floor ``dt`` to the start of its time-of-day bin in ``tz``."""
    local = dt.astimezone(tz)
    minute_of_day = local.hour * 60 + local.minute
    floored = minute_of_day - minute_of_day % bin_minutes
    return local.replace(
        hour=floored // 60, minute=floored % 60, second=0, microsecond=0
    )


def step_bins(dt: datetime, count: int, bin_minutes: int, tz: tzinfo) -> datetime:
    """Advance ``dt`` by ``count`` bins of real time and express it in ``tz``."""
    return shift_instant(dt, timedelta(minutes=bin_minutes * count)).astimezone(tz)


def shift_instant(dt: datetime, delta: timedelta) -> datetime:
    """Move ``dt`` by ``delta`` of real elapsed time; the result is in UTC."""
    return dt.astimezone(timezone.utc) + delta


def week_start_monday(dt: datetime, tz: tzinfo) -> date:
    """Calendar date of the Monday starting the local week containing ``dt``."""
    local = dt.astimezone(tz)
    return local.date() - timedelta(days=local.weekday())


def local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def local_now(tz: tzinfo, now: Optional[datetime] = None) -> datetime:
    """Current time in ``tz``; a naive ``now`` is read as wall time in ``tz``."""
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None or now.utcoffset() is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)
