"""Time bucket utilities for FeedVol."""

import re
from datetime import datetime, timezone, timedelta
from typing import Optional, Union

from .enums import Granularity

GranularityLike = Union[Granularity, str]

_PERIOD_DELTAS = {
    Granularity.SECOND: timedelta(seconds=1),
    Granularity.MINUTE: timedelta(minutes=1),
    Granularity.HOUR: timedelta(hours=1),
    Granularity.DAY: timedelta(days=1),
}


def get_current_utc() -> datetime:
    """Get current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def parse_granularity(value: Optional[GranularityLike]) -> Optional[Granularity]:
    """
    Map a granularity name to the enum.

    Args:
        value: Granularity member or name such as "minute" (case-insensitive)

    Returns:
        Granularity, or None if the value is not recognised
    """
    if isinstance(value, Granularity):
        return value
    if value is None:
        return None
    try:
        return Granularity(value.strip().lower())
    except ValueError:
        return None


def _resolve(granularity: Optional[GranularityLike]) -> Granularity:
    """Resolve to a Granularity, falling back to HOUR."""
    return parse_granularity(granularity) or Granularity.HOUR


def round_to_period(ts: datetime, granularity: Optional[GranularityLike]) -> datetime:
    """
    Truncate a timestamp to the start of its containing period.

    Unrecognised granularities round to the hour.

    Args:
        ts: Timestamp to round
        granularity: second, minute, hour or day

    Returns:
        Bucket start timestamp (tzinfo preserved)
    """
    g = _resolve(granularity)
    if g is Granularity.SECOND:
        return ts.replace(microsecond=0)
    if g is Granularity.MINUTE:
        return ts.replace(second=0, microsecond=0)
    if g is Granularity.DAY:
        return ts.replace(hour=0, minute=0, second=0, microsecond=0)
    return ts.replace(minute=0, second=0, microsecond=0)


def period_delta(granularity: Optional[GranularityLike]) -> timedelta:
    """Width of one bucket (unrecognised granularities are one hour)."""
    return _PERIOD_DELTAS[_resolve(granularity)]


def ensure_utc(ts: datetime) -> datetime:
    """Attach UTC to naive timestamps, convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def from_epoch_ms(ts_ms: int) -> datetime:
    """Convert epoch milliseconds to a UTC datetime."""
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def from_epoch_s(ts_s: float) -> datetime:
    """Convert epoch seconds to a UTC datetime."""
    return datetime.fromtimestamp(ts_s, tz=timezone.utc)


_TS_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(?:Z|UTC|\+00:00)?$"
)


def parse_utc_timestamp(text: str) -> Optional[datetime]:
    """
    Parse the UTC timestamp strings returned by the HTTP feeds.

    Accepts "2024-10-01 13:00:00.000 UTC", "2024-10-01T13:00:00.0000000Z"
    and similar; fractional digits beyond microseconds are truncated.

    Returns:
        UTC datetime, or None if the text is not a recognised timestamp
    """
    match = _TS_RE.match(text.strip())
    if match is None:
        return None
    date_part, time_part, fraction = match.groups()
    try:
        ts = datetime.strptime(f"{date_part} {time_part}", "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    return ts.replace(microsecond=micros, tzinfo=timezone.utc)
