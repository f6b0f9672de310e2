from __future__ import annotations

from datetime import datetime, time, timedelta

from ..core.constants import MINUTES_PER_DAY


def time_to_minutes(t: time, *, is_end_time: bool = False) -> int:
    """
    Convert time to minutes since midnight.

    Args:
        t: Time object.
        is_end_time: If True, treat time(0, 0) as 1440 (end of day).

    Returns:
        Minutes since midnight (0-1440).
    """
    minutes = t.hour * 60 + t.minute
    if is_end_time and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def minutes_to_time_str(minutes: int) -> str:
    """
    Convert minutes since midnight to HH:MM.

    1440 is rendered as "24:00".
    """
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range: {minutes}")
    if minutes == MINUTES_PER_DAY:
        return "24:00"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def truncate_to_minute(dt: datetime) -> datetime:
    """Zero seconds and microseconds."""
    return dt.replace(second=0, microsecond=0)


def ceil_to_interval(dt: datetime, interval_minutes: int) -> datetime:
    """
    Round a (minute-truncated) datetime up to the next multiple of
    `interval_minutes` within its hour. Intervals must divide 60.
    """
    base = truncate_to_minute(dt)
    remainder = base.minute % interval_minutes
    if remainder == 0 and dt.second == 0 and dt.microsecond == 0:
        return base
    return base + timedelta(minutes=interval_minutes - remainder)


def intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open interval overlap: touching endpoints do not overlap."""
    return start1 < end2 and start2 < end1
