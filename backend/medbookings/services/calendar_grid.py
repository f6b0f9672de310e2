# backend/medbookings/services/calendar_grid.py
"""
Time-grid placement for calendar views.

Maps an event's local time-of-day interval onto 1-indexed grid rows.
Fine grids use 5-minute rows, day views 30-minute rows and coarse grids
hourly rows. Events are clamped to the visible window; positions are never
negative or past the last row.
"""

from __future__ import annotations

from datetime import date, datetime
import logging
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..core.config import settings
from ..core.constants import MINUTES_PER_DAY
from ..core.exceptions import ValidationException
from ..schemas.calendar import GridPosition, TimedEvent
from ..utils.time_utils import minutes_to_time_str, time_to_minutes
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=TimedEvent)


def _validate_grid(window_start_hour: int, window_end_hour: int, granularity_minutes: int) -> None:
    if not 0 <= window_start_hour < window_end_hour <= 24:
        raise ValidationException(
            f"Invalid visible window {window_start_hour}-{window_end_hour}",
            code="INVALID_GRID_WINDOW",
            details={"start_hour": window_start_hour, "end_hour": window_end_hour},
        )
    if granularity_minutes <= 0 or 60 % granularity_minutes != 0:
        raise ValidationException(
            f"Grid granularity must divide an hour, got {granularity_minutes}",
            code="INVALID_GRID_GRANULARITY",
            details={"granularity_minutes": granularity_minutes},
        )


def local_minute_span(
    start_time: datetime, end_time: datetime, timezone_str: Optional[str] = None
) -> Optional[Tuple[int, int]]:
    """
    Local minutes-since-midnight of an event on its start day.

    Events running past local midnight end at 1440. Returns None when the
    end precedes the start.
    """
    local_start = TimezoneService.to_local(start_time, timezone_str)
    local_end = TimezoneService.to_local(end_time, timezone_str)
    if local_end < local_start:
        return None
    start_minutes = time_to_minutes(local_start.time())
    if local_end.date() > local_start.date():
        end_minutes = MINUTES_PER_DAY
    else:
        end_minutes = time_to_minutes(local_end.time())
    return start_minutes, end_minutes


def total_rows(
    window_start_hour: int, window_end_hour: int, granularity_minutes: Optional[int] = None
) -> int:
    granularity = granularity_minutes or settings.grid_granularity_minutes
    _validate_grid(window_start_hour, window_end_hour, granularity)
    return (window_end_hour - window_start_hour) * 60 // granularity


def row_labels(
    window_start_hour: int, window_end_hour: int, granularity_minutes: Optional[int] = None
) -> List[str]:
    """HH:MM label for the start of every grid row, e.g. ["06:00", "06:30", ...]."""
    granularity = granularity_minutes or settings.grid_granularity_minutes
    rows = total_rows(window_start_hour, window_end_hour, granularity)
    first = window_start_hour * 60
    return [minutes_to_time_str(first + row * granularity) for row in range(rows)]


def grid_position(
    start_time: datetime,
    end_time: datetime,
    window_start_hour: int,
    window_end_hour: int,
    granularity_minutes: Optional[int] = None,
    timezone_str: Optional[str] = None,
    *,
    day_index: Optional[int] = None,
) -> Optional[GridPosition]:
    """
    Place an event on a time grid covering `[window_start_hour, window_end_hour)`.

    Args:
        start_time: Event start (UTC).
        end_time: Event end (UTC).
        window_start_hour: First visible local hour.
        window_end_hour: Exclusive last visible local hour (24 = midnight).
        granularity_minutes: Row size; defaults to settings.grid_granularity_minutes.
        timezone_str: Calendar timezone.
        day_index: 0-based column for multi-day views.

    Returns:
        GridPosition with 1-indexed row_start and row_span >= 1, or None when
        the event lies entirely outside the visible window.

    Raises:
        ValidationException: On an empty/inverted window or a granularity
            that does not divide an hour.
    """
    granularity = granularity_minutes or settings.grid_granularity_minutes
    _validate_grid(window_start_hour, window_end_hour, granularity)

    span = local_minute_span(start_time, end_time, timezone_str)
    if span is None:
        return None
    start_minutes, end_minutes = span

    visible_start = window_start_hour * 60
    visible_end = window_end_hour * 60
    if start_minutes >= visible_end or end_minutes < visible_start:
        return None
    if end_minutes == visible_start and end_minutes > start_minutes:
        return None

    clamped_start = max(start_minutes, visible_start)
    clamped_end = min(end_minutes, visible_end)

    row_start = (clamped_start - visible_start) // granularity + 1
    # Partial rows at the end still occupy the row
    row_end = -(-(clamped_end - visible_start) // granularity) + 1
    row_span = max(1, row_end - row_start)

    return GridPosition(
        row_start=row_start,
        row_span=row_span,
        column=grid_column(day_index) if day_index is not None else None,
    )


def grid_column(day_index: int) -> int:
    """1-indexed grid column for a 0-based day index."""
    if day_index < 0:
        raise ValidationException(f"day_index must be non-negative, got {day_index}")
    return day_index + 1


def day_index_for(
    start_time: datetime, days: Sequence[date], timezone_str: Optional[str] = None
) -> Optional[int]:
    """Column index of the local day an event starts on, or None if not shown."""
    local_day = TimezoneService.local_date(start_time, timezone_str)
    try:
        return list(days).index(local_day)
    except ValueError:
        return None


def display_hour_range(
    events: Iterable[TimedEvent],
    timezone_str: Optional[str] = None,
    default_start_hour: Optional[int] = None,
    default_end_hour: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Visible hours for a day view: the default window, widened to fit events.

    An event ending part-way through an hour extends the range to the end of
    that hour.
    """
    earliest = settings.display_start_hour if default_start_hour is None else default_start_hour
    latest = settings.display_end_hour if default_end_hour is None else default_end_hour

    for event in events:
        span = local_minute_span(event.start_time, event.end_time, timezone_str)
        if span is None:
            continue
        start_minutes, end_minutes = span
        earliest = min(earliest, start_minutes // 60)
        latest = max(latest, -(-end_minutes // 60))

    return earliest, min(latest, 24)


def events_in_time_range(
    events: Iterable[E],
    start_hour: int,
    end_hour: int,
    timezone_str: Optional[str] = None,
) -> List[E]:
    """Events whose local time-of-day interval overlaps `[start_hour, end_hour)`."""
    visible_start = start_hour * 60
    visible_end = end_hour * 60
    result: List[E] = []
    for event in events:
        span = local_minute_span(event.start_time, event.end_time, timezone_str)
        if span is None:
            continue
        start_minutes, end_minutes = span
        if start_minutes < visible_end and end_minutes > visible_start:
            result.append(event)
    return result
