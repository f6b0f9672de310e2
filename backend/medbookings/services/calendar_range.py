# backend/medbookings/services/calendar_range.py
"""
View range and navigation math for calendar views.

Given an anchor instant and a view type, compute the half-open UTC window
the query layer should fetch, and step the anchor forward or back by one
view unit. Boundaries are computed on local dates and converted to UTC,
so a week always starts at local Monday 00:00 regardless of the UTC offset.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
import logging
from typing import List, Optional, Tuple, Union

from ..core.constants import DAYS_PER_WEEK
from ..core.enums import ViewType
from ..core.exceptions import UnsupportedViewException
from ..schemas.base import ensure_utc
from ..schemas.calendar import ViewRange
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

THREE_DAY_SPAN = 3

ViewLike = Union[ViewType, str]


def coerce_view(view: ViewLike) -> ViewType:
    """Accept enum members or their string values ("day", "week", ...)."""
    if isinstance(view, ViewType):
        return view
    try:
        return ViewType(str(view).strip().lower().replace("-", "_"))
    except ValueError:
        raise UnsupportedViewException(view)


def add_months(day: date, months: int) -> date:
    """Shift by calendar months, clamping the day (Jan 31 + 1 -> Feb 28/29)."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def start_of_week(day: date) -> date:
    """Monday on or before `day`."""
    return day - timedelta(days=day.weekday())


def local_bounds(anchor: datetime, view: ViewLike, timezone_str: Optional[str] = None) -> Tuple[date, date]:
    """First local date shown and the exclusive local end date."""
    view = coerce_view(view)
    anchor_day = TimezoneService.local_date(ensure_utc(anchor), timezone_str)

    if view is ViewType.DAY:
        return anchor_day, anchor_day + timedelta(days=1)
    if view is ViewType.THREE_DAY:
        return anchor_day, anchor_day + timedelta(days=THREE_DAY_SPAN)
    if view is ViewType.WEEK:
        monday = start_of_week(anchor_day)
        return monday, monday + timedelta(days=DAYS_PER_WEEK)
    # MONTH and SCHEDULE both cover the anchor's calendar month
    first = anchor_day.replace(day=1)
    return first, add_months(first, 1)


def get_range(anchor: datetime, view: ViewLike, timezone_str: Optional[str] = None) -> ViewRange:
    """
    Compute the UTC query window `[from, to)` for a view.

    - day: local midnight of the anchor day to the next local midnight
    - three_day: three local days starting at the anchor day
    - week: Monday 00:00 to the following Monday 00:00 (local)
    - month / schedule: first of month 00:00 to first of next month 00:00 (local)
    """
    first, end = local_bounds(anchor, view, timezone_str)
    return ViewRange(
        from_=TimezoneService.local_midnight_utc(first, timezone_str),
        to=TimezoneService.local_midnight_utc(end, timezone_str),
    )


def step_anchor(
    anchor: datetime, view: ViewLike, steps: int = 1, timezone_str: Optional[str] = None
) -> datetime:
    """
    Move the anchor by `steps` view units (negative steps go back).

    The local wall-clock time of the anchor is preserved; month steps clamp
    the day of month to the target month's length.
    """
    view = coerce_view(view)
    local = TimezoneService.to_local(ensure_utc(anchor), timezone_str)
    day = local.date()

    if view is ViewType.DAY:
        target = day + timedelta(days=steps)
    elif view is ViewType.THREE_DAY:
        target = day + timedelta(days=THREE_DAY_SPAN * steps)
    elif view is ViewType.WEEK:
        target = day + timedelta(days=DAYS_PER_WEEK * steps)
    else:
        target = add_months(day, steps)

    return TimezoneService.local_to_utc(target, local.time(), timezone_str, strict=False)


def next_anchor(anchor: datetime, view: ViewLike, timezone_str: Optional[str] = None) -> datetime:
    return step_anchor(anchor, view, 1, timezone_str)


def previous_anchor(anchor: datetime, view: ViewLike, timezone_str: Optional[str] = None) -> datetime:
    return step_anchor(anchor, view, -1, timezone_str)


def days_in_range(view_range: ViewRange, timezone_str: Optional[str] = None) -> List[date]:
    """Local dates covered by a view range, in order."""
    first = TimezoneService.local_date(view_range.from_, timezone_str)
    last = TimezoneService.local_date(view_range.to - timedelta(microseconds=1), timezone_str)
    days: List[date] = []
    current = first
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def _long_date(day: date) -> str:
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def view_title(anchor: datetime, view: ViewLike, timezone_str: Optional[str] = None) -> str:
    """
    Header text for a view.

    day / three_day: "Thursday, March 14, 2024"
    week:            "Mar 11 - Mar 17, 2024"
    month / schedule: "March 2024"
    """
    view = coerce_view(view)
    first, end = local_bounds(anchor, view, timezone_str)

    if view in (ViewType.DAY, ViewType.THREE_DAY):
        return _long_date(first)
    if view is ViewType.WEEK:
        last = end - timedelta(days=1)
        return f"{first:%b} {first.day} - {last:%b} {last.day}, {last.year}"
    return f"{first:%B} {first.year}"
