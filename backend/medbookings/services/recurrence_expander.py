# backend/medbookings/services/recurrence_expander.py
"""
Recurrence expansion for availability rules.

Turns an availability rule plus a half-open UTC query window into the
concrete occurrences that fall inside it. Everything here is a pure
function: no I/O, no shared state, identical output for identical input.

Weekday matching and day enumeration run in local time (see
TimezoneService); occurrence timestamps are converted back to UTC.

Cross-layer contract with the query layer:
    Rules must be fetched with the same window that is later passed to
    `expand`, using the predicate in `rule_may_overlap`. A rule whose base
    row falls outside the fetch predicate silently produces nothing.

Malformed rules (recurring without weekdays, start >= end) expand to an
empty list. Reporting them is the caller's job. Windows longer than the
configured bound raise ExpansionWindowTooLargeException so a missing
recurrence end date can never turn into an unbounded enumeration.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Iterable, List, Optional

from ..core.config import settings
from ..core.enums import Weekday
from ..core.exceptions import ExpansionWindowTooLargeException
from ..schemas.availability import AvailabilityRule
from ..schemas.base import ensure_utc
from ..schemas.booking import Booking
from ..schemas.calendar import Occurrence
from ..utils.time_utils import truncate_to_minute
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


def occurrence_id(rule_id: str, local_day: date) -> str:
    return f"{rule_id}-{local_day.isoformat()}"


def check_window(
    window_from: datetime, window_to: datetime, max_window_days: Optional[int] = None
) -> None:
    """Fail fast on windows larger than the configured expansion bound."""
    limit = max_window_days or settings.max_expansion_days
    span_days = (window_to - window_from).total_seconds() / 86400
    if span_days > limit:
        raise ExpansionWindowTooLargeException(span_days, limit)


def bookings_on_local_day(
    bookings: Iterable[Booking], local_day: date, timezone_str: Optional[str] = None
) -> List[Booking]:
    """Bookings whose start falls on `local_day` in the calendar timezone."""
    return [
        booking
        for booking in bookings
        if TimezoneService.local_date(booking.start_time, timezone_str) == local_day
    ]


def recurrence_end_bound(
    rule: AvailabilityRule, timezone_str: Optional[str] = None
) -> Optional[datetime]:
    """Exclusive UTC bound after the last permitted local day, or None."""
    if rule.recurrence_end_date is None:
        return None
    return TimezoneService.local_midnight_utc(
        rule.recurrence_end_date + timedelta(days=1), timezone_str
    )


def _expand_single(
    rule: AvailabilityRule,
    window_from: datetime,
    window_to: datetime,
    timezone_str: Optional[str],
) -> List[Occurrence]:
    if not window_from <= rule.start_time < window_to:
        return []
    local_day = TimezoneService.local_date(rule.start_time, timezone_str)
    return [
        Occurrence(
            id=occurrence_id(rule.id, local_day),
            rule_id=rule.id,
            start_time=rule.start_time,
            end_time=rule.end_time,
            is_recurring=False,
            bookings=bookings_on_local_day(rule.bookings, local_day, timezone_str),
        )
    ]


def _expand_recurring(
    rule: AvailabilityRule,
    window_from: datetime,
    window_to: datetime,
    timezone_str: Optional[str],
) -> List[Occurrence]:
    weekdays = rule.weekdays

    effective_end = window_to
    end_bound = recurrence_end_bound(rule, timezone_str)
    if end_bound is not None:
        effective_end = min(effective_end, end_bound)
    effective_start = max(window_from, rule.start_time)
    if effective_start >= effective_end:
        return []

    local_start = TimezoneService.to_local(rule.start_time, timezone_str)
    local_end = TimezoneService.to_local(rule.end_time, timezone_str)
    start_of_window = time(local_start.hour, local_start.minute)
    end_of_window = time(local_end.hour, local_end.minute)
    # Windows that cross local midnight end on a later local date
    day_offset = timedelta(days=(local_end.date() - local_start.date()).days)

    current = TimezoneService.local_date(effective_start, timezone_str)
    last_day = TimezoneService.local_date(effective_end, timezone_str)

    occurrences: List[Occurrence] = []
    while current <= last_day:
        if Weekday.of(current) in weekdays and (
            rule.recurrence_end_date is None or current <= rule.recurrence_end_date
        ):
            start_utc = TimezoneService.local_to_utc(
                current, start_of_window, timezone_str, strict=False
            )
            end_utc = TimezoneService.local_to_utc(
                current + day_offset, end_of_window, timezone_str, strict=False
            )
            if window_from <= start_utc < window_to and start_utc < end_utc:
                occurrences.append(
                    Occurrence(
                        id=occurrence_id(rule.id, current),
                        rule_id=rule.id,
                        start_time=start_utc,
                        end_time=end_utc,
                        is_recurring=True,
                        bookings=bookings_on_local_day(rule.bookings, current, timezone_str),
                    )
                )
        current += timedelta(days=1)

    return occurrences


def expand(
    rule: AvailabilityRule,
    window_from: datetime,
    window_to: datetime,
    timezone_str: Optional[str] = None,
    *,
    max_window_days: Optional[int] = None,
) -> List[Occurrence]:
    """
    Expand one availability rule into the occurrences inside `[window_from, window_to)`.

    Non-recurring rules pass through unchanged when their start lies in the
    window. Recurring rules produce one occurrence per local date in the
    overlap of the window and the rule's own validity (its start date through
    `recurrence_end_date`, or forever when unset) whose weekday is in
    `recurring_days`. Each occurrence reuses the rule's local time-of-day
    with seconds zeroed.

    Returns:
        Occurrences sorted by start_time, each carrying the rule's bookings
        on the same local day.

    Raises:
        ExpansionWindowTooLargeException: If the window exceeds
            `max_window_days` (default: settings.max_expansion_days).
    """
    window_from = ensure_utc(window_from)
    window_to = ensure_utc(window_to)
    if window_to <= window_from:
        return []
    check_window(window_from, window_to, max_window_days)

    if not rule.is_expandable:
        return []

    if rule.is_recurring:
        occurrences = _expand_recurring(rule, window_from, window_to, timezone_str)
    else:
        occurrences = _expand_single(rule, window_from, window_to, timezone_str)

    occurrences.sort(key=lambda occ: (occ.start_time, occ.id))
    logger.debug(
        f"Expanded rule {rule.id} into {len(occurrences)} occurrences "
        f"for {window_from.isoformat()} - {window_to.isoformat()}"
    )
    return occurrences


def expand_many(
    rules: Iterable[AvailabilityRule],
    window_from: datetime,
    window_to: datetime,
    timezone_str: Optional[str] = None,
    *,
    max_window_days: Optional[int] = None,
) -> List[Occurrence]:
    """Expand several rules into one list sorted by start_time."""
    window_from = ensure_utc(window_from)
    window_to = ensure_utc(window_to)
    if window_to <= window_from:
        return []
    check_window(window_from, window_to, max_window_days)

    merged: List[Occurrence] = []
    for rule in rules:
        merged.extend(
            expand(rule, window_from, window_to, timezone_str, max_window_days=max_window_days)
        )
    merged.sort(key=lambda occ: (occ.start_time, occ.id))
    return merged


def rule_may_overlap(
    rule: AvailabilityRule,
    window_from: datetime,
    window_to: datetime,
    timezone_str: Optional[str] = None,
) -> bool:
    """
    Fetch predicate the query layer must apply for `[window_from, window_to)`.

    Any rule for which `expand` returns occurrences satisfies this predicate:
    - one-time rules: start_time inside the window
    - recurring rules: first occurrence (minute-truncated start) before
      `window_to`, and the recurrence end (if any) after `window_from`
    """
    window_from = ensure_utc(window_from)
    window_to = ensure_utc(window_to)
    if not rule.is_recurring:
        return window_from <= rule.start_time < window_to
    if truncate_to_minute(rule.start_time) >= window_to:
        return False
    end_bound = recurrence_end_bound(rule, timezone_str)
    return end_bound is None or end_bound > window_from
