# backend/medbookings/services/recurrence_patterns.py
"""
Recurrence patterns offered when a provider creates availability.

The form offers "does not repeat", "daily", "weekly on <start weekday>" and
a custom set of weekdays. Every pattern maps onto the single persisted
representation the expander understands: `is_recurring` plus
`recurring_days` plus an optional inclusive end date.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Any, List, Optional, Sequence, Tuple

from ..core.config import settings
from ..core.constants import DAYS_OF_WEEK, SHORT_DAYS_OF_WEEK
from ..core.enums import RecurrenceOption
from ..schemas.availability import AvailabilityRule
from ..schemas.recurrence import RecurrencePattern
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

ALL_WEEKDAYS = [0, 1, 2, 3, 4, 5, 6]


def day_name(weekday: int) -> str:
    if 0 <= weekday <= 6:
        return DAYS_OF_WEEK[weekday]
    return "Unknown"


def short_day_name(weekday: int) -> str:
    if 0 <= weekday <= 6:
        return SHORT_DAYS_OF_WEEK[weekday]
    return "U"


def format_date_for_display(day: date) -> str:
    """e.g. "Jan 31, 2024" """
    return f"{day:%b} {day.day}, {day.year}"


def recurrence_options(
    start_time: datetime, timezone_str: Optional[str] = None
) -> List[Tuple[RecurrenceOption, str]]:
    """Dropdown choices, labelled with the start date's local weekday."""
    weekday = TimezoneService.local_weekday(start_time, timezone_str)
    return [
        (RecurrenceOption.NONE, "Does not repeat"),
        (RecurrenceOption.DAILY, "Daily"),
        (RecurrenceOption.WEEKLY, f"Weekly on {day_name(weekday)}"),
        (RecurrenceOption.CUSTOM, "Custom..."),
    ]


def create_recurrence_pattern(
    option: RecurrenceOption,
    start_time: datetime,
    custom_days: Optional[Sequence[int]] = None,
    end_date: Optional[date] = None,
    timezone_str: Optional[str] = None,
) -> RecurrencePattern:
    """
    Build the pattern for a form selection.

    Repeating patterns without an explicit end date end
    `settings.default_recurrence_weeks` weeks after the local start date.
    """
    option = RecurrenceOption(option)
    if option is RecurrenceOption.NONE:
        return RecurrencePattern(option=option)

    start_day = TimezoneService.local_date(start_time, timezone_str)
    if end_date is None:
        end_date = start_day + timedelta(weeks=settings.default_recurrence_weeks)

    if option is RecurrenceOption.WEEKLY:
        return RecurrencePattern(
            option=option,
            end_date=end_date,
            weekly_day=TimezoneService.local_weekday(start_time, timezone_str),
        )
    if option is RecurrenceOption.CUSTOM:
        return RecurrencePattern(
            option=option, end_date=end_date, custom_days=list(custom_days or [])
        )
    return RecurrencePattern(option=option, end_date=end_date)


def is_valid_recurrence_pattern(pattern: RecurrencePattern) -> bool:
    if pattern.option in (RecurrenceOption.NONE, RecurrenceOption.DAILY):
        return True
    if pattern.option is RecurrenceOption.WEEKLY:
        return pattern.weekly_day is not None
    if pattern.option is RecurrenceOption.CUSTOM:
        return bool(pattern.custom_days)
    return False


def recurring_days_for_pattern(pattern: RecurrencePattern) -> List[int]:
    """Weekday numbers (0 = Sunday) the pattern repeats on."""
    if pattern.option is RecurrenceOption.DAILY:
        return list(ALL_WEEKDAYS)
    if pattern.option is RecurrenceOption.WEEKLY and pattern.weekly_day is not None:
        return [pattern.weekly_day]
    if pattern.option is RecurrenceOption.CUSTOM:
        return sorted(set(pattern.custom_days or []))
    return []


def describe_recurrence(pattern: RecurrencePattern) -> str:
    """Human-readable summary, e.g. "Weekly on M, W until Jan 31, 2024"."""
    end_text = f" until {format_date_for_display(pattern.end_date)}" if pattern.end_date else ""

    if pattern.option is RecurrenceOption.NONE:
        return "Does not repeat"
    if pattern.option is RecurrenceOption.DAILY:
        return f"Daily{end_text}"
    if pattern.option is RecurrenceOption.WEEKLY:
        if pattern.weekly_day is not None:
            return f"Weekly on {day_name(pattern.weekly_day)}{end_text}"
        return f"Weekly{end_text}"
    if pattern.custom_days:
        names = ", ".join(short_day_name(day) for day in sorted(pattern.custom_days))
        return f"Weekly on {names}{end_text}"
    return f"Custom weekly{end_text}"


def rule_from_pattern(
    rule_id: str,
    start_time: datetime,
    end_time: datetime,
    pattern: RecurrencePattern,
    **rule_fields: Any,
) -> AvailabilityRule:
    """Persistable availability rule for a pattern chosen in the form."""
    is_recurring = pattern.option is not RecurrenceOption.NONE
    return AvailabilityRule(
        id=rule_id,
        start_time=start_time,
        end_time=end_time,
        is_recurring=is_recurring,
        recurring_days=recurring_days_for_pattern(pattern) if is_recurring else [],
        recurrence_end_date=pattern.end_date if is_recurring else None,
        **rule_fields,
    )


def pattern_from_rule(rule: AvailabilityRule, timezone_str: Optional[str] = None) -> RecurrencePattern:
    """Recover the form selection for an existing rule (used by edit forms)."""
    if not rule.is_recurring:
        return RecurrencePattern(option=RecurrenceOption.NONE)

    days = sorted(rule.weekdays)
    if days == ALL_WEEKDAYS:
        return RecurrencePattern(option=RecurrenceOption.DAILY, end_date=rule.recurrence_end_date)
    start_weekday = TimezoneService.local_weekday(rule.start_time, timezone_str)
    if days == [start_weekday]:
        return RecurrencePattern(
            option=RecurrenceOption.WEEKLY,
            end_date=rule.recurrence_end_date,
            weekly_day=start_weekday,
        )
    return RecurrencePattern(
        option=RecurrenceOption.CUSTOM,
        end_date=rule.recurrence_end_date,
        custom_days=days or None,
    )
