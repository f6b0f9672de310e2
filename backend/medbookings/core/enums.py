# backend/medbookings/core/enums.py
"""
Core enums for the MedBookings calendar.

Values match the persisted representation so rows read by the query layer
can be passed straight into the calendar core.
"""

from datetime import date
from enum import Enum, IntEnum


class Weekday(IntEnum):
    """
    Day-of-week numbering used by availability rules.

    Sunday is 0, matching the values stored in `recurring_days`.
    Python's `date.weekday()` uses Monday = 0, so always convert through
    `Weekday.of()`.
    """

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return cls(day.isoweekday() % 7)


class SchedulingRule(str, Enum):
    """How bookable slots are cut from an availability window."""

    CONTINUOUS = "CONTINUOUS"
    ON_THE_HOUR = "ON_THE_HOUR"
    ON_THE_HALF_HOUR = "ON_THE_HALF_HOUR"


class BookingStatus(str, Enum):
    BOOKED = "BOOKED"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

    @property
    def occupies_slot(self) -> bool:
        """Cancelled bookings free their slot; every other status holds it."""
        return self is not BookingStatus.CANCELLED


class SlotStatus(str, Enum):
    """Status of a materialized calculated slot."""

    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"


class ViewType(str, Enum):
    """Calendar view types and the navigation unit each one steps by."""

    DAY = "day"
    THREE_DAY = "three_day"
    WEEK = "week"
    MONTH = "month"
    SCHEDULE = "schedule"


class RecurrenceOption(str, Enum):
    """Recurrence choices offered when creating availability."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"
