# backend/medbookings/schemas/__init__.py
"""
Pydantic schemas for the MedBookings calendar core.

Persisted inputs (rules, bookings) and per-query derived values
(occurrences, view ranges, grid positions, slots).
"""

from .availability import AvailabilityRule, ServiceConfig
from .base import Money, StandardizedModel, StrictModel, UTCDateTime, ensure_utc
from .booking import Booking
from .calendar import (
    CalendarView,
    DayAvailabilitySummary,
    GridPosition,
    Occurrence,
    TimedEvent,
    ViewRange,
)
from .recurrence import OverlapPeriod, OverlapResult, RecurrencePattern
from .slot import (
    BusyInterval,
    ScheduleEfficiency,
    SlotGenerationResult,
    SlotRecord,
    TimeSlot,
    TimeSlotGenerationResult,
)

__all__ = [
    "AvailabilityRule",
    "Booking",
    "BusyInterval",
    "CalendarView",
    "DayAvailabilitySummary",
    "GridPosition",
    "Money",
    "Occurrence",
    "OverlapPeriod",
    "OverlapResult",
    "RecurrencePattern",
    "ScheduleEfficiency",
    "ServiceConfig",
    "SlotGenerationResult",
    "SlotRecord",
    "StandardizedModel",
    "StrictModel",
    "TimeSlot",
    "TimeSlotGenerationResult",
    "TimedEvent",
    "UTCDateTime",
    "ViewRange",
    "ensure_utc",
]
