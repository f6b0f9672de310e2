# backend/medbookings/schemas/calendar.py
"""
Calendar value types derived per query.

None of these are persisted. Occurrences are a pure function of
(rule, local date) and view ranges a pure function of (anchor, view).
"""

import datetime
from typing import Dict, List, Optional, Protocol

from pydantic import ConfigDict, Field, model_validator

from ..core.enums import ViewType
from .base import StandardizedModel, StrictModel, UTCDateTime
from .booking import Booking

DateType = datetime.date
DateTimeType = datetime.datetime


class TimedEvent(Protocol):
    """Anything the grid can place: occurrences, bookings, slots."""

    start_time: DateTimeType
    end_time: DateTimeType


class Occurrence(StandardizedModel):
    """
    One concrete, date-bound instance of an availability rule.

    `id` is `"{rule_id}-{local ISO date}"`, stable across repeated queries so
    it can key rendered elements.
    """

    id: str
    rule_id: str
    start_time: UTCDateTime
    end_time: UTCDateTime
    is_recurring: bool = False
    bookings: List[Booking] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ViewRange(StrictModel):
    """Half-open UTC query window `[from, to)` for one calendar view."""

    from_: UTCDateTime = Field(alias="from")
    to: UTCDateTime

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
    )

    @model_validator(mode="after")
    def _check_order(self) -> "ViewRange":
        if self.to <= self.from_:
            raise ValueError("ViewRange 'to' must be after 'from'")
        return self

    def contains(self, instant: DateTimeType) -> bool:
        return self.from_ <= instant < self.to

    @property
    def duration(self) -> datetime.timedelta:
        return self.to - self.from_


class GridPosition(StrictModel):
    """1-indexed row placement of an event on a time grid."""

    row_start: int = Field(ge=1)
    row_span: int = Field(ge=1)
    column: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def row_end(self) -> int:
        """Exclusive end row."""
        return self.row_start + self.row_span

    @property
    def grid_row(self) -> str:
        return f"{self.row_start} / span {self.row_span}"


class DayAvailabilitySummary(StrictModel):
    """Merged availability hours on one local day, with a per-status breakdown."""

    day: DateType
    total_hours: float = Field(ge=0)
    status_breakdown: Dict[str, float] = Field(default_factory=dict)


class CalendarView(StandardizedModel):
    """Everything the rendering layer needs for one navigation state."""

    view: ViewType
    anchor: UTCDateTime
    title: str
    view_range: ViewRange
    days: List[DateType]
    occurrences: List[Occurrence] = Field(default_factory=list)
    skipped_rule_ids: List[str] = Field(default_factory=list)

    def occurrences_on(self, day: DateType, timezone_str: Optional[str] = None) -> List[Occurrence]:
        from ..services.timezone_service import TimezoneService

        return [
            occ
            for occ in self.occurrences
            if TimezoneService.local_date(occ.start_time, timezone_str) == day
        ]
