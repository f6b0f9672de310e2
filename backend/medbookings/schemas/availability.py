# backend/medbookings/schemas/availability.py
"""
Availability rule schemas for the MedBookings calendar.

An availability rule is the persisted template a provider or organization
defines: one window, optionally repeating on chosen weekdays until an
optional end date. Rules are read from storage, so invariant violations are
reported by `integrity_issues()` rather than rejected at construction. One
malformed row must never stop a whole calendar view from rendering.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional

from pydantic import Field, field_validator

from ..core.enums import SchedulingRule
from .base import Money, StandardizedModel, UTCDateTime
from .booking import Booking


class ServiceConfig(StandardizedModel):
    """A service offered inside an availability window."""

    service_id: str
    duration_minutes: int = Field(gt=0)
    price: Money


class AvailabilityRule(StandardizedModel):
    """
    Availability rule owned by a provider, or by an organization at a location.

    `start_time`/`end_time` are UTC. Their local time-of-day is the daily
    window; for recurring rules the local date of `start_time` is the first
    possible occurrence. `recurring_days` uses 0 = Sunday ... 6 = Saturday.
    `recurrence_end_date` is inclusive; None on a recurring rule means the
    rule recurs forever and is capped only by the query window.
    """

    id: str
    provider_id: Optional[str] = None
    organization_id: Optional[str] = None
    location_id: Optional[str] = None
    start_time: UTCDateTime
    end_time: UTCDateTime
    is_recurring: bool = False
    recurring_days: List[int] = Field(default_factory=list)
    recurrence_end_date: Optional[date] = None
    scheduling_rule: SchedulingRule = SchedulingRule.CONTINUOUS
    available_services: List[ServiceConfig] = Field(default_factory=list)
    bookings: List[Booking] = Field(default_factory=list)

    @field_validator("recurring_days", mode="before")
    @classmethod
    def _none_days_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("recurrence_end_date", mode="before")
    @classmethod
    def _end_date_from_timestamp(cls, v: Any) -> Any:
        # Stored as a UTC timestamp in some rows; keep its UTC calendar date.
        if isinstance(v, datetime):
            if v.tzinfo is not None:
                v = v.astimezone(timezone.utc)
            return v.date()
        return v

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def weekdays(self) -> frozenset[int]:
        """Valid weekday numbers only; out-of-range values never match a date."""
        return frozenset(d for d in self.recurring_days if 0 <= d <= 6)

    def integrity_issues(self) -> List[str]:
        """
        Describe data-integrity problems that make this rule unexpandable
        or suspicious. An empty list means the rule is well formed.
        """
        issues: List[str] = []
        if self.start_time >= self.end_time:
            issues.append("start_time must be before end_time")
        if self.is_recurring:
            if not self.recurring_days:
                issues.append("recurring rule has no recurring_days")
            invalid = sorted(d for d in self.recurring_days if not 0 <= d <= 6)
            if invalid:
                issues.append(f"recurring_days contains invalid weekdays: {invalid}")
            if (
                self.recurrence_end_date is not None
                and self.recurrence_end_date < self.start_time.date()
            ):
                issues.append("recurrence_end_date is before start_time")
        return issues

    @property
    def is_expandable(self) -> bool:
        """True when expansion can produce occurrences at all."""
        if self.start_time >= self.end_time:
            return False
        if self.is_recurring and not self.weekdays:
            return False
        return True
