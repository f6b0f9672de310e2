# backend/medbookings/schemas/recurrence.py
"""Recurrence pattern and overlap-check schemas."""

import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.enums import RecurrenceOption
from .base import StrictModel, UTCDateTime


class RecurrencePattern(StrictModel):
    """
    Recurrence chosen in the availability form.

    `weekly_day` is set for WEEKLY, `custom_days` for CUSTOM; weekday
    numbers use 0 = Sunday.
    """

    option: RecurrenceOption = RecurrenceOption.NONE
    end_date: Optional[datetime.date] = None
    weekly_day: Optional[int] = Field(default=None, ge=0, le=6)
    custom_days: Optional[List[int]] = None

    @field_validator("custom_days")
    @classmethod
    def validate_custom_days(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        if v is None:
            return v
        if any(not 0 <= day <= 6 for day in v):
            raise ValueError("custom_days must contain weekday numbers 0-6")
        return sorted(set(v))


class OverlapPeriod(StrictModel):
    start_time: UTCDateTime
    end_time: UTCDateTime


class OverlapResult(StrictModel):
    has_overlap: bool = False
    overlapping_rule_id: Optional[str] = None
    overlapping_period: Optional[OverlapPeriod] = None
