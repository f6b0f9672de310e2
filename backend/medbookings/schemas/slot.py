# backend/medbookings/schemas/slot.py
"""
Slot schemas.

`TimeSlot` is a bookable sub-interval cut from a window by a scheduling
rule. `SlotRecord` is the materialized calculated-slot row handed to the
persistence layer; the calendar core only builds and classifies them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import SlotStatus
from .base import Money, StandardizedModel, StrictModel, UTCDateTime


class TimeSlot(StrictModel):
    """Bookable sub-interval of an availability window."""

    start_time: UTCDateTime
    end_time: UTCDateTime
    duration_minutes: int = Field(gt=0)


class TimeSlotGenerationResult(StrictModel):
    slots: List[TimeSlot] = Field(default_factory=list)
    total_slots: int = 0
    errors: List[str] = Field(default_factory=list)


class ScheduleEfficiency(StrictModel):
    max_possible_slots: int
    actual_slots: int
    utilization_rate: float = Field(ge=0)
    average_gap_minutes: float = Field(ge=0)


class SlotRecord(StandardizedModel):
    """Calculated slot ready to be stored by the persistence layer."""

    rule_id: str
    occurrence_id: str
    service_id: str
    provider_id: Optional[str] = None
    organization_id: Optional[str] = None
    location_id: Optional[str] = None
    start_time: UTCDateTime
    end_time: UTCDateTime
    duration_minutes: int = Field(gt=0)
    price: Money
    status: SlotStatus = SlotStatus.AVAILABLE
    booking_id: Optional[str] = None

    @property
    def key(self) -> str:
        """Natural key: one slot per (occurrence, service, start)."""
        return f"{self.occurrence_id}:{self.service_id}:{self.start_time.isoformat()}"


class SlotGenerationResult(StrictModel):
    slot_records: List[SlotRecord] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    total_slots: int = 0
    generated_at: Optional[datetime] = None


class BusyInterval(StrictModel):
    """An externally supplied interval during which slots must be blocked."""

    start_time: UTCDateTime
    end_time: UTCDateTime
    reason: Optional[str] = None
