# backend/medbookings/schemas/booking.py
"""
Booking value type as supplied by the booking layer.

The calendar core never mutates bookings; it only groups them by local day
and checks them against generated slots.
"""

from datetime import timedelta
from typing import Optional

from pydantic import Field

from ..core.enums import BookingStatus
from .base import Money, StandardizedModel, UTCDateTime


class Booking(StandardizedModel):
    """A client's booking against an availability occurrence or a calculated slot."""

    id: str
    start_time: UTCDateTime
    end_time: UTCDateTime
    status: BookingStatus = BookingStatus.BOOKED
    price: Optional[Money] = None
    client_id: Optional[str] = None
    slot_id: Optional[str] = Field(default=None, description="Calculated slot this booking holds")

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def is_active(self) -> bool:
        return BookingStatus(self.status).occupies_slot
