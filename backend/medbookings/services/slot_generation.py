# backend/medbookings/services/slot_generation.py
"""
Materialized slot generation.

Calculated slots are the authoritative bookable inventory. This service
builds them from availability rules by expanding each rule over a window
and cutting every offered service into slots according to the rule's
scheduling rule. Persisting the records is the storage layer's job.
"""

from datetime import datetime, timezone
import logging
from typing import Iterable, List, Optional

from ..core.enums import SlotStatus
from ..schemas.availability import AvailabilityRule
from ..schemas.booking import Booking
from ..schemas.slot import BusyInterval, SlotGenerationResult, SlotRecord
from ..utils.time_utils import intervals_overlap
from .base import BaseService
from .recurrence_expander import expand
from .scheduling_rules import generate_time_slots

logger = logging.getLogger(__name__)


def apply_bookings(slots: Iterable[SlotRecord], bookings: Iterable[Booking]) -> List[SlotRecord]:
    """
    Mark slots taken by an active booking as BOOKED.

    Cancelled bookings free their slots. Returns new records; the inputs are
    left untouched.
    """
    active = [booking for booking in bookings if booking.is_active]
    result: List[SlotRecord] = []
    for slot in slots:
        match = next(
            (
                booking
                for booking in active
                if intervals_overlap(slot.start_time, slot.end_time, booking.start_time, booking.end_time)
            ),
            None,
        )
        if match is not None:
            slot = slot.model_copy(update={"status": SlotStatus.BOOKED, "booking_id": match.id})
        result.append(slot)
    return result


def apply_blocks(slots: Iterable[SlotRecord], intervals: Iterable[BusyInterval]) -> List[SlotRecord]:
    """Mark AVAILABLE slots overlapping a busy interval as BLOCKED."""
    busy = list(intervals)
    result: List[SlotRecord] = []
    for slot in slots:
        if slot.status is SlotStatus.AVAILABLE and any(
            intervals_overlap(slot.start_time, slot.end_time, item.start_time, item.end_time)
            for item in busy
        ):
            slot = slot.model_copy(update={"status": SlotStatus.BLOCKED})
        result.append(slot)
    return result


class SlotGenerationService(BaseService):
    """
    Builds calculated slots for availability rules.

    One broken service configuration or rule is reported in `errors` and
    does not stop generation for the rest.
    """

    def __init__(self, timezone_str: Optional[str] = None, max_window_days: Optional[int] = None):
        super().__init__(timezone_str)
        self.max_window_days = max_window_days

    @BaseService.measure_operation("generate_for_rule")
    def generate_for_rule(
        self,
        rule: AvailabilityRule,
        window_from: datetime,
        window_to: datetime,
        *,
        now: Optional[datetime] = None,
    ) -> SlotGenerationResult:
        """
        Generate AVAILABLE slot records for every occurrence of `rule` in the window.

        Raises:
            ExpansionWindowTooLargeException: If the window exceeds the bound.
        """
        occurrences = expand(
            rule, window_from, window_to, self.timezone_str, max_window_days=self.max_window_days
        )
        records: List[SlotRecord] = []
        errors: List[str] = []

        if occurrences and not rule.available_services:
            errors.append(f"Availability {rule.id} offers no services")

        for occurrence in occurrences:
            for service in rule.available_services:
                cut = generate_time_slots(
                    occurrence.start_time,
                    occurrence.end_time,
                    service.duration_minutes,
                    rule.scheduling_rule,
                    self.timezone_str,
                )
                if cut.errors:
                    errors.extend(
                        f"Service {service.service_id} on {occurrence.id}: {error}"
                        for error in cut.errors
                    )
                    continue
                records.extend(
                    SlotRecord(
                        rule_id=rule.id,
                        occurrence_id=occurrence.id,
                        service_id=service.service_id,
                        provider_id=rule.provider_id,
                        organization_id=rule.organization_id,
                        location_id=rule.location_id,
                        start_time=slot.start_time,
                        end_time=slot.end_time,
                        duration_minutes=slot.duration_minutes,
                        price=service.price,
                        status=SlotStatus.AVAILABLE,
                    )
                    for slot in cut.slots
                )

        records.sort(key=lambda record: (record.start_time, record.service_id))
        if errors:
            self.logger.warning(f"Slot generation for {rule.id} finished with {len(errors)} errors")
        self.logger.debug(f"Generated {len(records)} slots for availability {rule.id}")

        return SlotGenerationResult(
            slot_records=records,
            errors=errors,
            total_slots=len(records),
            generated_at=now or datetime.now(timezone.utc),
        )

    @BaseService.measure_operation("generate_for_rules")
    def generate_for_rules(
        self,
        rules: Iterable[AvailabilityRule],
        window_from: datetime,
        window_to: datetime,
        *,
        now: Optional[datetime] = None,
    ) -> SlotGenerationResult:
        generated_at = now or datetime.now(timezone.utc)
        records: List[SlotRecord] = []
        errors: List[str] = []
        for rule in rules:
            result = self.generate_for_rule(rule, window_from, window_to, now=generated_at)
            records.extend(result.slot_records)
            errors.extend(result.errors)

        records.sort(key=lambda record: (record.start_time, record.rule_id, record.service_id))
        self.log_operation("generate_for_rules", total_slots=len(records), error_count=len(errors))
        return SlotGenerationResult(
            slot_records=records,
            errors=errors,
            total_slots=len(records),
            generated_at=generated_at,
        )
