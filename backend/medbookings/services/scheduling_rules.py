# backend/medbookings/services/scheduling_rules.py
"""
Slot cutting by scheduling rule.

- CONTINUOUS: appointments run back to back from the window start
- ON_THE_HOUR: appointments start only at local :00
- ON_THE_HALF_HOUR: appointments start at local :00 and :30

Alignment is done on local wall-clock time, so zones with half-hour
offsets still start slots on their own hour. No slot extends past the end
of the window.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional, Union

from ..core.enums import SchedulingRule
from ..schemas.base import ensure_utc
from ..schemas.slot import ScheduleEfficiency, TimeSlot, TimeSlotGenerationResult
from ..utils.time_utils import ceil_to_interval, truncate_to_minute
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

RULE_INTERVAL_MINUTES = {
    SchedulingRule.ON_THE_HOUR: 60,
    SchedulingRule.ON_THE_HALF_HOUR: 30,
}


def start_interval_minutes(rule: SchedulingRule, service_duration: int) -> int:
    """Minutes between consecutive slot starts under a rule."""
    return RULE_INTERVAL_MINUTES.get(SchedulingRule(rule), service_duration)


def first_aligned_start(
    window_start: datetime, interval_minutes: int, timezone_str: Optional[str] = None
) -> datetime:
    """First local :00 (or :00/:30) boundary at or after `window_start`, in UTC."""
    local = TimezoneService.to_local(window_start, timezone_str)
    return ceil_to_interval(local, interval_minutes).astimezone(window_start.tzinfo)


def _cut(start: datetime, end: datetime, duration_minutes: int, step_minutes: int) -> List[TimeSlot]:
    slots: List[TimeSlot] = []
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)
    current = start
    while current < end:
        slot_end = current + duration
        if slot_end > end:
            break
        slots.append(
            TimeSlot(start_time=current, end_time=slot_end, duration_minutes=duration_minutes)
        )
        current += step
    return slots


def generate_time_slots(
    window_start: datetime,
    window_end: datetime,
    service_duration: int,
    scheduling_rule: Union[SchedulingRule, str],
    timezone_str: Optional[str] = None,
) -> TimeSlotGenerationResult:
    """
    Cut bookable slots of `service_duration` minutes from a window.

    Invalid input is reported in `errors` with no slots, matching how one bad
    service configuration must not stop slots for the others.
    """
    errors: List[str] = []
    window_start = ensure_utc(window_start)
    window_end = ensure_utc(window_end)

    if window_end <= window_start:
        errors.append("Availability end time must be after start time")
    if service_duration <= 0:
        errors.append("Service duration must be positive")
    try:
        rule = SchedulingRule(scheduling_rule)
    except ValueError:
        errors.append(f"Unsupported scheduling rule: {scheduling_rule}")
        rule = None

    if errors or rule is None:
        return TimeSlotGenerationResult(slots=[], total_slots=0, errors=errors)

    if rule is SchedulingRule.CONTINUOUS:
        slots = _cut(truncate_to_minute(window_start), window_end, service_duration, service_duration)
    else:
        interval = RULE_INTERVAL_MINUTES[rule]
        first = first_aligned_start(window_start, interval, timezone_str)
        slots = _cut(first, window_end, service_duration, interval)

    slots = [slot for slot in slots if slot.end_time <= window_end]
    return TimeSlotGenerationResult(slots=slots, total_slots=len(slots), errors=[])


def calculate_schedule_efficiency(
    availability_minutes: int,
    service_duration: int,
    scheduling_rule: Union[SchedulingRule, str],
) -> ScheduleEfficiency:
    """
    Compare the slots a rule offers against back-to-back scheduling.

    Assumes the window starts on an aligned boundary.
    """
    if availability_minutes <= 0 or service_duration <= 0:
        return ScheduleEfficiency(
            max_possible_slots=0, actual_slots=0, utilization_rate=0.0, average_gap_minutes=0.0
        )

    rule = SchedulingRule(scheduling_rule)
    interval = start_interval_minutes(rule, service_duration)
    max_possible = availability_minutes // service_duration
    if availability_minutes < service_duration:
        actual = 0
    else:
        actual = (availability_minutes - service_duration) // interval + 1

    return ScheduleEfficiency(
        max_possible_slots=max_possible,
        actual_slots=actual,
        utilization_rate=(actual / max_possible) if max_possible else 0.0,
        average_gap_minutes=float(max(0, interval - service_duration)),
    )
