# backend/medbookings/services/availability_overlap.py
"""
Overlap detection between availability rules.

A provider may not publish two windows that could ever run at the same
time. One-time rules compare their absolute intervals. When either side
recurs, the rules overlap if their validity date ranges intersect, they
share a local weekday and their local time-of-day windows intersect.
Open-ended recurrences are assumed to run for `settings.overlap_horizon_days`.
"""

from datetime import datetime, timedelta
import logging
from typing import FrozenSet, Iterable, Optional

from ..core.config import settings
from ..schemas.availability import AvailabilityRule
from ..schemas.recurrence import OverlapPeriod, OverlapResult
from ..utils.time_utils import intervals_overlap
from .calendar_grid import local_minute_span
from .recurrence_expander import recurrence_end_bound
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)


def _validity_end(rule: AvailabilityRule, timezone_str: Optional[str]) -> datetime:
    if not rule.is_recurring:
        return rule.end_time
    end_bound = recurrence_end_bound(rule, timezone_str)
    if end_bound is not None:
        return end_bound
    return rule.start_time + timedelta(days=settings.overlap_horizon_days)


def _active_weekdays(rule: AvailabilityRule, timezone_str: Optional[str]) -> FrozenSet[int]:
    if rule.is_recurring:
        return rule.weekdays
    return frozenset({TimezoneService.local_weekday(rule.start_time, timezone_str)})


def has_time_of_day_overlap(
    first: AvailabilityRule, second: AvailabilityRule, timezone_str: Optional[str] = None
) -> bool:
    """Compare local time-of-day windows, ignoring dates."""
    span_a = local_minute_span(first.start_time, first.end_time, timezone_str)
    span_b = local_minute_span(second.start_time, second.end_time, timezone_str)
    if span_a is None or span_b is None:
        return False
    return span_a[0] < span_b[1] and span_b[0] < span_a[1]


def rules_overlap(
    first: AvailabilityRule, second: AvailabilityRule, timezone_str: Optional[str] = None
) -> bool:
    if not first.is_recurring and not second.is_recurring:
        return intervals_overlap(first.start_time, first.end_time, second.start_time, second.end_time)

    if not intervals_overlap(
        first.start_time,
        _validity_end(first, timezone_str),
        second.start_time,
        _validity_end(second, timezone_str),
    ):
        return False
    if not _active_weekdays(first, timezone_str) & _active_weekdays(second, timezone_str):
        return False
    return has_time_of_day_overlap(first, second, timezone_str)


def check_for_overlapping_availability(
    candidate: AvailabilityRule,
    existing: Iterable[AvailabilityRule],
    exclude_rule_id: Optional[str] = None,
    timezone_str: Optional[str] = None,
) -> OverlapResult:
    """
    Check a new or edited rule against a provider's existing rules.

    Args:
        candidate: The rule being created or edited
        existing: The provider's current rules
        exclude_rule_id: Rule being edited, skipped in the comparison
        timezone_str: Calendar timezone

    Returns:
        OverlapResult naming the first conflicting rule, if any
    """
    for rule in existing:
        if rule.id == exclude_rule_id:
            continue
        if rules_overlap(candidate, rule, timezone_str):
            logger.info(f"Availability {candidate.id} overlaps existing availability {rule.id}")
            return OverlapResult(
                has_overlap=True,
                overlapping_rule_id=rule.id,
                overlapping_period=OverlapPeriod(start_time=rule.start_time, end_time=rule.end_time),
            )
    return OverlapResult(has_overlap=False)
