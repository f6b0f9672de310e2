# backend/medbookings/services/calendar_service.py
"""
Calendar Service for MedBookings.

Orchestrates the calendar data flow for one navigation state:

    (anchor, view) -> ViewRange -> rules fetched by the caller
        -> integrity check -> expansion -> CalendarView

Fetching rules is the caller's job; it must use `rule_may_overlap` with
the same range this service computes (see `range_for`).
"""

from datetime import date, datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..schemas.availability import AvailabilityRule
from ..schemas.calendar import (
    CalendarView,
    DayAvailabilitySummary,
    GridPosition,
    Occurrence,
    TimedEvent,
    ViewRange,
)
from .base import BaseService
from .calendar_grid import day_index_for, display_hour_range, grid_position
from .calendar_range import ViewLike, coerce_view, days_in_range, get_range, view_title
from .recurrence_expander import check_window, expand_many
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


def _status_label(event: Any) -> str:
    status = getattr(event, "status", None)
    if status is None:
        return "unknown"
    return str(getattr(status, "value", status))


def summarize_day(
    events: Iterable[TimedEvent], day: date, timezone_str: Optional[str] = None
) -> DayAvailabilitySummary:
    """
    Total hours covered on a local day plus hours per status.

    Events are assigned to the local day they start on. Overlapping events
    are merged for the total; the status breakdown counts each event's full
    length before merging.
    """
    day_events = sorted(
        (e for e in events if TimezoneService.local_date(e.start_time, timezone_str) == day),
        key=lambda e: e.start_time,
    )

    merged: List[Tuple[datetime, datetime]] = []
    breakdown: Dict[str, float] = {}
    for event in day_events:
        if merged and event.start_time <= merged[-1][1]:
            if event.end_time > merged[-1][1]:
                merged[-1] = (merged[-1][0], event.end_time)
        else:
            merged.append((event.start_time, event.end_time))

        label = _status_label(event)
        hours = (event.end_time - event.start_time).total_seconds() / SECONDS_PER_HOUR
        breakdown[label] = breakdown.get(label, 0.0) + hours

    total = sum((end - start).total_seconds() for start, end in merged) / SECONDS_PER_HOUR
    return DayAvailabilitySummary(day=day, total_hours=max(0.0, total), status_breakdown=breakdown)


class CalendarService(BaseService):
    """
    Builds calendar views from availability rules.

    Malformed rules are logged and skipped so one bad row never blocks a
    whole view. Everything else raises the domain exceptions of the
    functions it composes.
    """

    def __init__(self, timezone_str: Optional[str] = None, max_window_days: Optional[int] = None):
        super().__init__(timezone_str)
        self.max_window_days = max_window_days

    def range_for(self, anchor: datetime, view: ViewLike) -> ViewRange:
        """Window the caller must fetch rules for."""
        return get_range(anchor, view, self.timezone_str)

    def validate_rules(
        self, rules: Iterable[AvailabilityRule]
    ) -> Tuple[List[AvailabilityRule], List[str]]:
        """Split rules into expandable ones and the ids of skipped ones."""
        usable: List[AvailabilityRule] = []
        skipped: List[str] = []
        for rule in rules:
            issues = rule.integrity_issues()
            if issues:
                self.logger.warning(
                    f"Availability {rule.id} has integrity issues: {'; '.join(issues)}"
                )
            if not rule.is_expandable:
                skipped.append(rule.id)
                continue
            usable.append(rule)
        return usable, skipped

    @BaseService.measure_operation("build_view")
    def build_view(
        self, rules: Iterable[AvailabilityRule], anchor: datetime, view: ViewLike
    ) -> CalendarView:
        """
        Build the calendar view for an anchor and view type.

        Raises:
            UnsupportedViewException: Unknown view type.
            ExpansionWindowTooLargeException: View range exceeds the
                configured expansion bound.
        """
        view_type = coerce_view(view)
        view_range = self.range_for(anchor, view_type)
        check_window(view_range.from_, view_range.to, self.max_window_days)

        usable, skipped = self.validate_rules(rules)
        occurrences = expand_many(
            usable,
            view_range.from_,
            view_range.to,
            self.timezone_str,
            max_window_days=self.max_window_days,
        )

        self.log_operation(
            "build_view",
            view=view_type.value,
            occurrence_count=len(occurrences),
            skipped_count=len(skipped),
        )
        return CalendarView(
            view=view_type,
            anchor=anchor,
            title=view_title(anchor, view_type, self.timezone_str),
            view_range=view_range,
            days=days_in_range(view_range, self.timezone_str),
            occurrences=occurrences,
            skipped_rule_ids=skipped,
        )

    def position_for(
        self,
        occurrence: TimedEvent,
        start_hour: Optional[int] = None,
        end_hour: Optional[int] = None,
        granularity_minutes: Optional[int] = None,
        days: Optional[Sequence[date]] = None,
    ) -> Optional[GridPosition]:
        """Grid placement of an event; the column is set when `days` is given."""
        default_start, default_end = display_hour_range([], self.timezone_str)
        day_index = None
        if days is not None:
            day_index = day_index_for(occurrence.start_time, days, self.timezone_str)
            if day_index is None:
                return None
        return grid_position(
            occurrence.start_time,
            occurrence.end_time,
            default_start if start_hour is None else start_hour,
            default_end if end_hour is None else end_hour,
            granularity_minutes,
            self.timezone_str,
            day_index=day_index,
        )

    def visible_hours(self, occurrences: Iterable[Occurrence]) -> Tuple[int, int]:
        """Display hours for a time grid, widened to fit the occurrences."""
        return display_hour_range(occurrences, self.timezone_str)

    def day_summaries(self, view: CalendarView) -> List[DayAvailabilitySummary]:
        return [summarize_day(view.occurrences, day, self.timezone_str) for day in view.days]
