from datetime import date, datetime, timedelta, timezone

import pytest

from medbookings.core.exceptions import ExpansionWindowTooLargeException
from medbookings.schemas.booking import Booking
from medbookings.services.recurrence_expander import (
    expand,
    expand_many,
    occurrence_id,
    recurrence_end_bound,
    rule_may_overlap,
)
from medbookings.services.timezone_service import TimezoneService


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


TIMEZONES = ["UTC", "Africa/Johannesburg", "America/New_York", "Asia/Kolkata", "Pacific/Auckland"]


class TestConcreteScenarios:
    def test_mon_wed_rule_in_second_week(self, make_rule):
        rule = make_rule(
            start=_utc(2024, 1, 1, 9, 0),
            end=_utc(2024, 1, 1, 10, 0),
            is_recurring=True,
            recurring_days=[1, 3],
            recurrence_end_date=date(2024, 1, 31),
        )

        result = expand(rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC")

        assert [occ.start_time for occ in result] == [_utc(2024, 1, 8, 9, 0), _utc(2024, 1, 10, 9, 0)]
        assert [occ.id for occ in result] == ["rule-1-2024-01-08", "rule-1-2024-01-10"]
        assert all(occ.is_recurring for occ in result)
        assert all(occ.end_time - occ.start_time == timedelta(hours=1) for occ in result)

    def test_same_rule_keeps_local_time_of_day_in_johannesburg(self, make_rule):
        rule = make_rule(
            start=_utc(2024, 1, 1, 9, 0),
            end=_utc(2024, 1, 1, 10, 0),
            is_recurring=True,
            recurring_days=[1, 3],
            recurrence_end_date=date(2024, 1, 31),
        )

        result = expand(rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "Africa/Johannesburg")

        assert len(result) == 2
        for occ in result:
            local = TimezoneService.to_local(occ.start_time, "Africa/Johannesburg")
            assert (local.hour, local.minute) == (11, 0)
        assert [TimezoneService.local_weekday(o.start_time, "Africa/Johannesburg") for o in result] == [1, 3]


class TestProperties:
    def test_expand_is_idempotent(self, mon_wed_rule):
        first = expand(mon_wed_rule, _utc(2024, 1, 1), _utc(2024, 2, 1), "Africa/Johannesburg")
        second = expand(mon_wed_rule, _utc(2024, 1, 1), _utc(2024, 2, 1), "Africa/Johannesburg")

        assert first == second
        assert [o.model_dump_json() for o in first] == [o.model_dump_json() for o in second]

    @pytest.mark.parametrize("tz", TIMEZONES)
    def test_window_containment_and_weekday_fidelity(self, make_rule, tz):
        rule = make_rule(
            start=_utc(2024, 1, 2, 21, 45),
            end=_utc(2024, 1, 2, 23, 15),
            is_recurring=True,
            recurring_days=[0, 2, 5],
        )
        window_from, window_to = _utc(2024, 3, 5, 13, 17), _utc(2024, 4, 20, 5, 0)

        result = expand(rule, window_from, window_to, tz)

        assert result
        for occ in result:
            assert window_from <= occ.start_time < window_to
            assert TimezoneService.local_weekday(occ.start_time, tz) in rule.recurring_days
        assert len({occ.id for occ in result}) == len(result)
        assert [o.start_time for o in result] == sorted(o.start_time for o in result)

    def test_non_recurring_rule_passes_through_unchanged(self, make_rule):
        rule = make_rule(start=_utc(2024, 1, 10, 9, 30, 15), end=_utc(2024, 1, 10, 10, 30))

        result = expand(rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC")

        assert len(result) == 1
        assert result[0].start_time == rule.start_time
        assert result[0].end_time == rule.end_time
        assert result[0].is_recurring is False

    def test_non_recurring_rule_outside_window_yields_nothing(self, make_rule):
        rule = make_rule(start=_utc(2024, 1, 20, 9), end=_utc(2024, 1, 20, 10))

        assert expand(rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC") == []

    def test_recurrence_end_date_is_respected(self, mon_wed_rule):
        result = expand(mon_wed_rule, _utc(2024, 1, 1), _utc(2024, 3, 1), "UTC")

        assert len(result) == 10
        assert max(TimezoneService.local_date(o.start_time, "UTC") for o in result) == date(2024, 1, 31)

    def test_open_ended_recurrence_is_capped_by_window(self, make_rule):
        rule = make_rule(
            start=_utc(2024, 1, 1, 9),
            end=_utc(2024, 1, 1, 10),
            is_recurring=True,
            recurring_days=[1, 3],
        )

        result = expand(rule, _utc(2024, 6, 3), _utc(2024, 6, 10), "UTC")

        assert [o.start_time for o in result] == [_utc(2024, 6, 3, 9), _utc(2024, 6, 5, 9)]


class TestLocalDayHandling:
    def test_weekday_is_matched_on_local_date_near_midnight(self, make_rule):
        # 23:30 UTC Monday is 01:30 Tuesday in Johannesburg
        rule = make_rule(
            start=_utc(2024, 1, 1, 23, 30),
            end=_utc(2024, 1, 2, 0, 30),
            is_recurring=True,
            recurring_days=[2],
        )

        result = expand(rule, _utc(2024, 1, 1), _utc(2024, 1, 29), "Africa/Johannesburg")

        assert [o.start_time for o in result] == [
            _utc(2024, 1, 1, 23, 30),
            _utc(2024, 1, 8, 23, 30),
            _utc(2024, 1, 15, 23, 30),
            _utc(2024, 1, 22, 23, 30),
        ]
        assert [o.id for o in result][0] == "rule-1-2024-01-02"

    def test_overnight_window_ends_on_next_day(self, make_rule):
        rule = make_rule(
            start=_utc(2024, 1, 1, 22),
            end=_utc(2024, 1, 2, 2),
            is_recurring=True,
            recurring_days=[1],
        )

        result = expand(rule, _utc(2024, 1, 1), _utc(2024, 1, 15), "UTC")

        assert [(o.start_time, o.end_time) for o in result] == [
            (_utc(2024, 1, 1, 22), _utc(2024, 1, 2, 2)),
            (_utc(2024, 1, 8, 22), _utc(2024, 1, 9, 2)),
        ]

    def test_dst_transition_keeps_local_wall_clock(self, make_rule):
        # 09:00 EST on Monday 2024-03-04; DST starts 2024-03-10
        rule = make_rule(
            start=_utc(2024, 3, 4, 14),
            end=_utc(2024, 3, 4, 15),
            is_recurring=True,
            recurring_days=[1],
        )

        result = expand(rule, _utc(2024, 3, 4), _utc(2024, 3, 19), "America/New_York")

        assert [o.start_time for o in result] == [
            _utc(2024, 3, 4, 14),
            _utc(2024, 3, 11, 13),
            _utc(2024, 3, 18, 13),
        ]

    def test_start_inside_dst_gap_shifts_forward(self, make_rule):
        # Sundays at 02:30 local; 02:30 does not exist on 2024-03-10
        rule = make_rule(
            start=_utc(2024, 3, 3, 7, 30),
            end=_utc(2024, 3, 3, 9, 30),
            is_recurring=True,
            recurring_days=[0],
        )

        result = expand(rule, _utc(2024, 3, 3), _utc(2024, 3, 18), "America/New_York")

        assert [o.start_time for o in result] == [
            _utc(2024, 3, 3, 7, 30),
            _utc(2024, 3, 10, 7, 30),
            _utc(2024, 3, 17, 6, 30),
        ]

    def test_bookings_are_grouped_by_local_day(self, make_rule):
        rule = make_rule(
            start=_utc(2024, 1, 1, 9),
            end=_utc(2024, 1, 1, 11),
            is_recurring=True,
            recurring_days=[1, 3],
            bookings=[
                Booking(id="b1", start_time=_utc(2024, 1, 8, 9), end_time=_utc(2024, 1, 8, 10)),
                Booking(id="b2", start_time=_utc(2024, 1, 10, 10), end_time=_utc(2024, 1, 10, 11)),
            ],
        )

        result = expand(rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC")

        assert [[b.id for b in o.bookings] for o in result] == [["b1"], ["b2"]]


class TestEdgeCases:
    def test_window_before_rule_start_is_empty(self, mon_wed_rule):
        assert expand(mon_wed_rule, _utc(2023, 12, 1), _utc(2023, 12, 31), "UTC") == []

    def test_inverted_window_is_empty(self, mon_wed_rule):
        assert expand(mon_wed_rule, _utc(2024, 1, 15), _utc(2024, 1, 8), "UTC") == []
        assert expand(mon_wed_rule, _utc(2024, 1, 8), _utc(2024, 1, 8), "UTC") == []

    def test_recurring_rule_without_days_is_empty(self, make_rule):
        rule = make_rule(is_recurring=True, recurring_days=[])

        assert expand(rule, _utc(2024, 1, 1), _utc(2024, 2, 1), "UTC") == []

    def test_out_of_range_weekdays_never_match(self, make_rule):
        rule = make_rule(is_recurring=True, recurring_days=[7, -1])

        assert expand(rule, _utc(2024, 1, 1), _utc(2024, 2, 1), "UTC") == []

    def test_inverted_rule_is_empty(self, make_rule):
        rule = make_rule(start=_utc(2024, 1, 1, 10), end=_utc(2024, 1, 1, 9))

        assert expand(rule, _utc(2024, 1, 1), _utc(2024, 2, 1), "UTC") == []

    def test_naive_window_is_treated_as_utc(self, mon_wed_rule):
        naive = expand(mon_wed_rule, datetime(2024, 1, 8), datetime(2024, 1, 15), "UTC")
        aware = expand(mon_wed_rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC")

        assert naive == aware

    def test_oversized_window_fails_fast(self, mon_wed_rule):
        with pytest.raises(ExpansionWindowTooLargeException) as exc_info:
            expand(mon_wed_rule, _utc(2024, 1, 1), _utc(2024, 1, 20), "UTC", max_window_days=7)

        assert exc_info.value.code == "EXPANSION_WINDOW_TOO_LARGE"
        assert exc_info.value.details["max_days"] == 7

    def test_default_bound_rejects_multi_year_windows(self, mon_wed_rule):
        with pytest.raises(ExpansionWindowTooLargeException):
            expand(mon_wed_rule, _utc(2024, 1, 1), _utc(2027, 1, 1), "UTC", max_window_days=731)


def test_expand_many_merges_in_start_order(make_rule, mon_wed_rule):
    one_time = make_rule(rule_id="one-off", start=_utc(2024, 1, 9, 8), end=_utc(2024, 1, 9, 9))

    result = expand_many([mon_wed_rule, one_time], _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC")

    assert [o.id for o in result] == ["rule-1-2024-01-08", "one-off-2024-01-09", "rule-1-2024-01-10"]


def test_occurrence_id_format():
    assert occurrence_id("abc", date(2024, 2, 29)) == "abc-2024-02-29"


def test_recurrence_end_bound_is_next_local_midnight(mon_wed_rule):
    assert recurrence_end_bound(mon_wed_rule, "Africa/Johannesburg") == _utc(2024, 1, 31, 22)
    assert recurrence_end_bound(mon_wed_rule, "UTC") == _utc(2024, 2, 1)


class TestRuleMayOverlap:
    @pytest.mark.parametrize(
        "window",
        [
            (_utc(2024, 1, 1), _utc(2024, 1, 8)),
            (_utc(2024, 1, 8), _utc(2024, 1, 15)),
            (_utc(2024, 1, 29), _utc(2024, 2, 5)),
        ],
    )
    def test_predicate_holds_whenever_expansion_is_non_empty(self, mon_wed_rule, window):
        assert expand(mon_wed_rule, *window, "UTC")
        assert rule_may_overlap(mon_wed_rule, *window, "UTC")

    def test_rule_starting_after_window_is_excluded(self, mon_wed_rule):
        assert not rule_may_overlap(mon_wed_rule, _utc(2023, 12, 1), _utc(2024, 1, 1), "UTC")

    def test_rule_ended_before_window_is_excluded(self, mon_wed_rule):
        assert not rule_may_overlap(mon_wed_rule, _utc(2024, 2, 1), _utc(2024, 2, 8), "UTC")

    def test_one_time_rule_uses_its_start(self, make_rule):
        rule = make_rule(start=_utc(2024, 1, 10, 9), end=_utc(2024, 1, 10, 10))

        assert rule_may_overlap(rule, _utc(2024, 1, 8), _utc(2024, 1, 15), "UTC")
        assert not rule_may_overlap(rule, _utc(2024, 1, 11), _utc(2024, 1, 15), "UTC")
