from datetime import date, datetime, timezone

import pytest

from medbookings.core.enums import RecurrenceOption
from medbookings.schemas.recurrence import RecurrencePattern
from medbookings.services.recurrence_expander import expand
from medbookings.services.recurrence_patterns import (
    create_recurrence_pattern,
    describe_recurrence,
    format_date_for_display,
    is_valid_recurrence_pattern,
    pattern_from_rule,
    recurrence_options,
    recurring_days_for_pattern,
    rule_from_pattern,
)

MONDAY_9AM = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
MONDAY_11AM = datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc)


def test_recurrence_options_label_weekly_with_start_weekday():
    labels = dict(recurrence_options(MONDAY_9AM, "UTC"))

    assert labels[RecurrenceOption.NONE] == "Does not repeat"
    assert labels[RecurrenceOption.WEEKLY] == "Weekly on Monday"
    assert labels[RecurrenceOption.CUSTOM] == "Custom..."


class TestCreatePattern:
    def test_none_has_no_end_date(self):
        pattern = create_recurrence_pattern(RecurrenceOption.NONE, MONDAY_9AM, timezone_str="UTC")

        assert pattern.option is RecurrenceOption.NONE
        assert pattern.end_date is None

    def test_daily_defaults_end_date_four_weeks_out(self):
        pattern = create_recurrence_pattern("daily", MONDAY_9AM, timezone_str="UTC")

        assert pattern.end_date == date(2024, 1, 29)

    def test_weekly_uses_local_start_weekday(self):
        # Sunday 23:00 UTC is Monday 01:00 in Johannesburg
        start = datetime(2024, 1, 7, 23, 0, tzinfo=timezone.utc)

        pattern = create_recurrence_pattern(
            RecurrenceOption.WEEKLY, start, timezone_str="Africa/Johannesburg"
        )

        assert pattern.weekly_day == 1
        assert pattern.end_date == date(2024, 2, 5)

    def test_custom_days_are_sorted_and_deduplicated(self):
        pattern = create_recurrence_pattern(
            RecurrenceOption.CUSTOM, MONDAY_9AM, custom_days=[3, 1, 1], end_date=date(2024, 1, 31)
        )

        assert pattern.custom_days == [1, 3]
        assert pattern.end_date == date(2024, 1, 31)

    def test_custom_days_outside_week_are_rejected(self):
        with pytest.raises(ValueError):
            RecurrencePattern(option=RecurrenceOption.CUSTOM, custom_days=[1, 7])


@pytest.mark.parametrize(
    "pattern,expected",
    [
        (RecurrencePattern(option=RecurrenceOption.NONE), True),
        (RecurrencePattern(option=RecurrenceOption.DAILY), True),
        (RecurrencePattern(option=RecurrenceOption.WEEKLY, weekly_day=2), True),
        (RecurrencePattern(option=RecurrenceOption.WEEKLY), False),
        (RecurrencePattern(option=RecurrenceOption.CUSTOM, custom_days=[]), False),
        (RecurrencePattern(option=RecurrenceOption.CUSTOM, custom_days=[0, 6]), True),
    ],
)
def test_is_valid_recurrence_pattern(pattern, expected):
    assert is_valid_recurrence_pattern(pattern) is expected


@pytest.mark.parametrize(
    "pattern,expected",
    [
        (RecurrencePattern(option=RecurrenceOption.NONE), []),
        (RecurrencePattern(option=RecurrenceOption.DAILY), [0, 1, 2, 3, 4, 5, 6]),
        (RecurrencePattern(option=RecurrenceOption.WEEKLY, weekly_day=4), [4]),
        (RecurrencePattern(option=RecurrenceOption.CUSTOM, custom_days=[5, 1]), [1, 5]),
    ],
)
def test_recurring_days_for_pattern(pattern, expected):
    assert recurring_days_for_pattern(pattern) == expected


@pytest.mark.parametrize(
    "pattern,expected",
    [
        (RecurrencePattern(option=RecurrenceOption.NONE), "Does not repeat"),
        (RecurrencePattern(option=RecurrenceOption.DAILY, end_date=date(2024, 1, 29)), "Daily until Jan 29, 2024"),
        (RecurrencePattern(option=RecurrenceOption.WEEKLY, weekly_day=1), "Weekly on Monday"),
        (
            RecurrencePattern(option=RecurrenceOption.CUSTOM, custom_days=[3, 1], end_date=date(2024, 1, 31)),
            "Weekly on M, W until Jan 31, 2024",
        ),
        (RecurrencePattern(option=RecurrenceOption.CUSTOM), "Custom weekly"),
    ],
)
def test_describe_recurrence(pattern, expected):
    assert describe_recurrence(pattern) == expected


def test_format_date_for_display_has_no_zero_padding():
    assert format_date_for_display(date(2024, 3, 5)) == "Mar 5, 2024"


class TestRuleConversion:
    def test_custom_pattern_becomes_expandable_rule(self):
        pattern = RecurrencePattern(
            option=RecurrenceOption.CUSTOM, custom_days=[1, 3], end_date=date(2024, 1, 31)
        )

        rule = rule_from_pattern("avail-1", MONDAY_9AM, MONDAY_11AM, pattern, provider_id="p1")

        assert rule.is_recurring
        assert rule.recurring_days == [1, 3]
        assert rule.recurrence_end_date == date(2024, 1, 31)
        assert rule.provider_id == "p1"
        occurrences = expand(
            rule,
            datetime(2024, 1, 8, tzinfo=timezone.utc),
            datetime(2024, 1, 15, tzinfo=timezone.utc),
            "UTC",
        )
        assert [o.id for o in occurrences] == ["avail-1-2024-01-08", "avail-1-2024-01-10"]

    def test_non_repeating_pattern_drops_recurrence_fields(self):
        pattern = RecurrencePattern(option=RecurrenceOption.NONE, end_date=date(2024, 1, 31))

        rule = rule_from_pattern("avail-1", MONDAY_9AM, MONDAY_11AM, pattern)

        assert not rule.is_recurring
        assert rule.recurring_days == []
        assert rule.recurrence_end_date is None

    @pytest.mark.parametrize(
        "days,option",
        [
            ([0, 1, 2, 3, 4, 5, 6], RecurrenceOption.DAILY),
            ([1], RecurrenceOption.WEEKLY),
            ([1, 3], RecurrenceOption.CUSTOM),
            ([4], RecurrenceOption.CUSTOM),
        ],
    )
    def test_pattern_from_rule(self, make_rule, days, option):
        rule = make_rule(start=MONDAY_9AM, end=MONDAY_11AM, is_recurring=True, recurring_days=days)

        assert pattern_from_rule(rule, "UTC").option is option

    def test_pattern_from_one_time_rule(self, make_rule):
        assert pattern_from_rule(make_rule(), "UTC").option is RecurrenceOption.NONE
