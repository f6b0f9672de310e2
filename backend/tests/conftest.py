# backend/tests/conftest.py
"""
Shared fixtures for the calendar core tests.

Everything under test is pure, so fixtures only build value objects.
Tests pass timezones explicitly instead of relying on the configured
default.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from medbookings.core.enums import SchedulingRule
from medbookings.schemas.availability import AvailabilityRule, ServiceConfig


def pytest_collection_modifyitems(items):
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def make_rule():
    """
    Factory for availability rules.

    Defaults to a one-time 09:00-17:00 UTC window on Monday 2024-01-01.
    """

    def _make(
        rule_id: str = "rule-1",
        start: datetime = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
        end: datetime = datetime(2024, 1, 1, 17, 0, tzinfo=timezone.utc),
        **overrides,
    ) -> AvailabilityRule:
        fields = {"provider_id": "provider-1"}
        fields.update(overrides)
        return AvailabilityRule(id=rule_id, start_time=start, end_time=end, **fields)

    return _make


@pytest.fixture
def mon_wed_rule(make_rule):
    """Recurring Mon/Wed 09:00-11:00 UTC rule ending 2024-01-31."""
    return make_rule(
        start=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
        end=datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc),
        is_recurring=True,
        recurring_days=[1, 3],
        recurrence_end_date=date(2024, 1, 31),
        scheduling_rule=SchedulingRule.CONTINUOUS,
        available_services=[
            ServiceConfig(service_id="consult", duration_minutes=60, price=Decimal("500")),
            ServiceConfig(service_id="follow-up", duration_minutes=30, price=Decimal("300")),
        ],
    )
