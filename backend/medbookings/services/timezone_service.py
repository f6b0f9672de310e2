"""
Centralized timezone handling for the MedBookings calendar.

Rules:
- All storage: UTC
- All weekday membership, "today" checks and day/week/month boundaries:
  local time in the calendar timezone
- Conversion back to UTC happens only when building query bounds or
  persisted values

Every caller goes through this module. Arithmetic directly on UTC values
shifts occurrences onto the wrong weekday near midnight.
"""

from datetime import date, datetime, time, timedelta, timezone
import logging
from typing import Any, Optional

import pytz

from ..core.config import settings
from ..core.enums import Weekday
from ..core.exceptions import InvalidTimezoneException, NonexistentLocalTimeException

logger = logging.getLogger(__name__)


class TimezoneService:
    """Handles all timezone conversions consistently."""

    @staticmethod
    def default_timezone() -> str:
        return settings.timezone

    @staticmethod
    def get_timezone(tz_str: Optional[str] = None) -> pytz.BaseTzInfo:
        """Get timezone object, with fallback to the configured default."""
        try:
            return pytz.timezone(tz_str or settings.timezone)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Unknown timezone {tz_str!r}, falling back to {settings.timezone}")
            return pytz.timezone(settings.timezone)

    @staticmethod
    def require_timezone(tz_str: str) -> pytz.BaseTzInfo:
        """Strict lookup for caller-supplied names."""
        try:
            return pytz.timezone(tz_str)
        except pytz.UnknownTimeZoneError:
            raise InvalidTimezoneException(tz_str)

    @staticmethod
    def to_local(utc_dt: datetime, timezone_str: Optional[str] = None) -> datetime:
        """Convert a UTC datetime to local time. Naive input is assumed UTC."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)

        tz = TimezoneService.get_timezone(timezone_str)
        return utc_dt.astimezone(tz)

    @staticmethod
    def to_utc(local_dt: datetime, timezone_str: Optional[str] = None) -> datetime:
        """
        Convert a local datetime to UTC.

        Aware input is simply converted. Naive input is read as wall-clock
        time in the calendar timezone; DST gaps shift forward.
        """
        if local_dt.tzinfo is not None and local_dt.tzinfo.utcoffset(local_dt) is not None:
            return local_dt.astimezone(timezone.utc)
        return TimezoneService.local_to_utc(
            local_dt.date(), local_dt.time(), timezone_str, strict=False
        )

    @staticmethod
    def local_to_utc(
        local_date: date,
        local_time: time,
        timezone_str: Optional[str] = None,
        *,
        strict: bool = True,
    ) -> datetime:
        """
        Convert local date/time to UTC.

        Uses the timezone rules valid on `local_date` (not today), so DST
        transitions are handled. Ambiguous times (fall back) resolve to the
        first occurrence.

        Raises:
            NonexistentLocalTimeException: If strict and the time falls in a
                spring-forward gap. Non-strict conversions shift forward by
                the gap instead.
        """
        tz = TimezoneService.get_timezone(timezone_str)
        naive_dt = datetime.combine(local_date, local_time.replace(tzinfo=None))

        try:
            # is_dst=None raises for ambiguous/nonexistent times
            local_dt = tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            local_dt = tz.localize(naive_dt, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            if strict:
                raise NonexistentLocalTimeException(
                    local_date.isoformat(),
                    local_time.strftime("%H:%M"),
                    str(tz),
                )
            # Pre-transition offset lands the instant after the gap.
            local_dt = tz.localize(naive_dt, is_dst=False)

        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def local_date(utc_dt: datetime, timezone_str: Optional[str] = None) -> date:
        return TimezoneService.to_local(utc_dt, timezone_str).date()

    @staticmethod
    def local_weekday(utc_dt: datetime, timezone_str: Optional[str] = None) -> int:
        """Local weekday number, 0 = Sunday."""
        return int(Weekday.of(TimezoneService.local_date(utc_dt, timezone_str)))

    @staticmethod
    def local_midnight_utc(local_date: date, timezone_str: Optional[str] = None) -> datetime:
        """UTC instant at which `local_date` begins in the calendar timezone."""
        return TimezoneService.local_to_utc(local_date, time(0, 0), timezone_str, strict=False)

    @staticmethod
    def start_of_local_day(utc_dt: datetime, timezone_str: Optional[str] = None) -> datetime:
        """UTC instant of local midnight on the local day containing `utc_dt`."""
        return TimezoneService.local_midnight_utc(
            TimezoneService.local_date(utc_dt, timezone_str), timezone_str
        )

    @staticmethod
    def end_of_local_day(utc_dt: datetime, timezone_str: Optional[str] = None) -> datetime:
        """Exclusive end: UTC instant of the following local midnight."""
        next_day = TimezoneService.local_date(utc_dt, timezone_str) + timedelta(days=1)
        return TimezoneService.local_midnight_utc(next_day, timezone_str)

    @staticmethod
    def _coerce_local_date(value: Any, timezone_str: Optional[str]) -> Optional[date]:
        if value is None:
            return None
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            value = datetime.fromisoformat(text)
        if isinstance(value, datetime):
            return TimezoneService.local_date(value, timezone_str)
        if isinstance(value, date):
            return value
        return None

    @staticmethod
    def is_same_local_day(a: Any, b: Any, timezone_str: Optional[str] = None) -> bool:
        """
        True when both values fall on the same local calendar day.

        None, unparseable strings and non-date values compare as different
        days; this never raises.
        """
        try:
            day_a = TimezoneService._coerce_local_date(a, timezone_str)
            day_b = TimezoneService._coerce_local_date(b, timezone_str)
        except (ValueError, TypeError, OverflowError):
            return False
        if day_a is None or day_b is None:
            return False
        return day_a == day_b

    @staticmethod
    def local_now(timezone_str: Optional[str] = None) -> datetime:
        return datetime.now(TimezoneService.get_timezone(timezone_str))

    @staticmethod
    def local_today(timezone_str: Optional[str] = None, now: Optional[datetime] = None) -> date:
        """'Today' in the calendar timezone. `now` is a UTC instant, for tests."""
        if now is None:
            return TimezoneService.local_now(timezone_str).date()
        return TimezoneService.local_date(now, timezone_str)

    @staticmethod
    def is_local_today(
        utc_dt: Any, timezone_str: Optional[str] = None, now: Optional[datetime] = None
    ) -> bool:
        return TimezoneService.is_same_local_day(
            utc_dt, TimezoneService.local_today(timezone_str, now), timezone_str
        )

    @staticmethod
    def format_for_display(
        utc_dt: datetime, timezone_str: Optional[str] = None, include_tz_abbrev: bool = True
    ) -> str:
        """
        Format a UTC datetime for display in the calendar timezone.

        Returns: e.g., "Oct 01, 2025 at 02:00 PM SAST"
        """
        local_dt = TimezoneService.to_local(utc_dt, timezone_str)

        if include_tz_abbrev:
            return local_dt.strftime("%b %d, %Y at %I:%M %p %Z")
        return local_dt.strftime("%b %d, %Y at %I:%M %p")
