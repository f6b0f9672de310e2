# backend/medbookings/core/exceptions.py
"""
Domain-specific exceptions for the MedBookings calendar core.

These exceptions carry clear, business-focused error messages. The calendar
core only raises them for caller-contract violations (oversized windows,
unknown view types, DST gaps in strict conversions). Malformed availability
rules and invalid dates never raise; they produce empty results instead.

The enclosing request handler decides how to surface them; `status_code`
is the HTTP status it should map to.
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable error payload for the enclosing request handler."""
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when caller input fails validation."""

    status_code = 400


# Specific calendar exceptions


class ExpansionWindowTooLargeException(ValidationException):
    """Raised when a recurrence expansion window exceeds the configured bound."""

    def __init__(self, requested_days: float, max_days: int):
        super().__init__(
            message=(
                f"Expansion window of {requested_days:.1f} days exceeds the "
                f"maximum of {max_days} days"
            ),
            code="EXPANSION_WINDOW_TOO_LARGE",
            details={
                "requested_days": requested_days,
                "max_days": max_days,
            },
        )


class InvalidTimezoneException(ValidationException):
    """Raised when a timezone name is not in the tz database."""

    def __init__(self, timezone_str: str):
        super().__init__(
            message=f"Unknown timezone: {timezone_str}",
            code="INVALID_TIMEZONE",
            details={"timezone": timezone_str},
        )


class NonexistentLocalTimeException(ValidationException):
    """Raised when a local wall-clock time falls in a DST spring-forward gap."""

    def __init__(self, local_date: str, local_time: str, timezone_str: str):
        super().__init__(
            message=(
                f"The time {local_time} does not exist on {local_date} in "
                f"{timezone_str} due to Daylight Saving Time"
            ),
            code="NONEXISTENT_LOCAL_TIME",
            details={
                "date": local_date,
                "time": local_time,
                "timezone": timezone_str,
            },
        )


class UnsupportedViewException(ValidationException):
    """Raised when a calendar view type is not recognised."""

    def __init__(self, view: Any):
        super().__init__(
            message=f"Unsupported calendar view: {view}",
            code="UNSUPPORTED_VIEW",
            details={"view": str(view)},
        )
