# backend/medbookings/core/config.py
import logging

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import (
    DEFAULT_DISPLAY_END_HOUR,
    DEFAULT_DISPLAY_START_HOUR,
    DEFAULT_GRID_GRANULARITY_MINUTES,
    DEFAULT_TIMEZONE,
    MAX_EXPANSION_DAYS,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Calendar core settings, read from CALENDAR_* environment variables."""

    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="Local timezone for weekday and day-boundary arithmetic",
    )
    max_expansion_days: int = Field(
        default=MAX_EXPANSION_DAYS,
        gt=0,
        description="Largest recurrence expansion window accepted before failing fast",
    )
    grid_granularity_minutes: int = Field(
        default=DEFAULT_GRID_GRANULARITY_MINUTES,
        description="Row size of fine-grained time grids",
    )
    display_start_hour: int = Field(default=DEFAULT_DISPLAY_START_HOUR, ge=0, le=24)
    display_end_hour: int = Field(default=DEFAULT_DISPLAY_END_HOUR, ge=0, le=24)
    default_recurrence_weeks: int = Field(
        default=4,
        gt=0,
        description="Weeks added to the start date when a recurrence has no end date",
    )
    overlap_horizon_days: int = Field(
        default=365,
        gt=0,
        description="Horizon assumed for open-ended recurrences when checking overlaps",
    )
    slow_operation_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Measured operations slower than this log a warning",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CALENDAR_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @field_validator("grid_granularity_minutes")
    @classmethod
    def validate_granularity(cls, v: int) -> int:
        if v <= 0 or 60 % v != 0:
            raise ValueError("grid_granularity_minutes must be a positive divisor of 60")
        return v

    @model_validator(mode="after")
    def _check_display_hours(self) -> "Settings":
        if self.display_start_hour >= self.display_end_hour:
            raise ValueError("display_start_hour must be before display_end_hour")
        return self


settings = Settings()
logger.debug(
    "[CONFIG] Calendar configuration: timezone=%s max_expansion_days=%s granularity=%s",
    settings.timezone,
    settings.max_expansion_days,
    settings.grid_granularity_minutes,
)
