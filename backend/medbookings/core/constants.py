"""Calendar-wide constants for the MedBookings platform."""

from __future__ import annotations

# Timezone used when a caller does not supply one (SAST, no DST)
DEFAULT_TIMEZONE = "Africa/Johannesburg"

# Expansion bounds
MAX_EXPANSION_DAYS = 731  # two years, leap day included
DAYS_PER_WEEK = 7

# Grid rendering
DEFAULT_GRID_GRANULARITY_MINUTES = 5
DEFAULT_DISPLAY_START_HOUR = 6  # 6 AM
DEFAULT_DISPLAY_END_HOUR = 18  # 6 PM
MINUTES_PER_DAY = 24 * 60

# Day of week mapping, indexed by weekday number (0 = Sunday)
DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SHORT_DAYS_OF_WEEK = ["S", "M", "T", "W", "T", "F", "S"]
