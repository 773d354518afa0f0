"""
Utilities package for the CoachPro club manager.

This package contains utility functions and constants used throughout the application.
"""
from .time_utils import fmt_mmss, now_ts, parse_iso_date, calculate_age, week_bounds
from .constants import (
    APP_TITLE, CLUB_NAME, CLUB_LOGO_URL, DEFAULT_PASSWORD, FORMATIONS,
    DEFAULT_FORMATION, TABLES
)

__all__ = [
    "fmt_mmss", "now_ts", "parse_iso_date", "calculate_age", "week_bounds",
    "APP_TITLE", "CLUB_NAME", "CLUB_LOGO_URL", "DEFAULT_PASSWORD", "FORMATIONS",
    "DEFAULT_FORMATION", "TABLES"
]
