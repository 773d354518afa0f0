"""
Time and date helpers for the CoachPro club manager.

This module contains small conversions shared by the services and the web layer.
"""
import time
from datetime import date, timedelta
from typing import Optional, Tuple


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ts() -> float:
    """Get current timestamp in epoch seconds."""
    return time.time()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` string, returning None for blanks or bad input."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def calculate_age(birth_date: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """
    Whole years between a birth date and today.

    Args:
        birth_date: ISO date string
        today: Reference day, defaults to the current date

    Returns:
        Age in years, or None when the birth date is missing or invalid
    """
    born = parse_iso_date(birth_date)
    if born is None:
        return None
    today = today or date.today()
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def week_bounds(today: Optional[date] = None) -> Tuple[date, date]:
    """Return the Sunday that starts the current week and the Saturday that ends it."""
    today = today or date.today()
    # date.weekday(): Monday == 0 ... Sunday == 6
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)
