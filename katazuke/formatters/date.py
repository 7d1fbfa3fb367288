"""Date and time formatting utilities."""

from datetime import datetime, timezone
from typing import Optional


def format_date(date: Optional[datetime]) -> str:
    """
    Format a date object to YYYY-MM-DD string.

    Args:
        date: Date object, or None when unknown

    Returns:
        Formatted date string
    """
    if date is None:
        return "unknown"
    return date.strftime("%Y-%m-%d")


def age_days(when: Optional[datetime], now: Optional[datetime] = None) -> int:
    """Whole days elapsed since when (0 when unknown)."""
    if when is None:
        return 0
    now = now or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0, int((now - when).total_seconds() // 86400))


def format_age(when: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Format how long ago a timestamp was, in days, months or years.

    Months are 30 days and years 365 days.

    Args:
        when: Timestamp, or None when unknown
        now: Reference time (defaults to the current time)

    Returns:
        Human-readable age such as "3 days ago"
    """
    if when is None:
        return "unknown date"

    days = age_days(when, now)
    if days == 0:
        return "today"
    if days == 1:
        return "1 day ago"
    if days < 30:
        return f"{days} days ago"
    if days < 365:
        months = days // 30
        return "1 month ago" if months == 1 else f"{months} months ago"
    years = days // 365
    return "1 year ago" if years == 1 else f"{years} years ago"
