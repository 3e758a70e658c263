"""Date arithmetic and the site's date formats."""

from __future__ import annotations

import re
from datetime import date, timedelta

# English names regardless of process locale; the calendar's accessible
# names are matched against these.
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def next_monday(today: date | None = None) -> date:
    """Return the first Monday strictly after *today*.

    A Monday maps to the following week's Monday, a Sunday to the next day.
    """
    today = today or date.today()
    return today + timedelta(days=7 - today.weekday())


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def format_date_for_calendar(day: date) -> str:
    """Format *day* the way calendar day buttons name themselves.

    Example: ``"19, Monday, January 2026"``.
    """
    return f"{day.day}, {_WEEKDAYS[day.weekday()]}, {_MONTHS[day.month - 1]} {day.year}"


def calendar_name_pattern(day: date) -> re.Pattern[str]:
    """Case-insensitive regex matching the calendar button for *day*.

    Matches as a substring, since the site appends state such as
    ``". Available. Select as check-in date."``.
    """
    return re.compile(re.escape(format_date_for_calendar(day)), re.IGNORECASE)


def format_date_for_url(day: date) -> str:
    """``YYYY-MM-DD``, as used in results-page query strings."""
    return day.isoformat()
