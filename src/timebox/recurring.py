"""Recurrence rules for recurring task templates."""

from __future__ import annotations

from datetime import date

WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
DEFAULT_RECURRING_DAYS = [1, 2, 3, 4, 5]  # Mon-Fri


def weekday_number(day: str) -> int:
    """Day of week for a YYYY-MM-DD string, 0 = Sunday .. 6 = Saturday."""
    return (date.fromisoformat(day).weekday() + 1) % 7


def is_due(recurring_days: list[int], day: str) -> bool:
    """True if a template with these weekdays applies on day.

    An empty list means the template applies every day.
    """
    return not recurring_days or weekday_number(day) in recurring_days


def format_days(recurring_days: list[int]) -> str:
    if not recurring_days:
        return "Every day"
    return ", ".join(WEEKDAYS[d] for d in sorted(recurring_days))
