"""Streak calculation for timebox.

Pure functions over sets of active dates (YYYY-MM-DD strings). Nothing here
reads or writes the database; callers fetch the dates and cache the result.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta


@dataclass(frozen=True)
class StreakSnapshot:
    current_streak: int
    longest_streak: int
    last_active_date: str | None  # YYYY-MM-DD


EMPTY_SNAPSHOT = StreakSnapshot(current_streak=0, longest_streak=0, last_active_date=None)


def _parse_date(d: str) -> date:
    """Parse a YYYY-MM-DD string to a date object."""
    return date.fromisoformat(d)


def _previous_day(d: str) -> str:
    return (_parse_date(d) - timedelta(days=1)).isoformat()


def count_back(date_set: set[str], anchor: str) -> int:
    """Count consecutive days in date_set walking backwards from anchor."""
    streak = 0
    current = anchor
    while current in date_set:
        streak += 1
        current = _previous_day(current)
    return streak


def longest_run(dates: Iterable[str]) -> int:
    """Length of the longest run of consecutive calendar days in dates."""
    sorted_dates = sorted(set(dates))
    if not sorted_dates:
        return 0

    longest = 1
    run = 1
    for i in range(1, len(sorted_dates)):
        prev = _parse_date(sorted_dates[i - 1])
        curr = _parse_date(sorted_dates[i])
        if (curr - prev).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def compute_streak(active_dates: Iterable[str], today: str) -> StreakSnapshot:
    """Compute the streak snapshot for one user's active dates.

    Rules:
    - The current streak is anchored at today, or at yesterday if today has
      no activity yet. With neither active the current streak is 0.
    - From the anchor, count consecutive active days backwards.
    - The longest streak is the longest run of consecutive active days,
      never less than the current streak.
    """
    date_set = set(active_dates)
    if not date_set:
        return EMPTY_SNAPSHOT

    today = _parse_date(today).isoformat()
    yesterday = _previous_day(today)

    if today in date_set:
        current_streak = count_back(date_set, today)
    elif yesterday in date_set:
        current_streak = count_back(date_set, yesterday)
    else:
        current_streak = 0

    return StreakSnapshot(
        current_streak=current_streak,
        longest_streak=max(longest_run(date_set), current_streak),
        last_active_date=max(date_set),
    )
