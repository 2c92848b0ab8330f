"""Streak tracking over sets of active dates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from vie_gamifiee.dates import parse_date


@dataclass
class StreakInfo:
    current_streak: int
    longest_streak: int
    last_active_date: str | None  # YYYY-MM-DD
    is_active_today: bool


def get_streak_from_dates(sorted_dates: list[str], reference_date: str) -> int:
    """Given a sorted list of active dates and a reference date,
    count consecutive days backwards from reference_date."""
    if not sorted_dates:
        return 0

    ref = parse_date(reference_date)
    date_set = {parse_date(d) for d in sorted_dates}

    if ref not in date_set:
        return 0

    streak = 0
    current = ref
    while current in date_set:
        streak += 1
        current -= timedelta(days=1)

    return streak


def longest_streak(active_dates: set[str] | list[str]) -> int:
    """Longest run of consecutive calendar days in active_dates.

    Input may be unsorted, contain duplicates, and have gaps.
    """
    sorted_dates = sorted({parse_date(d) for d in active_dates})
    if not sorted_dates:
        return 0
    longest = 1
    streak = 1
    for prev, curr in zip(sorted_dates, sorted_dates[1:]):
        if (curr - prev).days == 1:
            streak += 1
        else:
            longest = max(longest, streak)
            streak = 1
    return max(longest, streak)


def calculate_streak(active_dates: set[str], today: str | None = None) -> StreakInfo:
    """Calculate current streak from a set of active date strings (YYYY-MM-DD).

    Rules:
    - Streak = consecutive days ending at today, or at yesterday when today
      has no entry yet
    - Otherwise the current streak is 0
    """
    if not active_dates:
        return StreakInfo(
            current_streak=0,
            longest_streak=0,
            last_active_date=None,
            is_active_today=False,
        )

    today_date = parse_date(today) if today else date.today()
    sorted_dates = sorted(active_dates)

    is_active_today = today_date.isoformat() in active_dates

    if is_active_today:
        current_streak = get_streak_from_dates(sorted_dates, today_date.isoformat())
    else:
        yesterday = (today_date - timedelta(days=1)).isoformat()
        current_streak = get_streak_from_dates(sorted_dates, yesterday)

    return StreakInfo(
        current_streak=current_streak,
        longest_streak=max(longest_streak(sorted_dates), current_streak),
        last_active_date=sorted_dates[-1],
        is_active_today=is_active_today,
    )
