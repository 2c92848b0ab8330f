"""Daily XP aggregation for vie-gamifiee.

Pure functions that fold the entry log into one record per active day.
All calculations use integers.
"""

from __future__ import annotations

from dataclasses import dataclass

from vie_gamifiee.dates import is_next_day
from vie_gamifiee.models import Entry

# Volume bonus
BUSY_DAY_ENTRIES = 6
BUSY_DAY_BONUS = 10

# Streak bonuses (every Nth consecutive active day -> bonus XP)
STREAK_BONUSES: dict[int, int] = {
    3: 10,
    7: 25,
}


@dataclass
class DailyAggregate:
    """XP breakdown and running streaks for a single active day."""

    date: str
    entry_count: int
    base_xp: int
    bonus_xp: int
    total_xp: int
    any_streak_length: int
    six_plus_streak_length: int


def group_by_date(entries: list[Entry]) -> dict[str, list[Entry]]:
    """Group entries by date, dates in ascending order, entries in log order."""
    grouped: dict[str, list[Entry]] = {}
    for entry in sorted(entries, key=lambda e: e.date):
        grouped.setdefault(entry.date, []).append(entry)
    return grouped


def get_streak_bonus(streak_days: int) -> int:
    """Bonus XP earned on the given day of a streak.

    Every bonus whose period divides the streak length applies, so day 21
    earns both the 3-day and the 7-day bonus.
    E.g. streak_days=3 -> 10, streak_days=7 -> 25, streak_days=21 -> 35.
    """
    if streak_days <= 0:
        return 0
    return sum(bonus for period, bonus in STREAK_BONUSES.items() if streak_days % period == 0)


def calculate_daily_xp(
    day: str,
    items: list[Entry],
    any_streak: int,
    six_plus_streak: int,
) -> DailyAggregate:
    """Calculate XP for a single day, given the streak counters including this day."""
    count = len(items)
    base_xp = sum(item.points for item in items)
    bonus_xp = get_streak_bonus(any_streak)
    if count >= BUSY_DAY_ENTRIES:
        bonus_xp += BUSY_DAY_BONUS
    return DailyAggregate(
        date=day,
        entry_count=count,
        base_xp=base_xp,
        bonus_xp=bonus_xp,
        total_xp=base_xp + bonus_xp,
        any_streak_length=any_streak,
        six_plus_streak_length=six_plus_streak,
    )


def aggregate_daily(entries: list[Entry]) -> list[DailyAggregate]:
    """Fold the entry log into one DailyAggregate per date that has entries.

    Process days chronologically. Both streak counters restart whenever a
    date is not exactly one calendar day after the previous active date;
    days without entries are never materialized.
    """
    results: list[DailyAggregate] = []
    any_streak = 0
    six_plus_streak = 0
    last_date: str | None = None

    for day, items in group_by_date(entries).items():
        if last_date is None or not is_next_day(last_date, day):
            any_streak = 0
            six_plus_streak = 0
        last_date = day

        if len(items) >= BUSY_DAY_ENTRIES:
            six_plus_streak += 1
        else:
            six_plus_streak = 0
        any_streak += 1

        results.append(calculate_daily_xp(day, items, any_streak, six_plus_streak))

    return results


def calculate_total_xp(daily: list[DailyAggregate]) -> int:
    """Sum all daily total_xp values."""
    return sum(day.total_xp for day in daily)
