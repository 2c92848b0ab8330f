"""Fold daily aggregates into total XP, level, title and a recent-history series."""

from __future__ import annotations

from dataclasses import dataclass, field

from vie_gamifiee.dates import month_day
from vie_gamifiee.levels import (
    LEVEL_THRESHOLDS,
    LEVEL_TITLES,
    level_from_xp,
    max_level_of,
    progress_fraction,
    title_for_level,
    xp_progress_in_level,
)
from vie_gamifiee.xp import DailyAggregate, calculate_total_xp

HISTORY_DAYS = 14


@dataclass
class ChartPoint:
    date: str  # MM-DD
    xp: int


@dataclass
class Progression:
    total_xp: int
    level: int
    title: str
    xp_in_level: int
    xp_for_next: int
    next_level: int
    progress_fraction: float
    series: list[ChartPoint] = field(default_factory=list)


def recent_series(daily: list[DailyAggregate], days: int = HISTORY_DAYS) -> list[ChartPoint]:
    """The last `days` active days as (MM-DD, total XP) points."""
    if days <= 0:
        return []
    return [ChartPoint(date=month_day(d.date), xp=d.total_xp) for d in daily[-days:]]


def summarize_progression(
    daily: list[DailyAggregate],
    thresholds: list[int] | None = None,
    titles: dict[int, str] | None = None,
) -> Progression:
    table = thresholds if thresholds is not None else LEVEL_THRESHOLDS
    title_map = titles if titles is not None else LEVEL_TITLES

    total_xp = calculate_total_xp(daily)
    level = level_from_xp(total_xp, table)
    xp_in_level, xp_for_next = xp_progress_in_level(total_xp, level, table)
    return Progression(
        total_xp=total_xp,
        level=level,
        title=title_for_level(level, title_map),
        xp_in_level=xp_in_level,
        xp_for_next=xp_for_next,
        next_level=min(level + 1, max_level_of(table)),
        progress_fraction=progress_fraction(xp_in_level, xp_for_next),
        series=recent_series(daily),
    )
