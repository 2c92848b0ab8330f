"""The full derivation pipeline: entries -> daily aggregates -> progression -> badges."""

from __future__ import annotations

from dataclasses import dataclass

from vie_gamifiee.achievements import BadgeResult, evaluate_badges
from vie_gamifiee.levels import LEVEL_THRESHOLDS, LEVEL_TITLES
from vie_gamifiee.progression import Progression, summarize_progression
from vie_gamifiee.state import GameState
from vie_gamifiee.streaks import StreakInfo, calculate_streak
from vie_gamifiee.xp import DailyAggregate, aggregate_daily


@dataclass
class Snapshot:
    daily: list[DailyAggregate]
    progression: Progression
    badges: list[BadgeResult]
    streak: StreakInfo

    @property
    def unlocked_count(self) -> int:
        return sum(1 for b in self.badges if b.unlocked)


def compute_snapshot(
    state: GameState,
    thresholds: list[int] | None = None,
    titles: dict[int, str] | None = None,
    today: str | None = None,
) -> Snapshot:
    """Recompute every derived view from one consistent state snapshot."""
    daily = aggregate_daily(state.entries)
    progression = summarize_progression(
        daily,
        thresholds if thresholds is not None else LEVEL_THRESHOLDS,
        titles if titles is not None else LEVEL_TITLES,
    )
    badges = evaluate_badges(
        state.entries, daily, progression, state.actions, state.badges, state.settings
    )
    streak = calculate_streak({d.date for d in daily}, today=today)
    return Snapshot(daily=daily, progression=progression, badges=badges, streak=streak)
