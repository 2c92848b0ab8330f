"""Level curve and titles. Pure functions, no side effects."""

import math

MAX_LEVEL = 200

# Sparse map: a title applies from its level until the next mapped level.
LEVEL_TITLES: dict[int, str] = {
    1: "Novice du Jeu de Vie",
    5: "Explorateur Curieux",
    10: "Apprenti Motivé",
    20: "Concentré Émérite",
    30: "Maître du Focus",
    40: "Stratège Quotidien",
    50: "Expert de la Productivité",
    60: "Champion du Pomodoro",
    75: "Super Ping & Polyglotte",
    90: "Grand Maître de la Vie",
    100: "Légende Vivante",
}

LEVEL_2_XP = 50
GAP_GROWTH = 1.1


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def build_level_thresholds(max_level: int = MAX_LEVEL) -> list[int]:
    """Cumulative XP required for each level, indexed by level.

    Index 0 is unused (0). Level 1 -> 0 XP, level 2 -> 50 XP, then each gap
    is the previous gap * 1.1 (rounded half up), at least +1 XP.
    """
    max_level = max(1, max_level)
    thresholds = [0, 0]
    if max_level >= 2:
        thresholds.append(LEVEL_2_XP)
    for lvl in range(3, max_level + 1):
        gap = thresholds[lvl - 1] - thresholds[lvl - 2]
        thresholds.append(thresholds[lvl - 1] + max(1, _round_half_up(gap * GAP_GROWTH)))
    return thresholds


LEVEL_THRESHOLDS: list[int] = build_level_thresholds(MAX_LEVEL)


def max_level_of(thresholds: list[int]) -> int:
    """Highest level described by a threshold table."""
    return max(1, len(thresholds) - 1)


def level_from_xp(total_xp: int, thresholds: list[int] | None = None) -> int:
    """Greatest level whose threshold is <= total_xp (level 1 below level 2)."""
    table = thresholds if thresholds is not None else LEVEL_THRESHOLDS
    level = 1
    for lvl in range(2, len(table)):
        if table[lvl] <= total_xp:
            level = lvl
        else:
            break
    return level


def xp_progress_in_level(
    total_xp: int, level: int, thresholds: list[int] | None = None
) -> tuple[int, int]:
    """Return (xp_in_level, xp_for_next_level).

    At the top of the table there is no next level and xp_for_next is 0.
    """
    table = thresholds if thresholds is not None else LEVEL_THRESHOLDS
    top = max_level_of(table)
    level = max(1, min(level, top))
    next_level = min(level + 1, top)
    xp_in_level = total_xp - table[level]
    xp_for_next = max(0, table[next_level] - table[level])
    return (xp_in_level, xp_for_next)


def progress_fraction(xp_in_level: int, xp_for_next: int) -> float:
    """Fraction of the current level completed, clamped to [0.0, 1.0]."""
    if xp_for_next <= 0:
        return 1.0
    return max(0.0, min(1.0, xp_in_level / xp_for_next))


def title_for_level(level: int, titles: dict[int, str] | None = None) -> str:
    """Title of the greatest mapped level not exceeding level."""
    mapping = titles if titles is not None else LEVEL_TITLES
    if not mapping:
        return ""
    keys = sorted(mapping)
    title = mapping.get(1, mapping[keys[0]])
    for key in keys:
        if key <= level:
            title = mapping[key]
    return title
