"""Badge definitions and checking for vie-gamifiee.

Three families of badges are evaluated, in this order:

- special badges: a fixed catalogue tied to the default actions,
- per-action tier badges: "last earned" + "next target" for every action,
- custom badges: user-authored, manual or driven by a BadgeRule.

Everything here reads a BadgeContext built from one snapshot of the log;
nothing is cached between calls.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from vie_gamifiee.dates import calendar_week_key, iso_week_key, month_key
from vie_gamifiee.models import Action, BadgeKind, BadgeMode, BadgeRule, BadgeSpec, Entry, Settings
from vie_gamifiee.progression import Progression
from vie_gamifiee.streaks import longest_streak
from vie_gamifiee.xp import BUSY_DAY_ENTRIES, DailyAggregate, group_by_date


class BadgeCategory(str, Enum):
    SPECIAL = "special"
    ACTION = "action"
    CUSTOM = "custom"


@dataclass
class BadgeCheck:
    ok: bool
    description: str


@dataclass
class BadgeResult:
    id: str
    name: str
    unlocked: bool
    description: str
    category: BadgeCategory = BadgeCategory.CUSTOM

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unlocked": self.unlocked,
            "description": self.description,
            "category": self.category.value,
        }


@dataclass
class BadgeContext:
    entries: list[Entry]
    daily: list[DailyAggregate]
    progression: Progression
    actions: dict[str, Action]
    by_date: dict[str, list[Entry]]
    count_by_action: Counter

    def label(self, action_id: str | None) -> str:
        """Action label, or the raw id once the action has been deleted."""
        if action_id is None:
            return "?"
        action = self.actions.get(action_id)
        return action.label if action else action_id

    def entries_for(self, action_id: str | None) -> list[Entry]:
        return [e for e in self.entries if e.action_id == action_id]

    def action_ids_on(self, day: str) -> set[str]:
        return {e.action_id for e in self.by_date.get(day, [])}


def build_context(
    entries: list[Entry],
    daily: list[DailyAggregate],
    progression: Progression,
    actions: list[Action],
) -> BadgeContext:
    return BadgeContext(
        entries=list(entries),
        daily=list(daily),
        progression=progression,
        actions={a.id: a for a in actions},
        by_date=group_by_date(entries),
        count_by_action=Counter(e.action_id for e in entries),
    )


def _required(value: int | None, default: int | None = None) -> int | None:
    """Normalize a rule threshold. None means the rule can never be satisfied."""
    if not value:
        value = default
    if value is None or value < 1:
        return None
    return value


def _reached(current: int, target: int | None) -> bool:
    return target is not None and current >= target


def _show(value: int | None) -> str:
    return "?" if value is None else str(value)


# ── Rule evaluators, one per BadgeKind ────────────────────────────────────────


def _eval_action_count(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.count)
    count = ctx.count_by_action.get(rule.action_id, 0)
    return BadgeCheck(
        ok=_reached(count, target),
        description=f'Réaliser "{ctx.label(rule.action_id)}" {_show(target)} fois',
    )


def _eval_total_xp(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.xp)
    return BadgeCheck(
        ok=_reached(ctx.progression.total_xp, target),
        description=f"Atteindre {_show(target)} XP au total",
    )


def _eval_days_with_6plus(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.days)
    busy_days = sum(1 for d in ctx.daily if d.entry_count >= BUSY_DAY_ENTRIES)
    return BadgeCheck(
        ok=_reached(busy_days, target),
        description=f"Avoir {_show(target)}+ jours avec {BUSY_DAY_ENTRIES}+ actions",
    )


def _eval_consecutive_days(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.days)
    best = max((d.any_streak_length for d in ctx.daily), default=0)
    return BadgeCheck(
        ok=_reached(best, target),
        description=f"Avoir {_show(target)} jours consécutifs avec ≥1 action",
    )


def _eval_before_noon(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    return BadgeCheck(
        ok=any(e.before_noon for e in ctx.entries),
        description="Faire une action avant midi",
    )


def _eval_weeks_with_action(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.weeks)
    weeks = {iso_week_key(e.date) for e in ctx.entries_for(rule.action_id)}
    return BadgeCheck(
        ok=_reached(len(weeks), target),
        description=f"Faire l'action {ctx.label(rule.action_id)} {_show(target)} semaines",
    )


def _eval_longest_streak(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.days, default=3)
    best = longest_streak({e.date for e in ctx.entries})
    return BadgeCheck(
        ok=_reached(best, target),
        description=f"Avoir une série de {_show(target)} jours consécutifs",
    )


def _eval_weekly_xp(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.xp, default=50)
    per_week: Counter = Counter()
    for entry in ctx.entries:
        per_week[calendar_week_key(entry.date)] += entry.points
    best = max(0, *per_week.values()) if per_week else 0
    return BadgeCheck(
        ok=_reached(best, target),
        description=f"Avoir >= {_show(target)} XP sur une semaine",
    )


def _eval_distinct_actions_per_day(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    distinct = _required(rule.count, default=3)
    days = _required(rule.days, default=1)
    matched = 0
    if distinct is not None:
        matched = sum(1 for day in ctx.by_date if len(ctx.action_ids_on(day)) >= distinct)
    return BadgeCheck(
        ok=distinct is not None and _reached(matched, days),
        description=f"Avoir {_show(distinct)} actions distinctes dans {_show(days)} journée(s)",
    )


def _eval_combo_actions(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    needed = set(rule.action_ids)
    if not needed:
        return BadgeCheck(ok=False, description="Aucune action sélectionnée pour le combo")
    days = _required(rule.days, default=1)
    matched = sum(1 for day in ctx.by_date if needed <= ctx.action_ids_on(day))
    labels = " + ".join(ctx.label(a) for a in rule.action_ids)
    return BadgeCheck(
        ok=_reached(matched, days),
        description=f"Faire {labels} le même jour, {_show(days)} fois",
    )


def _eval_multi_months_action(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.months, default=2)
    months = {month_key(e.date) for e in ctx.entries_for(rule.action_id)}
    return BadgeCheck(
        ok=_reached(len(months), target),
        description=f"Faire l'action {ctx.label(rule.action_id)} sur {_show(target)} mois différents",
    )


def _eval_monthly_total_count(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    target = _required(rule.count, default=10)
    per_month = Counter(month_key(e.date) for e in ctx.entries_for(rule.action_id))
    return BadgeCheck(
        ok=any(_reached(n, target) for n in per_month.values()),
        description=f"Réaliser {_show(target)} fois {ctx.label(rule.action_id)} en 1 mois",
    )


RULE_EVALUATORS: dict[BadgeKind, Callable[[BadgeRule, BadgeContext], BadgeCheck]] = {
    BadgeKind.ACTION_COUNT: _eval_action_count,
    BadgeKind.TOTAL_XP: _eval_total_xp,
    BadgeKind.DAYS_WITH_6PLUS: _eval_days_with_6plus,
    BadgeKind.CONSECUTIVE_DAYS: _eval_consecutive_days,
    BadgeKind.BEFORE_NOON: _eval_before_noon,
    BadgeKind.WEEKS_WITH_ACTION: _eval_weeks_with_action,
    BadgeKind.LONGEST_STREAK: _eval_longest_streak,
    BadgeKind.WEEKLY_XP: _eval_weekly_xp,
    BadgeKind.DISTINCT_ACTIONS_PER_DAY: _eval_distinct_actions_per_day,
    BadgeKind.COMBO_ACTIONS: _eval_combo_actions,
    BadgeKind.MULTI_MONTHS_ACTION: _eval_multi_months_action,
    BadgeKind.MONTHLY_TOTAL_COUNT: _eval_monthly_total_count,
}


def evaluate_rule(rule: BadgeRule, ctx: BadgeContext) -> BadgeCheck:
    """Evaluate an automatic badge rule. Unknown kinds are never unlocked."""
    try:
        kind = BadgeKind(rule.kind)
    except ValueError:
        return BadgeCheck(ok=False, description="Condition inconnue")
    return RULE_EVALUATORS[kind](rule, ctx)


def evaluate_custom_badge(badge: BadgeSpec, ctx: BadgeContext) -> BadgeResult:
    if badge.mode is BadgeMode.MANUAL or badge.rule is None:
        return BadgeResult(
            id=badge.id,
            name=badge.name,
            unlocked=badge.validated if badge.mode is BadgeMode.MANUAL else False,
            description=badge.cond or "Validé manuellement",
            category=BadgeCategory.CUSTOM,
        )
    check = evaluate_rule(badge.rule, ctx)
    return BadgeResult(
        id=badge.id,
        name=badge.name,
        unlocked=check.ok,
        description=check.description or badge.cond or "Condition automatique",
        category=BadgeCategory.CUSTOM,
    )


# ── Special badges ────────────────────────────────────────────────────────────

POMODORO_WEIGHTS: dict[str, int] = {"pomodoro": 1, "pomo2": 2, "pomo4": 4}
SPORT_ACTIONS = frozenset({"ping", "homefit"})
STUDY_ACTIONS = frozenset({"pomodoro", "pomo2", "pomo4", "revision", "revisionAhead", "symfony"})
HOUSEHOLD_ACTIONS = frozenset({"menage"})
WORDS_PER_ENGLISH_ENTRY = 5


@dataclass
class SpecialBadgeDef:
    id: str
    name: str
    cond: str  # may reference {settings.<field>}
    check: Callable[[BadgeContext, Settings], bool]


def _weeks_with(ctx: BadgeContext, action_id: str) -> int:
    return len({iso_week_key(e.date) for e in ctx.entries_for(action_id)})


def _some_day(ctx: BadgeContext, predicate: Callable[[set[str]], bool]) -> bool:
    return any(predicate(ctx.action_ids_on(day)) for day in ctx.by_date)


def _monthly_pomodoros(ctx: BadgeContext) -> int:
    per_month: Counter = Counter()
    for entry in ctx.entries:
        per_month[month_key(entry.date)] += POMODORO_WEIGHTS.get(entry.action_id, 0)
    return max(per_month.values(), default=0)


def _is_polyvalent(ids: set[str]) -> bool:
    return bool(ids & SPORT_ACTIONS) and bool(ids & STUDY_ACTIONS) and bool(ids & HOUSEHOLD_ACTIONS)


SPECIAL_BADGES: list[SpecialBadgeDef] = [
    SpecialBadgeDef(
        "concentre", "Concentré", "1 Pomodoro sans distraction",
        lambda ctx, s: any(e.action_id == "pomodoro" and e.sans_distraction for e in ctx.entries),
    ),
    SpecialBadgeDef(
        "marathonien", "Marathonien", "4 Pomodoros consécutifs",
        lambda ctx, s: ctx.count_by_action.get("pomo4", 0) >= 1,
    ),
    SpecialBadgeDef(
        "superping", "Super Ping", "3 semaines ping-pong",
        lambda ctx, s: _weeks_with(ctx, "ping") >= 3,
    ),
    SpecialBadgeDef(
        "forcemaison", "Force Maison", "3 semaines programme maison",
        lambda ctx, s: _weeks_with(ctx, "homefit") >= 3,
    ),
    SpecialBadgeDef(
        "codemaster", "Code Master", "≥ {settings.code_master_lessons} leçons Symfony",
        lambda ctx, s: _reached(ctx.count_by_action.get("symfony", 0), _required(s.code_master_lessons)),
    ),
    SpecialBadgeDef(
        "polyglotte", "Polyglotte", "50 mots anglais",
        lambda ctx, s: ctx.count_by_action.get("english5", 0) * WORDS_PER_ENGLISH_ENTRY >= 50,
    ),
    SpecialBadgeDef(
        "regularite", "Régularité", "≥ {settings.regularite_days_needed} jours avec 6+ actions",
        lambda ctx, s: _reached(
            sum(1 for d in ctx.daily if d.entry_count >= BUSY_DAY_ENTRIES),
            _required(s.regularite_days_needed),
        ),
    ),
    SpecialBadgeDef(
        "matinee", "Matinée Parfaite", "Avant midi (marque manuelle)",
        lambda ctx, s: any(e.before_noon for e in ctx.entries),
    ),
    SpecialBadgeDef(
        "multitask", "Multi-Tasker", "3 types d’actions en 1 jour",
        lambda ctx, s: _some_day(ctx, lambda ids: len(ids) >= 3),
    ),
    SpecialBadgeDef(
        "marathonMensuel", "Marathon Mensuel", "100 Pomodoros en 1 mois",
        lambda ctx, s: _monthly_pomodoros(ctx) >= 100,
    ),
    SpecialBadgeDef(
        "creatif", "Créatif", "Nouvelle case roadmap/projet",
        lambda ctx, s: ctx.count_by_action.get("roadmap", 0) >= 1,
    ),
    # Reading is not logged as an action yet, so this one stays locked.
    SpecialBadgeDef(
        "lecture", "Lecture Éclair", "Livre ou 5 chapitres/sem.",
        lambda ctx, s: False,
    ),
    SpecialBadgeDef(
        "polyvalent", "Polyvalent", "Sport+études+ménages en 1 jour",
        lambda ctx, s: _some_day(ctx, _is_polyvalent),
    ),
    SpecialBadgeDef(
        "planificateur", "Planificateur", "7 jours planning suivis",
        lambda ctx, s: any(d.any_streak_length >= 7 for d in ctx.daily),
    ),
    SpecialBadgeDef(
        "championBonus", "Champion des Bonus", "4 jours d’affilée avec 6+ actions",
        lambda ctx, s: any(d.six_plus_streak_length >= 4 for d in ctx.daily),
    ),
    SpecialBadgeDef(
        "defiSupreme", "Défi Suprême", "Défi spécial difficile",
        lambda ctx, s: ctx.count_by_action.get("defi", 0) >= 1,
    ),
    SpecialBadgeDef(
        "legende", "Légende Vivante", "Atteindre le niveau 100",
        lambda ctx, s: ctx.progression.level >= 100,
    ),
]


def check_special_badges(ctx: BadgeContext, settings: Settings) -> list[BadgeResult]:
    return [
        BadgeResult(
            id=badge.id,
            name=badge.name,
            unlocked=badge.check(ctx, settings),
            description=badge.cond.format(settings=settings),
            category=BadgeCategory.SPECIAL,
        )
        for badge in SPECIAL_BADGES
    ]


# ── Per-action tier badges ────────────────────────────────────────────────────

ACTION_TIERS: list[tuple[int, str]] = [
    (1, "Débutant"),
    (3, "Apprenti"),
    (5, "Confirmé"),
    (10, "Expert"),
    (20, "Maître"),
    (50, "Légende"),
    (75, "Héros"),
    (100, "Immortel"),
]


def tier_progress(count: int) -> tuple[tuple[int, str] | None, tuple[int, str] | None]:
    """Return (last tier reached, next tier) for a completion count."""
    last_reached = None
    for tier in ACTION_TIERS:
        if count >= tier[0]:
            last_reached = tier
        else:
            return last_reached, tier
    return last_reached, None


def _tier_badge(action: Action, tier: tuple[int, str], unlocked: bool) -> BadgeResult:
    threshold, tier_name = tier
    return BadgeResult(
        id=f"action-{action.id}-lvl{threshold}",
        name=f"{tier_name} {action.label}",
        unlocked=unlocked,
        description=f'Réaliser l\'action "{action.label}" {threshold} fois',
        category=BadgeCategory.ACTION,
    )


def action_tier_badges(actions: list[Action], ctx: BadgeContext) -> list[BadgeResult]:
    """Last tier earned and next tier to reach for each action.

    Only those two rows are ever shown per action, never the whole ladder:
    an action with no completions shows just its first tier as the target,
    an action past the last tier shows just that tier as earned.
    """
    results: list[BadgeResult] = []
    for action in actions:
        last_reached, next_tier = tier_progress(ctx.count_by_action.get(action.id, 0))
        if last_reached is not None:
            results.append(_tier_badge(action, last_reached, unlocked=True))
        if next_tier is not None:
            results.append(_tier_badge(action, next_tier, unlocked=False))
    return results


# ── Entry point ───────────────────────────────────────────────────────────────


def evaluate_badges(
    entries: list[Entry],
    daily: list[DailyAggregate],
    progression: Progression,
    actions: list[Action],
    badge_specs: list[BadgeSpec],
    settings: Settings,
) -> list[BadgeResult]:
    """Evaluate every badge: special, then per-action tiers, then custom."""
    ctx = build_context(entries, daily, progression, actions)
    results = check_special_badges(ctx, settings)
    results.extend(action_tier_badges(actions, ctx))
    results.extend(evaluate_custom_badge(badge, ctx) for badge in badge_specs)
    return results


def get_newly_unlocked(previous: list[BadgeResult], current: list[BadgeResult]) -> list[BadgeResult]:
    """Compare previous and current badge states, return newly unlocked ones."""
    prev_unlocked = {b.id for b in previous if b.unlocked}
    return [b for b in current if b.unlocked and b.id not in prev_unlocked]
