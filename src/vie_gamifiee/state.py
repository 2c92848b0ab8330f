"""Caller-owned collections and the validated CRUD operations on them.

Validation happens here, at the mutation boundary. The evaluators downstream
assume validated input but stay total on anything that slips through.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date

from vie_gamifiee.dates import format_date
from vie_gamifiee.errors import InvalidConfigError
from vie_gamifiee.models import (
    DEFAULT_ACTIONS,
    Action,
    BadgeKind,
    BadgeMode,
    BadgeRule,
    BadgeSpec,
    Entry,
    Settings,
)

logger = logging.getLogger(__name__)

# Only plain pomodoros can be flagged as done without distraction.
SANS_DISTRACTION_ACTION = "pomodoro"

_RULE_THRESHOLDS = ("count", "xp", "days", "weeks", "months")


def new_id() -> str:
    return str(uuid.uuid4())


def _check_points(points: object) -> int:
    if isinstance(points, bool) or not isinstance(points, int):
        raise InvalidConfigError(f"Points must be an integer, got {points!r}")
    if points < 0:
        raise InvalidConfigError(f"Points must be >= 0, got {points}")
    return points


def _check_label(label: str) -> str:
    clean = str(label or "").strip()
    if not clean:
        raise InvalidConfigError("Label must not be empty")
    return clean


def validate_rule(rule: BadgeRule) -> BadgeRule:
    """Reject unknown kinds, thresholds < 1 and rules missing their action."""
    try:
        kind = BadgeKind(rule.kind)
    except ValueError:
        raise InvalidConfigError(f"Unknown badge kind: {rule.kind!r}") from None
    for name in _RULE_THRESHOLDS:
        value = getattr(rule, name)
        if value is not None and value < 1:
            raise InvalidConfigError(f"Badge threshold '{name}' must be >= 1, got {value}")
    needs_action = {
        BadgeKind.ACTION_COUNT,
        BadgeKind.WEEKS_WITH_ACTION,
        BadgeKind.MULTI_MONTHS_ACTION,
        BadgeKind.MONTHLY_TOTAL_COUNT,
    }
    if kind in needs_action and not rule.action_id:
        raise InvalidConfigError(f"Badge kind '{kind.value}' needs an action id")
    if kind is BadgeKind.COMBO_ACTIONS and not rule.action_ids:
        raise InvalidConfigError("A combo badge needs at least one action")
    return rule


@dataclass
class GameState:
    """The four collections the engine reads: actions, entries, settings, badges."""

    actions: list[Action] = field(default_factory=lambda: list(DEFAULT_ACTIONS))
    entries: list[Entry] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    badges: list[BadgeSpec] = field(default_factory=list)

    # ── Actions ──────────────────────────────────────────────────────────────

    def get_action(self, action_id: str) -> Action | None:
        return next((a for a in self.actions if a.id == action_id), None)

    def add_action(self, label: str, points: int, action_id: str | None = None) -> Action:
        action = Action(id=action_id or new_id(), label=_check_label(label), points=_check_points(points))
        if self.get_action(action.id) is not None:
            raise InvalidConfigError(f"Action id already exists: {action.id}")
        self.actions.append(action)
        logger.debug("Added action %s (%s, %d pts)", action.id, action.label, action.points)
        return action

    def update_action(self, action_id: str, label: str, points: int) -> Action:
        """Change an action's label and points. Past entries keep their snapshot."""
        if self.get_action(action_id) is None:
            raise InvalidConfigError(f"Unknown action: {action_id}")
        updated = Action(id=action_id, label=_check_label(label), points=_check_points(points))
        self.actions = [updated if a.id == action_id else a for a in self.actions]
        return updated

    def remove_action(self, action_id: str) -> None:
        if self.get_action(action_id) is None:
            raise InvalidConfigError(f"Unknown action: {action_id}")
        self.actions = [a for a in self.actions if a.id != action_id]

    # ── Entries ──────────────────────────────────────────────────────────────

    def add_entry(
        self,
        action_id: str,
        day: str | date | None = None,
        notes: str = "",
        sans_distraction: bool = False,
        before_noon: bool = False,
    ) -> Entry:
        """Log an action, snapshotting its current label and points."""
        action = self.get_action(action_id)
        if action is None:
            raise InvalidConfigError(f"Unknown action: {action_id}")
        try:
            entry_date = format_date(day or date.today())
        except ValueError as e:
            raise InvalidConfigError(f"Invalid date: {day!r}") from e
        entry = Entry(
            id=new_id(),
            date=entry_date,
            action_id=action.id,
            points=action.points,
            label=action.label,
            notes=(notes or "").strip(),
            sans_distraction=sans_distraction and action.id == SANS_DISTRACTION_ACTION,
            before_noon=before_noon,
        )
        self.entries = sorted([*self.entries, entry], key=lambda e: e.date)
        return entry

    def remove_entry(self, entry_id: str) -> None:
        if not any(e.id == entry_id for e in self.entries):
            raise InvalidConfigError(f"Unknown entry: {entry_id}")
        self.entries = [e for e in self.entries if e.id != entry_id]

    def clear_entries(self) -> int:
        removed = len(self.entries)
        self.entries = []
        return removed

    # ── Custom badges ────────────────────────────────────────────────────────

    def get_badge(self, badge_id: str) -> BadgeSpec | None:
        return next((b for b in self.badges if b.id == badge_id), None)

    def add_badge(self, name: str, rule: BadgeRule | None = None, cond: str = "") -> BadgeSpec:
        """Add a manual badge (no rule) or an automatic one."""
        clean_name = _check_label(name)
        if rule is None:
            badge = BadgeSpec(id=new_id(), name=clean_name, mode=BadgeMode.MANUAL, cond=cond)
        else:
            badge = BadgeSpec(
                id=new_id(), name=clean_name, mode=BadgeMode.AUTO, rule=validate_rule(rule), cond=cond
            )
        self.badges.append(badge)
        return badge

    def toggle_badge(self, badge_id: str) -> BadgeSpec:
        """Flip the validated flag of a manual badge."""
        badge = self.get_badge(badge_id)
        if badge is None:
            raise InvalidConfigError(f"Unknown badge: {badge_id}")
        if badge.mode is not BadgeMode.MANUAL:
            raise InvalidConfigError(f"Badge '{badge.name}' is automatic and cannot be toggled")
        toggled = replace(badge, validated=not badge.validated)
        self.badges = [toggled if b.id == badge_id else b for b in self.badges]
        return toggled

    def remove_badge(self, badge_id: str) -> None:
        if self.get_badge(badge_id) is None:
            raise InvalidConfigError(f"Unknown badge: {badge_id}")
        self.badges = [b for b in self.badges if b.id != badge_id]

    # ── Settings ─────────────────────────────────────────────────────────────

    def update_settings(self, **knobs: int) -> Settings:
        """Update named settings, e.g. update_settings(code_master_lessons=12)."""
        current = self.settings
        for name, value in knobs.items():
            if not hasattr(current, name) or name.startswith("_"):
                raise InvalidConfigError(f"Unknown setting: {name}")
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfigError(f"Setting '{name}' must be an integer >= 1, got {value!r}")
        self.settings = replace(current, **knobs)
        return self.settings
