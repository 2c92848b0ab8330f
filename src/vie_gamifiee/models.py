"""Domain records for vie-gamifiee: actions, entries, settings, custom badges.

JSON field names follow the exchange format (camelCase), Python attributes are
snake_case. ``from_dict`` raises KeyError/TypeError/ValueError on bad shapes;
callers at the import boundary turn those into MalformedInputError.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from vie_gamifiee.dates import format_date


class BadgeKind(str, Enum):
    ACTION_COUNT = "action_count"
    TOTAL_XP = "total_xp"
    DAYS_WITH_6PLUS = "days_with_6plus"
    CONSECUTIVE_DAYS = "consecutive_days"
    BEFORE_NOON = "before_noon"
    WEEKS_WITH_ACTION = "weeks_with_action"
    LONGEST_STREAK = "longest_streak"
    WEEKLY_XP = "weekly_xp"
    DISTINCT_ACTIONS_PER_DAY = "distinct_actions_per_day"
    COMBO_ACTIONS = "combo_actions"
    MULTI_MONTHS_ACTION = "multi_months_action"
    MONTHLY_TOTAL_COUNT = "monthly_total_count"


class BadgeMode(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


def _as_int(value: object) -> int:
    """Read a whole number. 5, 5.0 and "5" are accepted; 5.9 and "5.9" are not."""
    if isinstance(value, bool):
        raise TypeError("expected a number, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        value = float(value.strip())
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected a whole number, got {value!r}")
        return int(value)
    raise TypeError(f"expected a number, got {type(value).__name__}")


def _as_str(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Action:
    id: str
    label: str
    points: int

    @classmethod
    def from_dict(cls, data: dict) -> Action:
        return cls(
            id=_as_str(data["id"]),
            label=_as_str(data.get("label", data["id"])),
            points=_as_int(data.get("points", 0)),
        )

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "points": self.points}


@dataclass(frozen=True)
class Entry:
    """One logged occurrence of an action. label and points are snapshots."""

    id: str
    date: str  # YYYY-MM-DD
    action_id: str
    points: int
    label: str = ""
    notes: str = ""
    sans_distraction: bool = False
    before_noon: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> Entry:
        return cls(
            id=_as_str(data["id"]),
            date=format_date(_as_str(data["date"])),
            action_id=_as_str(data["actionId"]),
            points=_as_int(data["points"]),
            label=_as_str(data.get("label") or ""),
            notes=_as_str(data.get("notes") or ""),
            sans_distraction=bool(data.get("sansDistraction", False)),
            before_noon=bool(data.get("beforeNoon", False)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "actionId": self.action_id,
            "label": self.label,
            "points": self.points,
            "notes": self.notes,
            "sansDistraction": self.sans_distraction,
            "beforeNoon": self.before_noon,
        }


@dataclass(frozen=True)
class Settings:
    """Numeric knobs used by the built-in special badges."""

    code_master_lessons: int = 10
    regularite_days_needed: int = 5

    _JSON_KEYS = {
        "codeMasterLessons": "code_master_lessons",
        "regulariteDaysNeeded": "regularite_days_needed",
    }

    @classmethod
    def from_dict(cls, data: dict, base: Settings | None = None) -> Settings:
        """Merge known keys of data over base (defaults when None). Unknown keys are ignored."""
        values = (base or cls()).to_dict()
        for json_key in cls._JSON_KEYS:
            if json_key in data:
                values[json_key] = _as_int(data[json_key])
        return cls(**{attr: values[key] for key, attr in cls._JSON_KEYS.items()})

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for key, attr in self._JSON_KEYS.items()}


@dataclass(frozen=True)
class BadgeRule:
    """Parameters of an automatic badge. Only the fields its kind reads matter."""

    kind: str
    action_id: str | None = None
    action_ids: tuple[str, ...] = ()
    count: int | None = None
    xp: int | None = None
    days: int | None = None
    weeks: int | None = None
    months: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> BadgeRule:
        """Build a rule from its JSON form, accepting the legacy parameter aliases."""
        if not isinstance(data, dict):
            raise TypeError(f"badge spec must be an object, got {type(data).__name__}")
        kind = _as_str(data["kind"])

        def opt_int(*keys: str) -> int | None:
            for key in keys:
                if data.get(key) is not None:
                    return _as_int(data[key])
            return None

        raw_actions = data.get("actions")
        if raw_actions is None:
            action_ids: tuple[str, ...] = ()
        elif isinstance(raw_actions, list):
            action_ids = tuple(_as_str(a) for a in raw_actions)
        else:
            action_ids = (_as_str(raw_actions),)

        days_keys = ("streak", "days") if kind == BadgeKind.LONGEST_STREAK else ("days",)
        return cls(
            kind=kind,
            action_id=_as_str(data["actionId"]) if data.get("actionId") is not None else None,
            action_ids=action_ids,
            count=opt_int("count", "distinct", "monthlyCount"),
            xp=opt_int("xp", "weekly_xp"),
            days=opt_int(*days_keys),
            weeks=opt_int("weeks"),
            months=opt_int("months"),
        )

    def to_dict(self) -> dict:
        data: dict = {"kind": self.kind}
        if self.action_id is not None:
            data["actionId"] = self.action_id
        if self.action_ids:
            data["actions"] = list(self.action_ids)
        for name in ("count", "xp", "days", "weeks", "months"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass(frozen=True)
class BadgeSpec:
    """A user-authored badge: manual (validated by hand) or automatic (rule)."""

    id: str
    name: str
    mode: BadgeMode = BadgeMode.MANUAL
    validated: bool = False
    rule: BadgeRule | None = None
    cond: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> BadgeSpec:
        mode = BadgeMode(data.get("mode", "manual"))
        rule = None
        if mode is BadgeMode.AUTO:
            rule = BadgeRule.from_dict(data["spec"])
        return cls(
            id=_as_str(data["id"]),
            name=_as_str(data["name"]),
            mode=mode,
            validated=bool(data.get("validated", False)),
            rule=rule,
            cond=_as_str(data.get("cond") or ""),
        )

    def to_dict(self) -> dict:
        data: dict = {"id": self.id, "name": self.name, "mode": self.mode.value}
        if self.mode is BadgeMode.MANUAL:
            data["validated"] = self.validated
        if self.rule is not None:
            data["spec"] = self.rule.to_dict()
        if self.cond:
            data["cond"] = self.cond
        return data


DEFAULT_ACTIONS: list[Action] = [
    Action(id="pomodoro", label="Pomodoro complet", points=5),
    Action(id="pomo2", label="2 Pomodoros consécutifs", points=12),
    Action(id="pomo4", label="4 Pomodoros consécutifs", points=25),
    Action(id="ping", label="Séance de ping-pong complète", points=15),
    Action(id="homefit", label="Programme physique maison complet", points=10),
    Action(id="roadmap", label="Nouvelle case roadmap / projet", points=10),
    Action(id="symfony", label="Leçon Symfony terminée", points=10),
    Action(id="english5", label="5 mots d’anglais appris", points=5),
    Action(id="menage", label="Tâche quotidienne / ménagère", points=10),
    Action(id="revision", label="Révision de cours", points=10),
    Action(id="revisionAhead", label="Révision de cours en avance", points=15),
    Action(id="defi", label="Défi spécial réussi", points=25),
]

DEFAULT_SETTINGS = Settings()

