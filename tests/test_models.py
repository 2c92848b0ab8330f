"""Tests for the JSON shapes of the domain records."""

import pytest

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


class TestAction:
    def test_from_dict(self):
        action = Action.from_dict({"id": "yoga", "label": "Yoga", "points": 8})
        assert action == Action(id="yoga", label="Yoga", points=8)

    def test_numeric_string_points(self):
        assert Action.from_dict({"id": "x", "label": "X", "points": "7"}).points == 7

    def test_missing_id(self):
        with pytest.raises(KeyError):
            Action.from_dict({"label": "X", "points": 1})

    def test_boolean_points_rejected(self):
        with pytest.raises(TypeError):
            Action.from_dict({"id": "x", "label": "X", "points": True})

    def test_whole_float_points_accepted(self):
        assert Action.from_dict({"id": "x", "label": "X", "points": 5.0}).points == 5

    @pytest.mark.parametrize("points", [5.9, "5.9", "nan", float("inf")])
    def test_fractional_points_rejected(self, points):
        with pytest.raises(ValueError):
            Action.from_dict({"id": "x", "label": "X", "points": points})

    def test_default_catalogue(self):
        ids = [a.id for a in DEFAULT_ACTIONS]
        assert len(ids) == len(set(ids)) == 12
        assert Action(id="pomo4", label="4 Pomodoros consécutifs", points=25) in DEFAULT_ACTIONS


class TestEntry:
    def test_camel_case_round_trip(self):
        data = {
            "id": "e1",
            "date": "2024-01-02",
            "actionId": "pomodoro",
            "label": "Pomodoro complet",
            "points": 5,
            "notes": "matin",
            "sansDistraction": True,
            "beforeNoon": False,
        }
        entry = Entry.from_dict(data)
        assert entry.action_id == "pomodoro"
        assert entry.sans_distraction is True
        assert entry.to_dict() == data

    def test_timestamp_date_truncated(self):
        entry = Entry.from_dict({"id": "e1", "date": "2024-01-02T09:30:00", "actionId": "a", "points": 1})
        assert entry.date == "2024-01-02"

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            Entry.from_dict({"id": "e1", "date": "hier", "actionId": "a", "points": 1})

    def test_optional_fields_default(self):
        entry = Entry.from_dict({"id": "e1", "date": "2024-01-02", "actionId": "a", "points": 1, "notes": None})
        assert entry.notes == ""
        assert entry.before_noon is False


class TestSettings:
    def test_defaults(self):
        assert Settings().to_dict() == {"codeMasterLessons": 10, "regulariteDaysNeeded": 5}

    def test_partial_merge_over_base(self):
        base = Settings(code_master_lessons=20, regularite_days_needed=7)
        merged = Settings.from_dict({"regulariteDaysNeeded": 3, "unknown": 1}, base)
        assert merged == Settings(code_master_lessons=20, regularite_days_needed=3)


class TestBadgeRule:
    def test_legacy_aliases(self):
        assert BadgeRule.from_dict({"kind": "longest_streak", "streak": 5}).days == 5
        assert BadgeRule.from_dict({"kind": "distinct_actions_per_day", "distinct": 4}).count == 4
        assert BadgeRule.from_dict({"kind": "monthly_total_count", "monthlyCount": 12}).count == 12
        assert BadgeRule.from_dict({"kind": "weekly_xp", "weekly_xp": 80}).xp == 80

    def test_single_action_coerced_to_tuple(self):
        rule = BadgeRule.from_dict({"kind": "combo_actions", "actions": "ping"})
        assert rule.action_ids == ("ping",)

    def test_to_dict_omits_unset(self):
        rule = BadgeRule(kind=BadgeKind.TOTAL_XP.value, xp=500)
        assert rule.to_dict() == {"kind": "total_xp", "xp": 500}

    def test_not_an_object(self):
        with pytest.raises(TypeError):
            BadgeRule.from_dict(["total_xp"])


class TestBadgeSpec:
    def test_auto_round_trip(self):
        data = {
            "id": "b1",
            "name": "Combo",
            "mode": "auto",
            "spec": {"kind": "combo_actions", "actions": ["ping", "menage"], "days": 2},
        }
        badge = BadgeSpec.from_dict(data)
        assert badge.mode is BadgeMode.AUTO
        assert badge.rule.action_ids == ("ping", "menage")
        assert badge.to_dict() == data

    def test_manual_defaults(self):
        badge = BadgeSpec.from_dict({"id": "b2", "name": "Voyage"})
        assert badge.mode is BadgeMode.MANUAL
        assert badge.validated is False
        assert badge.rule is None

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            BadgeSpec.from_dict({"id": "b3", "name": "X", "mode": "magic"})
