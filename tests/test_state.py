"""Tests for the validated CRUD operations on the game state."""

import pytest

from vie_gamifiee.errors import InvalidConfigError
from vie_gamifiee.models import BadgeMode, BadgeRule
from vie_gamifiee.state import GameState, validate_rule


@pytest.fixture
def state():
    return GameState()


class TestActions:
    def test_defaults_loaded(self, state):
        assert state.get_action("pomodoro").points == 5

    def test_add_action(self, state):
        action = state.add_action("  Yoga  ", 8)
        assert action.label == "Yoga"
        assert state.get_action(action.id) == action

    def test_add_action_rejects_negative_points(self, state):
        with pytest.raises(InvalidConfigError):
            state.add_action("Yoga", -1)

    def test_add_action_rejects_empty_label(self, state):
        with pytest.raises(InvalidConfigError):
            state.add_action("   ", 3)

    def test_add_action_rejects_duplicate_id(self, state):
        with pytest.raises(InvalidConfigError):
            state.add_action("Ping bis", 3, action_id="ping")

    def test_update_keeps_past_snapshots(self, state):
        entry = state.add_entry("ping", day="2024-01-01")
        state.update_action("ping", "Ping-pong", 20)
        assert state.get_action("ping").points == 20
        assert state.entries[0] == entry
        assert state.entries[0].points == 15

    def test_remove_action_keeps_entries(self, state):
        state.add_entry("ping", day="2024-01-01")
        state.remove_action("ping")
        assert state.get_action("ping") is None
        assert len(state.entries) == 1

    def test_remove_unknown(self, state):
        with pytest.raises(InvalidConfigError):
            state.remove_action("nope")


class TestEntries:
    def test_snapshot_label_and_points(self, state):
        entry = state.add_entry("symfony", day="2024-02-01", notes=" routing ")
        assert entry.points == 10
        assert entry.label == "Leçon Symfony terminée"
        assert entry.notes == "routing"

    def test_unknown_action(self, state):
        with pytest.raises(InvalidConfigError):
            state.add_entry("nope", day="2024-01-01")

    def test_invalid_date(self, state):
        with pytest.raises(InvalidConfigError):
            state.add_entry("ping", day="2024-02-30")

    def test_kept_sorted_by_date(self, state):
        state.add_entry("ping", day="2024-01-05")
        state.add_entry("ping", day="2024-01-01")
        state.add_entry("ping", day="2024-01-03")
        assert [e.date for e in state.entries] == ["2024-01-01", "2024-01-03", "2024-01-05"]

    def test_sans_distraction_only_for_pomodoro(self, state):
        assert state.add_entry("pomodoro", day="2024-01-01", sans_distraction=True).sans_distraction is True
        assert state.add_entry("pomo2", day="2024-01-01", sans_distraction=True).sans_distraction is False

    def test_remove_and_clear(self, state):
        first = state.add_entry("ping", day="2024-01-01")
        state.add_entry("ping", day="2024-01-02")
        state.remove_entry(first.id)
        assert len(state.entries) == 1
        assert state.clear_entries() == 1
        assert state.entries == []

    def test_remove_unknown_entry(self, state):
        with pytest.raises(InvalidConfigError):
            state.remove_entry("missing")


class TestBadges:
    def test_manual_badge_toggle(self, state):
        badge = state.add_badge("Voyage", cond="Partir en voyage")
        assert badge.mode is BadgeMode.MANUAL
        assert state.toggle_badge(badge.id).validated is True
        assert state.toggle_badge(badge.id).validated is False

    def test_auto_badge_cannot_toggle(self, state):
        badge = state.add_badge("Riche", rule=BadgeRule(kind="total_xp", xp=1000))
        assert badge.mode is BadgeMode.AUTO
        with pytest.raises(InvalidConfigError):
            state.toggle_badge(badge.id)

    def test_invalid_rule_rejected(self, state):
        with pytest.raises(InvalidConfigError):
            state.add_badge("X", rule=BadgeRule(kind="total_xp", xp=0))
        assert state.badges == []

    def test_remove_badge(self, state):
        badge = state.add_badge("Voyage")
        state.remove_badge(badge.id)
        assert state.get_badge(badge.id) is None


class TestValidateRule:
    def test_unknown_kind(self):
        with pytest.raises(InvalidConfigError):
            validate_rule(BadgeRule(kind="moon_phase"))

    def test_action_required(self):
        with pytest.raises(InvalidConfigError):
            validate_rule(BadgeRule(kind="action_count", count=3))

    def test_combo_needs_actions(self):
        with pytest.raises(InvalidConfigError):
            validate_rule(BadgeRule(kind="combo_actions", days=1))

    def test_valid(self):
        rule = BadgeRule(kind="weeks_with_action", action_id="ping", weeks=3)
        assert validate_rule(rule) is rule


class TestSettings:
    def test_update(self, state):
        settings = state.update_settings(code_master_lessons=12)
        assert settings.code_master_lessons == 12
        assert settings.regularite_days_needed == 5

    def test_rejects_zero(self, state):
        with pytest.raises(InvalidConfigError):
            state.update_settings(regularite_days_needed=0)

    def test_rejects_unknown(self, state):
        with pytest.raises(InvalidConfigError):
            state.update_settings(volume=3)
