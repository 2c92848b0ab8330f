"""Tests for the SQLite key-value store."""

import json
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from vie_gamifiee.db import KEY_ACTIONS, KEY_ENTRIES, KEY_SETTINGS, QUARANTINE_SUFFIX, Database
from vie_gamifiee.models import DEFAULT_ACTIONS, Action, BadgeRule, Settings
from vie_gamifiee.state import GameState


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()


class TestDatabaseCreation:
    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "a" / "b" / "test.db"
        database = Database(db_path=db_path)
        assert db_path.exists()
        database.close()

    def test_kv_table_exists(self, db):
        cursor = db.conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        assert "kv" in [row["name"] for row in cursor.fetchall()]

    def test_wal_mode_enabled(self, db):
        result = db.conn.execute("PRAGMA journal_mode").fetchone()
        assert result[0] == "wal"


class TestKeyValue:
    def test_missing_key_returns_fallback(self, db):
        assert db.get_json("nope") is None
        assert db.get_json("nope", []) == []

    def test_set_and_get(self, db):
        db.set_json("k", {"a": [1, 2]})
        assert db.get_json("k") == {"a": [1, 2]}

    def test_upsert(self, db):
        db.set_json("k", 1)
        db.set_json("k", 2)
        assert db.get_json("k") == 2
        assert db.keys() == ["k"]

    def test_unicode_kept_readable(self, db):
        db.set_json("k", "ménage")
        assert "ménage" in db.get_raw("k")

    def test_corrupt_value_returns_fallback(self, db):
        db.conn.execute("INSERT INTO kv (key, value) VALUES (?, ?)", ("k", "{not json"))
        db.conn.commit()
        assert db.get_json("k", "fallback") == "fallback"

    def test_delete(self, db):
        db.set_json("k", 1)
        db.delete("k")
        assert db.get_raw("k") is None


class TestState:
    def test_empty_store_gives_defaults(self, db):
        state = db.load_state()
        assert state.actions == DEFAULT_ACTIONS
        assert state.entries == []
        assert state.settings == Settings()
        assert state.badges == []

    def test_round_trip(self, db):
        state = GameState()
        state.add_action("Yoga", 8, action_id="yoga")
        state.add_entry("yoga", day="2024-01-02", before_noon=True)
        state.add_entry("ping", day="2024-01-01")
        state.update_settings(code_master_lessons=3)
        state.add_badge("Yogi", rule=BadgeRule(kind="action_count", action_id="yoga", count=5))
        db.save_state(state)

        loaded = db.load_state()
        assert loaded == state

    def test_survives_reopen(self, tmp_path):
        db_path = tmp_path / "test.db"
        first = Database(db_path=db_path)
        state = GameState()
        state.add_entry("ping", day="2024-01-01")
        first.save_state(state)
        first.close()

        second = Database(db_path=db_path)
        assert len(second.load_state().entries) == 1
        second.close()

    def test_collection_that_is_not_a_list_falls_back(self, db):
        db.set_json(KEY_ACTIONS, "not a list")
        state = db.load_state()
        assert state.actions == DEFAULT_ACTIONS
        assert db.get_json(KEY_ACTIONS + QUARANTINE_SUFFIX) == "not a list"

    def test_malformed_settings_fall_back(self, db):
        db.set_json(KEY_SETTINGS, {"codeMasterLessons": "many"})
        assert db.load_state().settings == Settings()
        assert db.get_json(KEY_SETTINGS + QUARANTINE_SUFFIX) == {"codeMasterLessons": "many"}


class TestDamagedEntries:
    def _store_log_with_one_bad_entry(self, db) -> list[dict]:
        state = GameState()
        first = date(2024, 1, 1)
        for i in range(20):
            state.add_entry("ping", day=first + timedelta(days=i))
        db.save_state(state)
        stored = db.get_json(KEY_ENTRIES)
        stored.append({"id": "bad", "date": "2024-02-30", "actionId": "ping", "points": 15})
        db.set_json(KEY_ENTRIES, stored)
        return stored

    def test_bad_entry_is_skipped(self, db):
        self._store_log_with_one_bad_entry(db)
        state = db.load_state()
        assert len(state.entries) == 20
        assert "bad" not in {e.id for e in state.entries}

    def test_logging_after_a_bad_entry_keeps_the_log(self, db):
        stored = self._store_log_with_one_bad_entry(db)
        state = db.load_state()
        state.add_entry("ping", day="2024-03-01")
        db.save_state(state)
        assert len(db.get_json(KEY_ENTRIES)) == 21
        assert db.get_json(KEY_ENTRIES + QUARANTINE_SUFFIX) == stored

    def test_unreadable_json_is_kept_aside(self, db):
        db.conn.execute("INSERT INTO kv (key, value) VALUES (?, ?)", (KEY_ENTRIES, "[{broken"))
        db.conn.commit()
        state = db.load_state()
        state.add_entry("ping", day="2024-03-01")
        db.save_state(state)
        assert db.get_raw(KEY_ENTRIES + QUARANTINE_SUFFIX) == "[{broken"

    def test_quarantine_keeps_first_copy(self, db):
        db.set_json(KEY_ACTIONS, "first")
        db.quarantine(KEY_ACTIONS)
        db.set_json(KEY_ACTIONS, "second")
        db.quarantine(KEY_ACTIONS)
        assert db.get_json(KEY_ACTIONS + QUARANTINE_SUFFIX) == "first"


class TestSaveStateTransaction:
    def test_failed_write_leaves_store_unchanged(self, db):
        old = GameState()
        old.add_entry("ping", day="2024-01-01")
        db.save_state(old)

        new = GameState(actions=[Action(id="yoga", label="Yoga", points=8)])
        new.add_entry("yoga", day="2024-02-01")
        new.update_settings(code_master_lessons=3)

        original_upsert = db._upsert
        written = []

        def fail_on_third_write(key, value):
            written.append(key)
            if len(written) == 3:
                raise OSError("disk full")
            original_upsert(key, value)

        with patch.object(db, "_upsert", side_effect=fail_on_third_write):
            with pytest.raises(OSError):
                db.save_state(new)

        assert len(written) == 3
        assert db.load_state() == old

    def test_set_json_commits(self, tmp_path):
        db_path = tmp_path / "test.db"
        first = Database(db_path=db_path)
        first.set_json("k", {"v": 1})
        first.close()
        second = Database(db_path=db_path)
        assert json.loads(second.get_raw("k")) == {"v": 1}
        second.close()
