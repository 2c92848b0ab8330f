"""SQLite key-value store for vie-gamifiee."""

import json
import logging
import sqlite3
from pathlib import Path

from vie_gamifiee.models import DEFAULT_ACTIONS, Action, BadgeSpec, Entry, Settings
from vie_gamifiee.state import GameState

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".vie-gamifiee" / "data.db"

KEY_ACTIONS = "vg_actions"
KEY_ENTRIES = "vg_entries"
KEY_SETTINGS = "vg_settings"
KEY_BADGES = "vg_custom_badges"

# Damaged values are copied here before anything is dropped from them.
QUARANTINE_SUFFIX = ".corrupt"


class Database:
    """SQLite key-value store with WAL mode. Values are JSON documents."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)
        self.conn.commit()

    def get_raw(self, key: str) -> str | None:
        """Get the stored JSON text for a key."""
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def get_json(self, key: str, fallback=None):
        """Decode the value stored under key, or return fallback if missing or unreadable."""
        raw = self.get_raw(key)
        if raw is None:
            return fallback
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable value stored under %r", key)
            return fallback

    def _upsert(self, key: str, value: object) -> None:
        self.conn.execute(
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, json.dumps(value, ensure_ascii=False)),
        )

    def set_json(self, key: str, value: object) -> None:
        """Set a JSON value (upsert)."""
        with self.conn:
            self._upsert(key, value)

    def delete(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()

    def keys(self) -> list[str]:
        rows = self.conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def quarantine(self, key: str) -> str:
        """Copy the raw value of key under key + QUARANTINE_SUFFIX and return that key.

        An existing copy is never replaced, so the first damaged version survives.
        """
        backup_key = key + QUARANTINE_SUFFIX
        with self.conn:
            self.conn.execute(
                "INSERT OR IGNORE INTO kv (key, value) SELECT ?, value FROM kv WHERE key = ?",
                (backup_key, key),
            )
        logger.warning("Kept a copy of the damaged value of %r under %r", key, backup_key)
        return backup_key

    def _load_list(self, key: str, factory, fallback: list) -> list:
        """Decode a stored collection item by item.

        Items that fail to parse are skipped, after the raw value has been
        quarantined. Only a value that is not a list at all falls back whole.
        """
        if self.get_raw(key) is None:
            return list(fallback)
        raw = self.get_json(key)
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed collection stored under %r", key)
            self.quarantine(key)
            return list(fallback)

        parsed = []
        rejected = 0
        for i, item in enumerate(raw):
            try:
                parsed.append(factory(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping %s[%d]: %s", key, i, e)
                rejected += 1
        if rejected:
            self.quarantine(key)
            if not parsed:
                return list(fallback)
        return parsed

    def _load_settings(self) -> Settings:
        if self.get_raw(KEY_SETTINGS) is None:
            return Settings()
        raw = self.get_json(KEY_SETTINGS)
        try:
            if not isinstance(raw, dict):
                raise TypeError("settings must be an object")
            return Settings.from_dict(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed settings stored under %r", KEY_SETTINGS)
            self.quarantine(KEY_SETTINGS)
            return Settings()

    def load_state(self) -> GameState:
        """Read all collections, falling back to defaults for missing or bad keys."""
        entries = self._load_list(KEY_ENTRIES, Entry.from_dict, [])
        return GameState(
            actions=self._load_list(KEY_ACTIONS, Action.from_dict, DEFAULT_ACTIONS),
            entries=sorted(entries, key=lambda e: e.date),
            settings=self._load_settings(),
            badges=self._load_list(KEY_BADGES, BadgeSpec.from_dict, []),
        )

    def save_state(self, state: GameState) -> None:
        """Persist all four collections in one transaction: all or none are written."""
        with self.conn:
            self._upsert(KEY_ACTIONS, [a.to_dict() for a in state.actions])
            self._upsert(KEY_ENTRIES, [e.to_dict() for e in state.entries])
            self._upsert(KEY_SETTINGS, state.settings.to_dict())
            self._upsert(KEY_BADGES, [b.to_dict() for b in state.badges])

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
