"""User configuration for vie-gamifiee.

Everything lives in one home directory, ~/.vie-gamifiee unless
VIE_GAMIFIEE_HOME points elsewhere:

- config.json: where the store lives, the default export file and how many
  days `history` shows,
- data.db: the store itself (see vie_gamifiee.db).

Lookup order is environment, then config.json, then the defaults below.
Game settings (codeMasterLessons, ...) are part of the exported state and
live in the store, not here.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from vie_gamifiee.errors import InvalidConfigError

logger = logging.getLogger(__name__)

HOME_ENV = "VIE_GAMIFIEE_HOME"
DB_PATH_ENV = "VIE_GAMIFIEE_DB"

DEFAULT_HOME = Path.home() / ".vie-gamifiee"
CONFIG_FILENAME = "config.json"
DB_FILENAME = "data.db"
DEFAULT_HISTORY_DAYS = 14

CONFIG_KEYS: dict[str, type] = {
    "db_path": str,
    "export_path": str,
    "history_days": int,
}


def home_dir() -> Path:
    raw = os.getenv(HOME_ENV)
    return Path(raw).expanduser() if raw else DEFAULT_HOME


def default_config_path() -> Path:
    return home_dir() / CONFIG_FILENAME


def check_value(key: str, value: object) -> object:
    """Return value if it is valid for key, else raise InvalidConfigError."""
    expected = CONFIG_KEYS.get(key)
    if expected is None:
        raise InvalidConfigError(f"Unknown config key: {key}")
    if isinstance(value, bool) or not isinstance(value, expected):
        raise InvalidConfigError(f"'{key}' must be a {expected.__name__}, got {value!r}")
    if expected is str and not value.strip():
        raise InvalidConfigError(f"'{key}' must not be empty")
    if expected is int and value < 1:
        raise InvalidConfigError(f"'{key}' must be >= 1, got {value}")
    return value


def load_config(config_path: Path | None = None) -> dict:
    """Load the valid keys of config.json.

    A missing or unreadable file gives {}. Unknown or badly typed keys are
    dropped with a warning.
    """
    path = config_path or default_config_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        logger.warning("Ignoring unreadable config file %s", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: not a JSON object", path)
        return {}

    config = {}
    for key, value in data.items():
        try:
            config[key] = check_value(key, value)
        except InvalidConfigError as e:
            logger.warning("Ignoring %s in %s: %s", key, path, e)
    return config


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Validate data, then replace config.json atomically."""
    for key, value in data.items():
        check_value(key, value)
    path = config_path or default_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(data, indent=2, sort_keys=True) + "\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def set_value(key: str, value: object, config_path: Path | None = None) -> dict:
    """Set one key, keeping the others. Returns the saved config."""
    config = load_config(config_path)
    config[key] = check_value(key, value)
    save_config(config, config_path)
    return config


def get_db_path(config_path: Path | None = None) -> Path:
    """Store location: $VIE_GAMIFIEE_DB, then db_path, then <home>/data.db."""
    raw = os.getenv(DB_PATH_ENV) or load_config(config_path).get("db_path")
    return Path(raw).expanduser() if raw else home_dir() / DB_FILENAME


def get_export_path(config_path: Path | None = None) -> Path | None:
    """Return the configured export file path, or None if not set."""
    raw = load_config(config_path).get("export_path")
    return Path(raw).expanduser() if raw else None


def set_export_path(path: Path, config_path: Path | None = None) -> None:
    """Remember path as the default export file."""
    set_value("export_path", str(path), config_path)


def get_history_days(config_path: Path | None = None) -> int:
    return load_config(config_path).get("history_days", DEFAULT_HISTORY_DAYS)
