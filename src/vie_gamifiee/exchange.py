"""JSON export / import of the game state.

Payload: {"entries": [...], "settings": {...}, "actions": [...], "badges": [...]}.
Import is all-or-nothing: the whole payload is parsed before anything is
replaced, and missing top-level keys leave the matching collection as is.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path

from vie_gamifiee.errors import MalformedInputError
from vie_gamifiee.models import Action, BadgeSpec, Entry, Settings
from vie_gamifiee.state import GameState

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "vie-gamifiee.json"


def export_payload(state: GameState) -> dict:
    """Serialize the state to the exchange payload."""
    return {
        "entries": [e.to_dict() for e in state.entries],
        "settings": state.settings.to_dict(),
        "actions": [a.to_dict() for a in state.actions],
        "badges": [b.to_dict() for b in state.badges],
    }


def dumps(state: GameState) -> str:
    return json.dumps(export_payload(state), indent=2, ensure_ascii=False) + "\n"


def write_export(state: GameState, output_path: Path) -> None:
    """Write the export payload to output_path using atomic write."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=output_path.parent, suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            f.write(dumps(state))
        os.replace(tmp_path, output_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    logger.info("Exported %d entries to %s", len(state.entries), output_path)


def parse_payload(text: str) -> dict:
    """Decode payload text, raising MalformedInputError on bad JSON or a non-object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedInputError("Payload must be a JSON object")
    return data


def _parse_list(data: dict, key: str, factory) -> list | None:
    if key not in data or data[key] is None:
        return None
    raw = data[key]
    if not isinstance(raw, list):
        raise MalformedInputError(f"'{key}' must be a list")
    parsed = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise MalformedInputError(f"'{key}[{i}]' must be an object")
        try:
            parsed.append(factory(item))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedInputError(f"'{key}[{i}]' is invalid: {e}") from e
    return parsed


def import_payload(state: GameState, data: dict) -> GameState:
    """Return a new state with the payload's collections applied over state.

    state itself is never modified.
    """
    entries = _parse_list(data, "entries", Entry.from_dict)
    actions = _parse_list(data, "actions", Action.from_dict)
    badges = _parse_list(data, "badges", BadgeSpec.from_dict)

    settings = state.settings
    raw_settings = data.get("settings")
    if raw_settings is not None:
        if not isinstance(raw_settings, dict):
            raise MalformedInputError("'settings' must be an object")
        try:
            settings = Settings.from_dict(raw_settings, base=state.settings)
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"'settings' is invalid: {e}") from e

    return replace(
        state,
        actions=actions if actions is not None else list(state.actions),
        entries=sorted(entries, key=lambda e: e.date) if entries is not None else list(state.entries),
        settings=settings,
        badges=badges if badges is not None else list(state.badges),
    )


def loads(state: GameState, text: str) -> GameState:
    return import_payload(state, parse_payload(text))


def read_import(state: GameState, path: Path) -> GameState:
    """Read a payload file and apply it over state."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Cannot read {path}: {e}") from e
    new_state = loads(state, text)
    logger.info("Imported %s: %d entries, %d actions", path, len(new_state.entries), len(new_state.actions))
    return new_state
