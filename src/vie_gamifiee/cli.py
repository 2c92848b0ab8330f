"""CLI commands for vie-gamifiee."""

from __future__ import annotations

import argparse
import logging
from dataclasses import asdict
from pathlib import Path

from rich.logging import RichHandler

from vie_gamifiee.achievements import BadgeCategory, get_newly_unlocked
from vie_gamifiee.config import (
    CONFIG_KEYS,
    get_db_path,
    get_export_path,
    get_history_days,
    load_config,
    set_export_path,
    set_value,
)
from vie_gamifiee.db import Database
from vie_gamifiee.display import (
    console,
    print_actions,
    print_badges,
    print_dashboard,
    print_entries,
    print_entry_logged,
    print_error,
    print_history,
    print_message,
    print_no_data_message,
    print_settings,
)
from vie_gamifiee.engine import compute_snapshot
from vie_gamifiee.errors import InvalidConfigError, MalformedInputError
from vie_gamifiee.exchange import EXPORT_FILENAME, read_import, write_export
from vie_gamifiee.models import BadgeKind, BadgeRule

logger = logging.getLogger(__name__)

SETTING_NAMES: dict[str, str] = {
    "codeMasterLessons": "code_master_lessons",
    "regulariteDaysNeeded": "regularite_days_needed",
}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="vie-gamifiee",
        description="Gamify your daily actions: XP, levels and badges",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("dashboard", help="Show main dashboard")

    log_p = subparsers.add_parser("log", help="Log an action")
    log_p.add_argument("action_id", help="Action id (see: vie-gamifiee action list)")
    log_p.add_argument("--date", "-d", default=None, help="YYYY-MM-DD (default: today)")
    log_p.add_argument("--notes", "-n", default="", help="Free-text notes")
    log_p.add_argument("--sans-distraction", action="store_true", help="Pomodoro without distraction")
    log_p.add_argument("--before-noon", action="store_true", help="Done before noon")

    history_p = subparsers.add_parser("history", help="Daily XP breakdown")
    history_p.add_argument(
        "--limit", "-l", type=int, default=None, help="Number of days to show (config: history_days)"
    )
    entries_p = subparsers.add_parser("entries", help="List logged entries")
    entries_p.add_argument("--limit", "-l", type=int, default=20, help="Number of entries to show")
    remove_p = subparsers.add_parser("remove", help="Delete a logged entry")
    remove_p.add_argument("entry_id", help="Entry id or unique id prefix")
    clear_p = subparsers.add_parser("clear", help="Delete all logged entries")
    clear_p.add_argument("--yes", action="store_true", help="Confirm deletion")

    subparsers.add_parser("badges", help="List all badges")
    badge_p = subparsers.add_parser("badge", help="Manage custom badges")
    badge_sub = badge_p.add_subparsers(dest="badge_command")
    badge_add = badge_sub.add_parser("add", help="Add a custom badge (manual unless --kind)")
    badge_add.add_argument("name", help="Badge name")
    badge_add.add_argument("--kind", "-k", choices=[k.value for k in BadgeKind], default=None)
    badge_add.add_argument("--action", "-a", action="append", default=[], help="Action id (repeat for combos)")
    for opt in ("count", "xp", "days", "weeks", "months"):
        badge_add.add_argument(f"--{opt}", type=int, default=None)
    badge_toggle = badge_sub.add_parser("toggle", help="Validate / unvalidate a manual badge")
    badge_toggle.add_argument("badge_id")
    badge_remove = badge_sub.add_parser("remove", help="Delete a custom badge")
    badge_remove.add_argument("badge_id")

    action_p = subparsers.add_parser("action", help="Manage actions")
    action_sub = action_p.add_subparsers(dest="action_command")
    action_sub.add_parser("list", help="List actions")
    action_add = action_sub.add_parser("add", help="Add an action")
    action_add.add_argument("label")
    action_add.add_argument("points", type=int)
    action_update = action_sub.add_parser("update", help="Update an action")
    action_update.add_argument("action_id")
    action_update.add_argument("label")
    action_update.add_argument("points", type=int)
    action_remove = action_sub.add_parser("remove", help="Delete an action")
    action_remove.add_argument("action_id")

    settings_p = subparsers.add_parser("settings", help="Show or change settings")
    settings_sub = settings_p.add_subparsers(dest="settings_command")
    settings_sub.add_parser("show", help="Show settings")
    settings_set = settings_sub.add_parser("set", help="Change a setting")
    settings_set.add_argument("key", choices=list(SETTING_NAMES))
    settings_set.add_argument("value", type=int)

    export_p = subparsers.add_parser("export", help="Export entries, actions, settings and badges to JSON")
    export_p.add_argument("--output", "-o", default=None, help="Output file path")
    import_p = subparsers.add_parser("import", help="Import a JSON export")
    import_p.add_argument("path", help="JSON file to import")

    config_p = subparsers.add_parser("config", help="Show or change user configuration")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Show configuration")
    config_set = config_sub.add_parser("set", help="Change a configuration value")
    config_set.add_argument("key", choices=list(CONFIG_KEYS))
    config_set.add_argument("value")
    return parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main() -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    command = args.command or "dashboard"

    if command == "config":
        if getattr(args, "config_command", None) == "set":
            do_config_set(args.key, args.value)
        else:
            do_config_show()
        return

    db = Database(get_db_path())

    try:
        if command == "dashboard":
            do_dashboard(db)
        elif command == "log":
            do_log(
                db, args.action_id, day=args.date, notes=args.notes,
                sans_distraction=args.sans_distraction, before_noon=args.before_noon,
            )
        elif command == "history":
            do_history(db, limit=args.limit)
        elif command == "entries":
            do_entries(db, limit=args.limit)
        elif command == "remove":
            do_remove_entry(db, args.entry_id)
        elif command == "clear":
            do_clear(db, confirmed=args.yes)
        elif command == "badges":
            do_badges(db)
        elif command == "badge":
            badge_cmd = getattr(args, "badge_command", None)
            if badge_cmd == "add":
                do_badge_add(
                    db, args.name, kind=args.kind, action_ids=args.action,
                    count=args.count, xp=args.xp, days=args.days, weeks=args.weeks, months=args.months,
                )
            elif badge_cmd == "toggle":
                do_badge_toggle(db, args.badge_id)
            elif badge_cmd == "remove":
                do_badge_remove(db, args.badge_id)
            else:
                do_badges(db)
        elif command == "action":
            action_cmd = getattr(args, "action_command", None)
            if action_cmd == "add":
                do_action_add(db, args.label, args.points)
            elif action_cmd == "update":
                do_action_update(db, args.action_id, args.label, args.points)
            elif action_cmd == "remove":
                do_action_remove(db, args.action_id)
            else:
                do_action_list(db)
        elif command == "settings":
            if getattr(args, "settings_command", None) == "set":
                do_settings_set(db, args.key, args.value)
            else:
                do_settings_show(db)
        elif command == "export":
            do_export(db, output=args.output)
        elif command == "import":
            do_import(db, args.path)
    finally:
        db.close()


def _fail(reason: str) -> dict:
    print_error(reason)
    return {"ok": False, "reason": reason}


def do_dashboard(db: Database) -> dict:
    """Show main dashboard with level, XP, streak, 14-day history and next badges."""
    state = db.load_state()
    if not state.entries:
        print_no_data_message()
        return {"ok": False, "reason": "no_data"}

    snapshot = compute_snapshot(state)
    progression = snapshot.progression
    data = {
        **asdict(progression),
        "current_streak": snapshot.streak.current_streak,
        "longest_streak": snapshot.streak.longest_streak,
        "total_entries": len(state.entries),
        "badges_unlocked": snapshot.unlocked_count,
        "badges_total": len(snapshot.badges),
        "next_badges": [
            b.to_dict() for b in snapshot.badges
            if not b.unlocked and b.category is BadgeCategory.ACTION
        ],
    }
    print_dashboard(data)
    return {"ok": True, **data}


def do_log(
    db: Database,
    action_id: str,
    day: str | None = None,
    notes: str = "",
    sans_distraction: bool = False,
    before_noon: bool = False,
) -> dict:
    """Log an action, persist it and report XP, level-ups and newly unlocked badges."""
    state = db.load_state()
    before = compute_snapshot(state)
    try:
        entry = state.add_entry(
            action_id, day, notes=notes, sans_distraction=sans_distraction, before_noon=before_noon
        )
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)

    after = compute_snapshot(state)
    new_badges = get_newly_unlocked(before.badges, after.badges)
    logger.debug("Logged %s on %s (%d pts)", entry.action_id, entry.date, entry.points)

    result = {
        "ok": True,
        "entry_id": entry.id,
        "label": entry.label,
        "points": entry.points,
        "date": entry.date,
        "total_xp": after.progression.total_xp,
        "level": after.progression.level,
        "title": after.progression.title,
        "level_up": after.progression.level > before.progression.level,
        "new_badges": [b.name for b in new_badges],
    }
    print_entry_logged(result)
    return result


def do_history(db: Database, limit: int | None = None) -> dict:
    if limit is None:
        limit = get_history_days()
    state = db.load_state()
    daily = compute_snapshot(state).daily
    days = [asdict(d) for d in daily[-limit:]] if limit > 0 else []
    print_history(days)
    return {"ok": True, "days": days}


def do_entries(db: Database, limit: int = 20) -> dict:
    state = db.load_state()
    entries = [e.to_dict() for e in reversed(state.entries)][: max(0, limit)]
    print_entries(entries)
    return {"ok": True, "entries": entries}


def _resolve_entry_id(ids: list[str], prefix: str) -> str | None:
    if prefix in ids:
        return prefix
    matches = [i for i in ids if i.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


def do_remove_entry(db: Database, entry_id: str) -> dict:
    state = db.load_state()
    resolved = _resolve_entry_id([e.id for e in state.entries], entry_id)
    if resolved is None:
        return _fail(f"Unknown or ambiguous entry: {entry_id}")
    state.remove_entry(resolved)
    db.save_state(state)
    print_message(f"Entrée {resolved[:8]} supprimée")
    return {"ok": True, "entry_id": resolved}


def do_clear(db: Database, confirmed: bool = False) -> dict:
    if not confirmed:
        return _fail("Refusing to delete all entries without --yes")
    state = db.load_state()
    removed = state.clear_entries()
    db.save_state(state)
    print_message(f"{removed} entrées supprimées")
    return {"ok": True, "removed": removed}


def do_badges(db: Database) -> dict:
    """Show all badges: special, per-action tiers and custom."""
    snapshot = compute_snapshot(db.load_state())
    badges = [b.to_dict() for b in snapshot.badges]
    print_badges(badges)
    return {"ok": True, "badges": badges, "unlocked_count": snapshot.unlocked_count}


def do_badge_add(
    db: Database,
    name: str,
    kind: str | None = None,
    action_ids: list[str] | None = None,
    count: int | None = None,
    xp: int | None = None,
    days: int | None = None,
    weeks: int | None = None,
    months: int | None = None,
) -> dict:
    """Add a manual badge, or an automatic one when kind is given."""
    state = db.load_state()
    rule = None
    if kind:
        ids = tuple(action_ids or ())
        rule = BadgeRule(
            kind=kind,
            action_id=ids[0] if ids and kind != BadgeKind.COMBO_ACTIONS.value else None,
            action_ids=ids if kind == BadgeKind.COMBO_ACTIONS.value else (),
            count=count, xp=xp, days=days, weeks=weeks, months=months,
        )
    try:
        badge = state.add_badge(name, rule)
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_message(f"Badge '{badge.name}' ajouté ({badge.id})")
    return {"ok": True, "badge": badge.to_dict()}


def do_badge_toggle(db: Database, badge_id: str) -> dict:
    state = db.load_state()
    try:
        badge = state.toggle_badge(badge_id)
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_message(f"Badge '{badge.name}' {'validé' if badge.validated else 'annulé'}")
    return {"ok": True, "validated": badge.validated}


def do_badge_remove(db: Database, badge_id: str) -> dict:
    state = db.load_state()
    try:
        state.remove_badge(badge_id)
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_message("Badge supprimé")
    return {"ok": True}


def do_action_list(db: Database) -> dict:
    actions = [a.to_dict() for a in db.load_state().actions]
    print_actions(actions)
    return {"ok": True, "actions": actions}


def do_action_add(db: Database, label: str, points: int) -> dict:
    state = db.load_state()
    try:
        action = state.add_action(label, points)
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_message(f"Action '{action.label}' ajoutée ({action.id})")
    return {"ok": True, "action": action.to_dict()}


def do_action_update(db: Database, action_id: str, label: str, points: int) -> dict:
    state = db.load_state()
    try:
        action = state.update_action(action_id, label, points)
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_message(f"Action '{action.label}' mise à jour")
    return {"ok": True, "action": action.to_dict()}


def do_action_remove(db: Database, action_id: str) -> dict:
    state = db.load_state()
    try:
        state.remove_action(action_id)
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_message(f"Action {action_id} supprimée")
    return {"ok": True}


def do_settings_show(db: Database) -> dict:
    settings = db.load_state().settings.to_dict()
    print_settings(settings)
    return {"ok": True, "settings": settings}


def do_settings_set(db: Database, key: str, value: int) -> dict:
    state = db.load_state()
    if key not in SETTING_NAMES:
        return _fail(f"Unknown setting: {key}")
    try:
        settings = state.update_settings(**{SETTING_NAMES[key]: value})
    except InvalidConfigError as e:
        return _fail(str(e))
    db.save_state(state)
    print_settings(settings.to_dict())
    return {"ok": True, "settings": settings.to_dict()}


def do_export(db: Database, output: str | None = None) -> dict:
    """Export the current state to a JSON file."""
    state = db.load_state()
    if output:
        output_path = Path(output).expanduser()
        set_export_path(output_path.resolve())
    else:
        output_path = get_export_path() or Path(EXPORT_FILENAME)
    write_export(state, output_path)
    print_message(f"Exporté vers {output_path}")
    return {"ok": True, "output": str(output_path), "entries": len(state.entries)}


def do_import(db: Database, path: str) -> dict:
    """Import a JSON export. Nothing is changed if the file is malformed."""
    state = db.load_state()
    try:
        new_state = read_import(state, Path(path).expanduser())
    except MalformedInputError as e:
        return _fail(f"Fichier invalide: {e}")
    db.save_state(new_state)
    print_message(f"Importé: {len(new_state.entries)} entrées, {len(new_state.actions)} actions")
    return {"ok": True, "entries": len(new_state.entries), "actions": len(new_state.actions)}


def do_config_show(config_path: Path | None = None) -> dict:
    """Show the effective configuration: configured values plus resolved defaults."""
    export_path = get_export_path(config_path)
    config = {
        "db_path": str(get_db_path(config_path)),
        "export_path": str(export_path) if export_path else EXPORT_FILENAME,
        "history_days": get_history_days(config_path),
    }
    print_settings(config, title="Configuration")
    return {"ok": True, "config": config, "configured": sorted(load_config(config_path))}


def do_config_set(key: str, value: str, config_path: Path | None = None) -> dict:
    """Set a config key from its command-line text."""
    if key not in CONFIG_KEYS:
        return _fail(f"Unknown config key: {key}")
    try:
        typed = CONFIG_KEYS[key](value)
        config = set_value(key, typed, config_path)
    except ValueError as e:
        return _fail(str(e))
    print_message(f"{key} = {typed}")
    return {"ok": True, "config": config}
