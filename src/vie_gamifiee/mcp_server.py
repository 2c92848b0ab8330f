"""MCP server for vie-gamifiee.

Exposes progression, badges and history as MCP tools so an assistant can read
them, and log actions, mid-conversation.
Run via: python3 -m vie_gamifiee.mcp_server
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP

from vie_gamifiee.engine import compute_snapshot
from vie_gamifiee.errors import InvalidConfigError

mcp = FastMCP(name="vie-gamifiee")


def _get_db():
    from vie_gamifiee.config import get_db_path
    from vie_gamifiee.db import Database
    return Database(get_db_path())


@mcp.tool()
def get_progression() -> dict[str, Any]:
    """Get current progression: total XP, level, title, progress and streaks."""
    db = _get_db()
    try:
        state = db.load_state()
        if not state.entries:
            return {"error": "No data yet. Log an action first."}
        snapshot = compute_snapshot(state)
        return {
            **asdict(snapshot.progression),
            "current_streak": snapshot.streak.current_streak,
            "longest_streak": snapshot.streak.longest_streak,
            "badges_unlocked": snapshot.unlocked_count,
            "badges_total": len(snapshot.badges),
        }
    finally:
        db.close()


@mcp.tool()
def get_badges(unlocked_only: bool = False) -> dict[str, Any]:
    """Get every badge (special, per-action tiers, custom) with its unlock state."""
    db = _get_db()
    try:
        snapshot = compute_snapshot(db.load_state())
        badges = [b.to_dict() for b in snapshot.badges if b.unlocked or not unlocked_only]
        return {"badges": badges, "unlocked_count": snapshot.unlocked_count,
                "total_count": len(snapshot.badges)}
    finally:
        db.close()


@mcp.tool()
def get_history(days: int = 14) -> dict[str, Any]:
    """Get the daily XP breakdown for the last `days` active days."""
    if days <= 0:
        return {"error": "days must be a positive integer"}
    db = _get_db()
    try:
        daily = compute_snapshot(db.load_state()).daily
        return {"days": [asdict(d) for d in daily[-days:]], "active_days": len(daily)}
    finally:
        db.close()


@mcp.tool()
def log_action(
    action_id: str, date: str = "", notes: str = "", before_noon: bool = False
) -> dict[str, Any]:
    """Log an action (date YYYY-MM-DD, empty for today) and return the new totals."""
    db = _get_db()
    try:
        state = db.load_state()
        try:
            entry = state.add_entry(action_id, date or None, notes=notes, before_noon=before_noon)
        except InvalidConfigError as e:
            return {"error": str(e), "actions": [a.id for a in state.actions]}
        db.save_state(state)
        progression = compute_snapshot(state).progression
        return {
            "entry": entry.to_dict(),
            "total_xp": progression.total_xp,
            "level": progression.level,
            "title": progression.title,
        }
    finally:
        db.close()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
