"""Rich terminal display for vie-gamifiee."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()

_CATEGORY_LABELS: dict[str, str] = {
    "special": "Spécial",
    "action": "Action",
    "custom": "Perso",
}

_CATEGORY_COLORS: dict[str, str] = {
    "special": "gold1",
    "action": "deep_sky_blue1",
    "custom": "purple",
}


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        value = n / 1_000
        if value >= 1000:
            return f"{value:.0f}K"
        return f"{value:.1f}K"
    return f"{n:,}"


def _xp_bar(current: int, total: int, width: int = 20) -> str:
    """Render an XP progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = max(0.0, min(current / total, 1.0))
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def _sparkline(values: list[int]) -> str:
    """Render a list of values as a one-line block chart."""
    blocks = "▁▂▃▄▅▆▇█"
    if not values:
        return ""
    top = max(values)
    if top <= 0:
        return blocks[0] * len(values)
    return "".join(blocks[min(len(blocks) - 1, int(v / top * (len(blocks) - 1)))] for v in values)


def print_dashboard(data: dict) -> None:
    """Print the main dashboard with level, XP, streak, history and recent badges."""
    level = data.get("level", 1)
    title = data.get("title", "")
    total_xp = data.get("total_xp", 0)
    xp_in_level = data.get("xp_in_level", 0)
    xp_for_next = data.get("xp_for_next", 0)
    next_level = data.get("next_level", level + 1)
    series = data.get("series", [])

    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold gold1]Niveau {level}[/] - {title}")

    bar = _xp_bar(xp_in_level, xp_for_next)
    if xp_for_next > 0:
        lines.append(
            f"  {bar} {format_number(xp_in_level)}/{format_number(xp_for_next)} vers Niv. {next_level}"
        )
    else:
        lines.append(f"  {bar} NIVEAU MAX")
    lines.append(f"  XP total: [bold]{format_number(total_xp)}[/]")

    lines.append("")
    lines.append(
        f"  \U0001f525 Série: {data.get('current_streak', 0)} jours  |  "
        f"Record: {data.get('longest_streak', 0)} jours"
    )
    lines.append(
        f"  \U0001f4dd Actions: {format_number(data.get('total_entries', 0))}  |  "
        f"\U0001f3c6 Badges: {data.get('badges_unlocked', 0)}/{data.get('badges_total', 0)}"
    )

    if series:
        lines.append("")
        lines.append("  [bold]Progression (14 jours):[/]")
        lines.append(f"  {_sparkline([p['xp'] for p in series])}")
        lines.append(f"  {series[0]['date']} → {series[-1]['date']}")

    next_badges = data.get("next_badges", [])
    if next_badges:
        lines.append("")
        lines.append("  [bold]Prochains badges:[/]")
        for badge in next_badges[:3]:
            lines.append(f"  ⏳ {badge['name']}")

    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]VIE GAMIFIÉE[/]",
        box=box.ROUNDED,
        border_style="gold1",
        width=60,
    )
    console.print(panel)


def print_history(days: list[dict]) -> None:
    """Print one row per active day: entries, base XP, bonus and streaks."""
    table = Table(
        title="Historique",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Date")
    table.add_column("Actions", justify="right")
    table.add_column("Base", justify="right")
    table.add_column("Bonus", justify="right")
    table.add_column("Total", justify="right", style="bold")
    table.add_column("Série", justify="right")
    table.add_column("6+", justify="right")

    for day in days:
        bonus = day.get("bonus_xp", 0)
        table.add_row(
            day["date"],
            str(day.get("entry_count", 0)),
            format_number(day.get("base_xp", 0)),
            f"[green]+{bonus}[/]" if bonus else "0",
            format_number(day.get("total_xp", 0)),
            str(day.get("any_streak_length", 0)),
            str(day.get("six_plus_streak_length", 0)),
        )

    console.print(table)


def print_entries(entries: list[dict]) -> None:
    """Print logged entries (most recent first)."""
    table = Table(title="Journal", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Date")
    table.add_column("Action")
    table.add_column("Points", justify="right")
    table.add_column("Notes")
    table.add_column("ID", style="grey50")

    for entry in entries:
        flags = []
        if entry.get("sansDistraction"):
            flags.append("sans distraction")
        if entry.get("beforeNoon"):
            flags.append("avant midi")
        notes = entry.get("notes", "")
        if flags:
            notes = f"{notes} ({', '.join(flags)})".strip()
        table.add_row(
            entry["date"],
            entry.get("label") or entry["actionId"],
            str(entry.get("points", 0)),
            notes,
            entry["id"][:8],
        )

    console.print(table)


def print_badges(badges: list[dict]) -> None:
    """Print all badges, unlocked first.

    Each dict has: id, name, description, category, unlocked.
    """
    unlocked = [b for b in badges if b.get("unlocked")]
    locked = [b for b in badges if not b.get("unlocked")]

    table = Table(
        title=f"Badges ({len(unlocked)}/{len(badges)})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("", width=2)
    table.add_column("Badge", min_width=24)
    table.add_column("Type", width=8)
    table.add_column("ID", style="grey50")

    for badge in unlocked + locked:
        icon = "✅" if badge.get("unlocked") else "⏳"
        category = badge.get("category", "custom")
        color = _CATEGORY_COLORS.get(category, "white")
        name_text = f"[bold]{badge['name']}[/]\n{badge.get('description', '')}"
        category_text = f"[{color}]{_CATEGORY_LABELS.get(category, category)}[/{color}]"
        table.add_row(icon, name_text, category_text, badge["id"])

    console.print(table)


def print_actions(actions: list[dict]) -> None:
    table = Table(title="Actions", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("ID", style="grey50")
    table.add_column("Action")
    table.add_column("Points", justify="right")
    for action in actions:
        table.add_row(action["id"], action["label"], str(action["points"]))
    console.print(table)


def print_settings(settings: dict, title: str = "Réglages") -> None:
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Réglage")
    table.add_column("Valeur", justify="right")
    for key, value in settings.items():
        table.add_row(key, str(value))
    console.print(table)


def print_entry_logged(result: dict) -> None:
    """Print confirmation of a logged entry and any newly unlocked badges."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  {result.get('label', '')}  [bold green]+{result.get('points', 0)} XP[/]")
    lines.append(f"  Date:     {result.get('date', '')}")
    lines.append(f"  XP total: {format_number(result.get('total_xp', 0))}")
    lines.append(f"  Niveau:   {result.get('level', 1)}")

    if result.get("level_up"):
        lines.append("")
        lines.append(f"  [bold yellow]Niveau supérieur ! {result.get('title', '')}[/]")

    new_badges = result.get("new_badges", [])
    if new_badges:
        lines.append("")
        lines.append("  [bold]Nouveaux badges:[/]")
        for name in new_badges:
            lines.append(f"  \U0001f3c6 {name}")

    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]Action enregistrée[/]",
        box=box.ROUNDED,
        border_style="green",
        width=50,
    )
    console.print(panel)


def print_message(message: str, style: str = "green") -> None:
    console.print(f"[{style}]{message}[/]")


def print_error(message: str) -> None:
    console.print(f"[red]{escape(message)}[/]")


def print_no_data_message() -> None:
    """Print message when no entry has been logged yet."""
    panel = Panel(
        "\n  Aucune action enregistrée. Lance [bold]vie-gamifiee log <action>[/] pour commencer.\n",
        title="[bold]VIE GAMIFIÉE[/]",
        box=box.ROUNDED,
        border_style="grey50",
        width=60,
    )
    console.print(panel)
