"""Calendar helpers for YYYY-MM-DD date strings. Pure functions, no side effects."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta

_DATE_PREFIX = re.compile(r"([0-9]{4}-[0-9]{2}-[0-9]{2})(?:T.*)?", re.DOTALL)


def parse_date(d: str) -> date:
    """Parse a YYYY-MM-DD string to a date object."""
    return date.fromisoformat(d)


def format_date(d: date | datetime | str) -> str:
    """Return the local calendar date as YYYY-MM-DD.

    Datetimes, and 'YYYY-MM-DDT...' strings, are truncated to their own date,
    no timezone conversion. Any other trailing text is a ValueError.
    """
    if isinstance(d, str):
        match = _DATE_PREFIX.fullmatch(d)
        if match is None:
            raise ValueError(f"Invalid date: {d!r}")
        d = parse_date(match.group(1))
    elif isinstance(d, datetime):
        d = d.date()
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def add_days(date_str: str, n: int) -> str:
    """Calendar addition: add_days('2024-02-28', 2) -> '2024-03-01'."""
    return format_date(parse_date(date_str) + timedelta(days=n))


def is_next_day(previous: str, current: str) -> bool:
    """True if current is exactly one calendar day after previous."""
    return add_days(previous, 1) == current


def iso_week_key(date_str: str) -> str:
    """ISO-8601 week key, e.g. '2021-01-01' -> '2020-W53'.

    The week containing the date's Thursday decides both the week number and
    the ISO year.
    """
    iso_year, iso_week, _ = parse_date(date_str).isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def calendar_week_key(date_str: str) -> str:
    """Weekday-offset week key used for weekly XP totals.

    week = ceil((days since Jan 1 + weekday of Jan 1 (Sunday=0) + 1) / 7),
    keyed on the calendar year. Not ISO-8601: weeks start on Sunday and
    never roll over into a neighbouring year.
    """
    d = parse_date(date_str)
    jan1 = date(d.year, 1, 1)
    jan1_weekday = (jan1.weekday() + 1) % 7
    week = math.ceil(((d - jan1).days + jan1_weekday + 1) / 7)
    return f"{d.year:04d}-W{week:02d}"


def month_key(date_str: str) -> str:
    """'2024-03-15' -> '2024-03'."""
    return date_str[:7]


def month_day(date_str: str) -> str:
    """'2024-03-15' -> '03-15' (chart labels)."""
    return date_str[5:10]
