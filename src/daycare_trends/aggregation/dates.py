"""ISO-8601 week helpers."""

from __future__ import annotations

from datetime import date, timedelta


def iso_week_key(value: str) -> str:
    """Return ``YYYY-Www`` for an ISO date string, using the ISO week-numbering year."""

    iso_year, iso_week, _ = date.fromisoformat(value).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def week_bounds(week_key: str) -> tuple[str, str]:
    """Return the Monday and Sunday dates of a ``YYYY-Www`` week."""

    year_text, week_text = week_key.split("-W")
    monday = date.fromisocalendar(int(year_text), int(week_text), 1)
    sunday = monday + timedelta(days=6)
    return monday.isoformat(), sunday.isoformat()


def month_key(value: str) -> str:
    return value[:7]
