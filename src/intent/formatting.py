"""Human-readable date/time strings used in executor instructions."""

from __future__ import annotations

from datetime import date, time

_MONTH_ABBR: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def to_12hr(value: time) -> str:
    """Format a wall-clock time as `"7:00 PM"` (no leading zero on the hour)."""

    period = "PM" if value.hour >= 12 else "AM"
    hour12 = (value.hour + 11) % 12 + 1
    return f"{hour12}:{value.minute:02d} {period}"


def human_date(value: date) -> str:
    """Format a date as `"Oct 20, 2026"`.

    Month names are spelled out here rather than via `strftime("%b")`, which is locale dependent.
    """

    return f"{_MONTH_ABBR[value.month - 1]} {value.day}, {value.year}"
