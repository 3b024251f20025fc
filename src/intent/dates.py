"""Date and clock-time recognition for booking requests.

Dates are resolved relative to a reference "now" in the booking time zone and are biased
forward: an ambiguous phrase ("Friday", "October 24") always means the next occurrence, never a
past one. Explicit clock times ("7pm", "7:30 am", "noon", "19:30") are detected separately so the
caller can tell "tomorrow" apart from "tomorrow at 7pm".
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser
from dateparser.search import search_dates

from src.intent.dictionaries import (
    MONTH_PATTERN,
    NUMBER_WORD_PATTERN,
    RELATIVE_DAY_PATTERN,
    WEEKDAY_PATTERN,
    WEEKDAY_TO_INDEX,
    parse_count,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Los_Angeles"

_RELATIVE_DAY_OFFSETS: dict[str, int] = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
    "day after tomorrow": 2,
}

_RELATIVE_DAY_RE = re.compile(rf"\b(?P<word>{RELATIVE_DAY_PATTERN})\b")
_WEEKDAY_RE = re.compile(rf"\b(?:(?P<qualifier>this|next)\s+)?(?P<weekday>{WEEKDAY_PATTERN})\b")
_WEEKEND_RE = re.compile(r"\b(?:(?P<qualifier>this|next)\s+)?weekend\b")
_IN_WEEKS_RE = re.compile(
    rf"\bin\s+(?P<count>a|\d+|{NUMBER_WORD_PATTERN})\s+weeks?\b"
)
# "the 25th", but not "the 25th of October" (a calendar phrase).
_DAY_OF_MONTH_RE = re.compile(
    rf"\bthe\s+(?P<day>\d{{1,2}})(?:st|nd|rd|th)\b(?!\s+(?:of\s+)?(?:{MONTH_PATTERN})\b)"
)

# Phrases handed to dateparser as-is.
_CALENDAR_RES: tuple[re.Pattern[str], ...] = (
    re.compile(
        rf"\b(?:{MONTH_PATTERN})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?\b"
    ),
    re.compile(
        rf"\b\d{{1,2}}(?:st|nd|rd|th)?\s+(?:of\s+)?(?:{MONTH_PATTERN})\b\.?(?:,?\s+\d{{4}})?"
    ),
    re.compile(r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b"),
    re.compile(rf"\bin\s+(?:\d+|{NUMBER_WORD_PATTERN})\s+days?\b"),
    re.compile(r"\bnext\s+week\b"),
)

_ISO_DATE_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}\b")

_AMPM_TIME_RE = re.compile(
    r"\b(?P<h>\d{1,2})(?:[:.](?P<m>\d{2}))?\s*(?P<ap>a\.?m\.?|p\.?m\.?)(?![a-z])"
)
_NAMED_TIME_RE = re.compile(r"\b(?P<name>noon|midday|midnight)\b")
_24H_TIME_RE = re.compile(r"\b(?P<h>[01]?\d|2[0-3]):(?P<m>[0-5]\d)\b(?!\s*[ap]\.?m)")

_NAMED_TIMES: dict[str, time] = {
    "noon": time(12, 0),
    "midday": time(12, 0),
    "midnight": time(0, 0),
}

# Clock times and party sizes are blanked out before the full-text search.
_SEARCH_MASK_RES: tuple[re.Pattern[str], ...] = (
    _AMPM_TIME_RE,
    _NAMED_TIME_RE,
    _24H_TIME_RE,
    re.compile(rf"\b(?:for|party\s*of)\s*(?:-?\d+|{NUMBER_WORD_PATTERN})\b"),
)
# A full-text hit must name a day number or a calendar unit; bare words ("may", "sat") don't count.
_SEARCH_HIT_RE = re.compile(r"\d|\b(?:days?|weeks?|fortnight|months?|years?)\b")


def resolve_zone(tz: str | None) -> ZoneInfo:
    """Return the `ZoneInfo` for `tz`, falling back to the default zone for unknown names."""

    name = tz or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown time zone %r; using %s", name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def reference_now(now: datetime | None, zone: ZoneInfo) -> datetime:
    """Normalize the reference instant into `zone`.

    A naive `now` is taken to already be wall-clock time in `zone`.
    """

    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def _weekday_offset(today: date, weekday: int, qualifier: str | None) -> int:
    days_ahead = (weekday - today.weekday()) % 7
    if qualifier == "next":
        if days_ahead == 0:
            days_ahead = 7
        if weekday > today.weekday():
            # "next friday" said on a Monday means the Friday of the following week.
            days_ahead += 7
    return days_ahead


def _weekend_offset(today: date, qualifier: str | None) -> int:
    saturday = (5 - today.weekday()) % 7
    if today.weekday() == 6:
        # Sunday is still "this weekend"; "next weekend" starts six days later.
        return 6 if qualifier == "next" else 0
    return saturday + 7 if qualifier == "next" else saturday


def _next_day_of_month(today: date, day: int) -> date | None:
    year, month = today.year, today.month
    for _ in range(13):
        try:
            candidate = date(year, month, day)
        except ValueError:
            candidate = None
        if candidate is not None and candidate >= today:
            return candidate
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return None


def _dateparser_settings(now: datetime) -> dict[str, object]:
    return {
        "PREFER_DATES_FROM": "future",
        "RELATIVE_BASE": now.replace(tzinfo=None),
        "DATE_ORDER": "MDY",
        "STRICT_PARSING": False,
    }


def _parse_calendar_phrase(phrase: str, now: datetime) -> date | None:
    dt = dateparser.parse(phrase, languages=["en"], settings=_dateparser_settings(now))
    if dt is None:
        return None
    return dt.date()


def _search_full_text(text: str, now: datetime) -> date | None:
    """Run dateparser's recognizer over the whole request and return the first usable hit."""

    masked = text
    for pattern in _SEARCH_MASK_RES:
        masked = pattern.sub(" ", masked)

    results = search_dates(masked, languages=["en"], settings=_dateparser_settings(now))
    if not results:
        return None

    for matched, dt in results:
        fragment = matched.strip()
        if fragment.isdigit() or not _SEARCH_HIT_RE.search(fragment):
            logger.debug("ignoring date fragment %r", fragment)
            continue
        return dt.date()
    return None


def _parse_iso_date(phrase: str) -> date | None:
    try:
        return date.fromisoformat(phrase)
    except ValueError:
        return None


def _candidate_dates(text: str, now: datetime) -> list[tuple[int, date | None, str]]:
    """Collect `(position, resolved date, phrase)` for every temporal phrase in `text`."""

    today = now.date()
    found: list[tuple[int, date | None, str]] = []

    for match in _RELATIVE_DAY_RE.finditer(text):
        offset = _RELATIVE_DAY_OFFSETS[match.group("word")]
        found.append((match.start(), today + timedelta(days=offset), match.group(0)))

    for match in _WEEKDAY_RE.finditer(text):
        weekday = WEEKDAY_TO_INDEX[match.group("weekday")]
        offset = _weekday_offset(today, weekday, match.group("qualifier"))
        found.append((match.start(), today + timedelta(days=offset), match.group(0)))

    for match in _WEEKEND_RE.finditer(text):
        offset = _weekend_offset(today, match.group("qualifier"))
        found.append((match.start(), today + timedelta(days=offset), match.group(0)))

    for match in _IN_WEEKS_RE.finditer(text):
        count = 1 if match.group("count") == "a" else parse_count(match.group("count"))
        resolved = today + timedelta(weeks=count) if count is not None and count >= 0 else None
        found.append((match.start(), resolved, match.group(0)))

    for match in _DAY_OF_MONTH_RE.finditer(text):
        resolved = _next_day_of_month(today, int(match.group("day")))
        found.append((match.start(), resolved, match.group(0)))

    for match in _ISO_DATE_RE.finditer(text):
        found.append((match.start(), _parse_iso_date(match.group(0)), match.group(0)))

    for pattern in _CALENDAR_RES:
        for match in pattern.finditer(text):
            phrase = match.group(0)
            found.append((match.start(), _parse_calendar_phrase(phrase, now), phrase))

    found.sort(key=lambda item: item[0])
    return found


def find_date(text: str, now: datetime) -> date | None:
    """Return the first resolvable date mentioned in `text`, or `None`.

    Known phrases (relative days, weekdays, calendar dates) are resolved first, in order of
    appearance. Anything else is left to dateparser's full-text search.

    `now` must already be in the booking time zone (see `reference_now`).
    """

    value = (text or "").lower()
    for _pos, resolved, phrase in _candidate_dates(value, now):
        if resolved is not None:
            return resolved
        logger.debug("could not resolve date phrase %r", phrase)
    return _search_full_text(value, now)


def _ampm_to_time(hour: int, minute: int, period: str) -> time | None:
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        return None
    hour %= 12
    if period.startswith("p"):
        hour += 12
    return time(hour, minute)


def find_explicit_time(text: str) -> time | None:
    """Return the first explicit clock time in `text`, or `None` if there is none.

    Recognized tokens: `7pm`, `7:30 am`, `7.30 p.m.`, `noon`, `midday`, `midnight`, `19:30`.
    """

    value = (text or "").lower()
    found: list[tuple[int, time]] = []

    for match in _AMPM_TIME_RE.finditer(value):
        parsed = _ampm_to_time(int(match.group("h")), int(match.group("m") or 0), match.group("ap"))
        if parsed is not None:
            found.append((match.start(), parsed))

    for match in _NAMED_TIME_RE.finditer(value):
        found.append((match.start(), _NAMED_TIMES[match.group("name")]))

    for match in _24H_TIME_RE.finditer(value):
        found.append((match.start(), time(int(match.group("h")), int(match.group("m")))))

    if not found:
        return None
    return min(found, key=lambda item: item[0])[1]


def has_explicit_time(text: str) -> bool:
    """Whether the text contains an explicit clock-time token."""

    return find_explicit_time(text) is not None
