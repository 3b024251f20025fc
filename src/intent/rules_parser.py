"""Rules for extracting the restaurant name and party size from a booking request.

Both rules are permissive: they never reject input. A request without a recognizable restaurant
phrase yields no name (the parser then keeps the whole request); a request without a party
phrase books for two.
"""

from __future__ import annotations

import re

from src.intent.dictionaries import NUMBER_WORD_PATTERN, WEEKDAY_PATTERN, parse_count

DEFAULT_PARTY_SIZE = 2

# A restaurant name ends where a temporal or party-size phrase begins.
_NAME_STOP = (
    r"(?="
    r"\s+(?:"
    r"today\b|tonight\b|tomorrow\b|day\s+after\b|on\b|this\s|next\s"
    rf"|(?:{WEEKDAY_PATTERN})\b"
    r"|at\s+\d|at\s+(?:noon|midnight)\b|around\s+\d|by\s+\d|in\s+\d"
    rf"|in\s+(?:a|{NUMBER_WORD_PATTERN})\s+(?:days?|weeks?)\b|the\s+\d{{1,2}}(?:st|nd|rd|th)\b"
    r"|\d{1,2}(?:[:\s]\d{2})?\s*(?:a\.?m|p\.?m)\b|\d{1,2}:\d{2}|noon\b|midnight\b|am\b|pm\b"
    rf"|for\s+(?:-?\d|(?:{NUMBER_WORD_PATTERN})\b)|party\s+of\b"
    r")"
    r"|\s*[,!?;]"
    r"|$"
    r")"
)

# The name itself must not start with a time or date ("at 7pm", "for tomorrow").
_NOT_TEMPORAL = r"(?!-?\d|(?:noon|midnight|today|tonight|tomorrow)\b)"
_NOT_COUNT = rf"(?!(?:{NUMBER_WORD_PATTERN})\b)"

_RESTAURANT_RES: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\bat\s+{_NOT_TEMPORAL}(?P<name>.+?){_NAME_STOP}", re.IGNORECASE),
    re.compile(rf"\bfor\s+{_NOT_TEMPORAL}{_NOT_COUNT}(?P<name>.+?){_NAME_STOP}", re.IGNORECASE),
    re.compile(
        r"\b(?:reserve|book)\s+(?:a\s+table|a\s+reservation)?\s*at\s+(?P<name>.+?)$",
        re.IGNORECASE,
    ),
)

_PARTY_RE = re.compile(
    rf"\b(?:for|party\s*of)\s*(?P<count>-?\d+|{NUMBER_WORD_PATTERN})\b"
    r"(?!\s*(?:[:.]\d|a\.?m\b|p\.?m\b))",
    re.IGNORECASE,
)

_NAME_STRIP_CHARS = " \t\"'.,!?;:"


def extract_restaurant(text: str) -> str | None:
    """Extract the restaurant name from a booking request.

    Returns `None` when no pattern matches; the caller falls back to the whole request.
    """

    value = (text or "").strip()
    for pattern in _RESTAURANT_RES:
        match = pattern.search(value)
        if not match:
            continue
        name = match.group("name").strip(_NAME_STRIP_CHARS)
        if name:
            return name
    return None


def extract_party_size(text: str) -> int:
    """Extract the party size (`for 4`, `party of six`), clamped to at least one guest.

    Returns `DEFAULT_PARTY_SIZE` if the request does not mention one.
    """

    for match in _PARTY_RE.finditer(text or ""):
        count = parse_count(match.group("count"))
        if count is not None:
            return max(1, count)
    return DEFAULT_PARTY_SIZE
