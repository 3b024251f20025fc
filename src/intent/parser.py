"""Booking request parsing (rules-based, total).

`parse_booking_request` turns any free-text request into a `BookingIntent`. It never raises for
string input: every field has a deterministic fallback.

Defaults:
    - party size: 2
    - date: the reference "now" date when no date phrase is recognized
    - time: 19:00 when the text has no explicit clock time
"""

from __future__ import annotations

import logging
from datetime import datetime, time

from src.intent.dates import (
    DEFAULT_TIMEZONE,
    find_date,
    find_explicit_time,
    reference_now,
    resolve_zone,
)
from src.intent.normalize import normalize_text
from src.intent.rules_parser import extract_party_size, extract_restaurant
from src.intent.schema import BookingIntent

logger = logging.getLogger(__name__)

DEFAULT_REQUEST = "book me a reservation at Terra E Mare tomorrow at 7pm for 2"
DEFAULT_DINING_TIME = time(19, 0)

__all__ = [
    "DEFAULT_DINING_TIME",
    "DEFAULT_REQUEST",
    "DEFAULT_TIMEZONE",
    "parse_booking_request",
]


def parse_booking_request(
        text: str,
        *,
        now: datetime | None = None,
        tz: str = DEFAULT_TIMEZONE,
) -> BookingIntent:
    """Parse a free-text booking request into a `BookingIntent`.

    Args:
        text: The raw request. Blank input is replaced by `DEFAULT_REQUEST`.
        now: Reference instant for relative dates ("tomorrow"). Defaults to the current time. A
            naive value is interpreted as wall-clock time in `tz`.
        tz: IANA time zone in which the date and time are expressed.
    """

    raw = (text or "").strip() or DEFAULT_REQUEST
    normalized = normalize_text(raw)

    zone = resolve_zone(tz)
    ref = reference_now(now, zone)

    restaurant = extract_restaurant(normalized) or raw
    party = extract_party_size(normalized)

    booking_date = find_date(normalized, ref) or ref.date()
    booking_time = find_explicit_time(normalized)
    if booking_time is None:
        # A bare date phrase ("tomorrow") means dinner, not midnight.
        booking_time = DEFAULT_DINING_TIME

    intent = BookingIntent(
        restaurant=restaurant,
        party=party,
        date=booking_date,
        time=booking_time,
    )
    logger.debug(
        "parsed restaurant=%r party=%d date=%s time=%s tz=%s",
        intent.restaurant,
        intent.party,
        intent.date_iso,
        intent.time_24,
        zone.key,
    )
    return intent
