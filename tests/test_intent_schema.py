"""Tests for the BookingIntent model and its human-readable formatting."""

from __future__ import annotations

from datetime import date, time

import pytest
from pydantic import ValidationError

from src.intent.formatting import human_date, to_12hr
from src.intent.schema import BookingIntent


def _intent(**overrides: object) -> BookingIntent:
    fields: dict[str, object] = {
        "restaurant": "Terra E Mare",
        "party": 2,
        "date": date(2026, 10, 20),
        "time": time(19, 0),
    }
    fields.update(overrides)
    return BookingIntent(**fields)  # type: ignore[arg-type]


def test_intent_requires_positive_party() -> None:
    with pytest.raises(ValidationError):
        _intent(party=0)


def test_intent_requires_non_empty_restaurant() -> None:
    with pytest.raises(ValidationError):
        _intent(restaurant="   ")


def test_intent_is_immutable() -> None:
    intent = _intent()
    with pytest.raises(ValidationError):
        intent.party = 4  # type: ignore[misc]


def test_intent_forbids_extra_fields() -> None:
    with pytest.raises(ValidationError):
        _intent(phone="555")


def test_intent_drops_seconds() -> None:
    assert _intent(time=time(19, 0, 42)).time == time(19, 0)


def test_intent_derived_strings() -> None:
    intent = _intent(date=date(2026, 3, 5), time=time(7, 5))
    assert intent.date_iso == "2026-03-05"
    assert intent.time_24 == "07:05"
    assert intent.human_date == "Mar 5, 2026"
    assert intent.human_time == "7:05 AM"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (time(0, 0), "12:00 AM"),
        (time(11, 59), "11:59 AM"),
        (time(12, 0), "12:00 PM"),
        (time(19, 0), "7:00 PM"),
        (time(23, 30), "11:30 PM"),
    ],
)
def test_to_12hr(value: time, expected: str) -> None:
    assert to_12hr(value) == expected


def test_human_date() -> None:
    assert human_date(date(2026, 10, 20)) == "Oct 20, 2026"
