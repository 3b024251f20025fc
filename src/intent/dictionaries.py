"""English word lists for the booking request parser.

These mappings are used by the rules in `parser.py` and `dates.py` and should remain small and
deterministic.
"""

from __future__ import annotations

NUMBER_WORDS: dict[str, int] = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
}

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
WEEKDAY_TO_INDEX: dict[str, int] = {name: idx for idx, name in enumerate(WEEKDAYS)}

# Full names first so the regex alternation prefers "september" over "sep".
MONTHS: tuple[str, ...] = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)
MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "jan",
    "feb",
    "mar",
    "apr",
    "jun",
    "jul",
    "aug",
    "sept",
    "sep",
    "oct",
    "nov",
    "dec",
)

RELATIVE_DAY_WORDS: tuple[str, ...] = ("day after tomorrow", "tomorrow", "tonight", "today")


def _alternation(words: tuple[str, ...] | list[str]) -> str:
    # Sort by length desc to prefer longer words (e.g. "sept" over "sep").
    return "|".join(sorted(words, key=lambda w: (-len(w), w)))


NUMBER_WORD_PATTERN = _alternation(list(NUMBER_WORDS))
WEEKDAY_PATTERN = _alternation(WEEKDAYS)
MONTH_PATTERN = _alternation(MONTHS + MONTH_ABBREVIATIONS)
RELATIVE_DAY_PATTERN = _alternation(RELATIVE_DAY_WORDS)


def parse_count(token: str) -> int | None:
    """Parse a guest count token: a (possibly negative) integer or an English number word."""

    value = token.strip().lower()
    if value in NUMBER_WORDS:
        return NUMBER_WORDS[value]
    try:
        return int(value)
    except ValueError:
        return None
