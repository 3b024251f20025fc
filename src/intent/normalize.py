"""Text normalization for deterministic intent parsing."""

from __future__ import annotations

import re

_MULTISPACE_RE = re.compile(r"\s+")

_TYPOGRAPHIC = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "–": "-",
        "—": "-",
        " ": " ",
    }
)


def normalize_text(text: str) -> str:
    """Normalize user text for rules-based parsing.

    Normalization is intentionally conservative:
        - Replace typographic quotes and dashes with ASCII ones.
        - Collapse whitespace.

    Case is preserved because restaurant names are extracted from the normalized text.
    """

    value = (text or "").strip().translate(_TYPOGRAPHIC)
    return _MULTISPACE_RE.sub(" ", value).strip()
