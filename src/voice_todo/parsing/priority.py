# src/voice_todo/parsing/priority.py

"""
Priority keywords <-> the 1..5 scale used by the task API.

1 = Low, 2 = Normal, 3 = High, 4 = Urgent, 5 = Critical.

Keywords are matched by substring containment, in ascending order, and the
first matching level wins. This tolerates spoken phrasing ("really important")
but over-matches compound phrases: "medium-high" is Normal and "not low" is Low.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from ..errors import PriorityParseError

MIN_PRIORITY: Final[int] = 1
MAX_PRIORITY: Final[int] = 5

_LEADING_INT_RE = re.compile(r"^[+-]?\d+")


@dataclass(frozen=True, slots=True)
class PriorityMapping:
    keywords: tuple[str, ...]
    value: int
    label: str


PRIORITY_MAPPINGS: Final[tuple[PriorityMapping, ...]] = (
    PriorityMapping(("low", "minor", "optional"), 1, "Low"),
    PriorityMapping(("normal", "medium", "standard", "regular"), 2, "Normal"),
    PriorityMapping(("high", "important", "elevated"), 3, "High"),
    PriorityMapping(("urgent", "pressing", "time-sensitive", "time sensitive"), 4, "Urgent"),
    PriorityMapping(("critical", "severe", "blocking", "emergency"), 5, "Critical"),
)


def _in_range(value: int) -> bool:
    return MIN_PRIORITY <= value <= MAX_PRIORITY


def parse_priority(value: str | int | float | None) -> int | None:
    """
    Convert a keyword or number to 1..5, or None when it can't be understood.

    >>> parse_priority("urgent")
    4
    >>> parse_priority("3")
    3
    >>> parse_priority(7) is None
    True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if float(value).is_integer() and _in_range(int(value)):
            return int(value)
        return None

    normalized = str(value).strip().lower()

    m = _LEADING_INT_RE.match(normalized)
    if m and _in_range(int(m.group(0))):
        return int(m.group(0))

    for mapping in PRIORITY_MAPPINGS:
        if any(keyword in normalized for keyword in mapping.keywords):
            return mapping.value

    return None


def coerce_priority(value: str | int | float | None) -> int | None:
    """parse_priority, but a given-and-unrecognised value raises PriorityParseError."""
    if isinstance(value, str) and not value.strip():
        return None
    parsed = parse_priority(value)
    if parsed is None and value is not None:
        raise PriorityParseError(value)
    return parsed


def format_priority(value: int | None) -> str:
    if value is None:
        return ""
    for mapping in PRIORITY_MAPPINGS:
        if mapping.value == value:
            return mapping.label
    return f"Priority {value}"
