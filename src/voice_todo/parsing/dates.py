# src/voice_todo/parsing/dates.py

"""
Natural-language date phrases -> absolute UTC instants.

Supported (case-insensitive, trimmed):
- ISO 8601 date or date-time ("2024-12-25", "2024-12-25T10:00:00Z")
- "today" / "tonight"
- "tomorrow"
- "next week" / "next month"
- "in 3 days" / "in 2 weeks" / "in 1 month"
- "monday" ... "sunday" (next occurrence, never today)
- "next <weekday>" / "this <weekday>"

Relative phrases resolve to 12:00 UTC ("tonight" to 20:00 UTC). Arithmetic is
done on UTC calendar fields, so results do not drift across DST changes.
Every branch rejects instants earlier than the reference instant.
"""

from __future__ import annotations

import calendar
import re
from datetime import UTC, date, datetime, time, timedelta

from ..errors import DateParseError, PastDateError

WEEKDAYS: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

NOON = time(12, 0, tzinfo=UTC)
EVENING = time(20, 0, tzinfo=UTC)

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(t\d{2}:\d{2}:\d{2}(\.\d{3})?z?)?$", re.IGNORECASE)
_RELATIVE_RE = re.compile(r"^in (\d+) (day|days|week|weeks|month|months)$")
_WEEKDAY_ALT = "|".join(WEEKDAYS)
_NEXT_WEEKDAY_RE = re.compile(rf"^next ({_WEEKDAY_ALT})$")
_THIS_WEEKDAY_RE = re.compile(rf"^this ({_WEEKDAY_ALT})$")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _at(day: date, at: time = NOON) -> datetime:
    return datetime.combine(day, at)


def add_months(day: date, months: int) -> date:
    """Calendar-month increment; the day is clamped to the target month's length."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last))


def next_weekday(weekday: str, reference: datetime, *, force_next: bool = False) -> datetime:
    """
    Next occurrence of `weekday` strictly after the reference date, at noon UTC.

    force_next pushes the nearest occurrence one more week ahead unless it was
    already moved because the weekday is today or earlier this week.
    """
    try:
        target = WEEKDAYS.index(weekday.lower())
    except ValueError:
        raise DateParseError(weekday, f"Invalid weekday: {weekday}") from None

    ref = _as_utc(reference)
    days = target - ref.weekday()
    if days <= 0 or force_next:
        days += 7
    return _at(ref.date() + timedelta(days=days))


def _parse_iso(raw: str) -> datetime:
    try:
        if len(raw) == 10:
            return _at(date.fromisoformat(raw), time(0, 0, tzinfo=UTC))
        return _as_utc(datetime.fromisoformat(raw.upper()))
    except ValueError:
        raise DateParseError(raw, "Invalid date format") from None


def _parse_relative(normalized: str, reference: datetime) -> datetime:
    m = _RELATIVE_RE.match(normalized)
    if not m:
        raise DateParseError(normalized, f"Invalid relative date format: {normalized}")

    amount = int(m.group(1))
    unit = m.group(2)
    day = reference.date()

    if unit.startswith("day"):
        day += timedelta(days=amount)
    elif unit.startswith("week"):
        day += timedelta(days=amount * 7)
    else:
        day = add_months(day, amount)
    return _at(day)


def _resolve(raw: str, normalized: str, ref: datetime) -> datetime:
    if _ISO_RE.match(raw):
        return _parse_iso(raw)

    today = ref.date()

    if normalized == "today":
        return _at(today)
    if normalized == "tonight":
        return _at(today, EVENING)
    if normalized == "tomorrow":
        return _at(today + timedelta(days=1))
    if normalized == "next week":
        return _at(today + timedelta(days=7))
    if normalized == "next month":
        return _at(add_months(today, 1))
    if _RELATIVE_RE.match(normalized):
        return _parse_relative(normalized, ref)

    m = _NEXT_WEEKDAY_RE.match(normalized)
    if m:
        return next_weekday(m.group(1), ref, force_next=True)

    if normalized in WEEKDAYS:
        return next_weekday(normalized, ref)

    m = _THIS_WEEKDAY_RE.match(normalized)
    if m:
        return next_weekday(m.group(1), ref)

    raise DateParseError(raw)


def parse_natural_date(phrase: str, reference: datetime | None = None) -> datetime:
    """
    Resolve `phrase` relative to `reference` (default: now) into an aware UTC datetime.

    Raises DateParseError for unrecognised phrases and PastDateError when the
    result is earlier than the reference instant.
    """
    ref = _as_utc(reference) if reference is not None else _utcnow()
    raw = (phrase or "").strip()
    normalized = " ".join(raw.lower().split())

    target = _resolve(raw, normalized, ref)

    if target < ref:
        raise PastDateError()
    return target


def to_api_timestamp(instant: datetime) -> str:
    """ISO 8601 with millisecond precision and a Z suffix ("2024-01-22T12:00:00.000Z")."""
    value = _as_utc(instant)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def format_date_for_speech(instant: datetime, reference: datetime | None = None) -> str:
    """Short spoken form: "today", "tomorrow", else "Wednesday, December 25"."""
    value = _as_utc(instant)
    ref = _as_utc(reference) if reference is not None else _utcnow()

    if value.date() == ref.date():
        return "today"
    if value.date() == ref.date() + timedelta(days=1):
        return "tomorrow"
    return f"{calendar.day_name[value.weekday()]}, {calendar.month_name[value.month]} {value.day}"
