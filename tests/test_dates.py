# tests/test_dates.py

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from voice_todo.errors import DateParseError, PastDateError
from voice_todo.parsing.dates import (
    add_months,
    format_date_for_speech,
    next_weekday,
    parse_natural_date,
    to_api_timestamp,
)

from .conftest import NOW


def noon(y: int, m: int, d: int) -> datetime:
    return datetime(y, m, d, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("phrase", "expected"),
    [
        ("today", noon(2024, 1, 15)),
        ("tonight", datetime(2024, 1, 15, 20, 0, tzinfo=UTC)),
        ("tomorrow", noon(2024, 1, 16)),
        ("next week", noon(2024, 1, 22)),
        ("next month", noon(2024, 2, 15)),
        ("in 3 days", noon(2024, 1, 18)),
        ("in 1 day", noon(2024, 1, 16)),
        ("in 2 weeks", noon(2024, 1, 29)),
        ("in 1 month", noon(2024, 2, 15)),
        ("friday", noon(2024, 1, 19)),
        ("this friday", noon(2024, 1, 19)),
        ("next friday", noon(2024, 1, 26)),
        ("next monday", noon(2024, 1, 22)),
        ("monday", noon(2024, 1, 22)),
    ],
)
def test_relative_phrases(phrase: str, expected: datetime) -> None:
    assert parse_natural_date(phrase, NOW) == expected


def test_phrases_are_case_and_whitespace_insensitive() -> None:
    assert parse_natural_date("  Next   MONDAY ", NOW) == noon(2024, 1, 22)
    assert parse_natural_date("TOMORROW", NOW) == noon(2024, 1, 16)


def test_result_is_aware_utc() -> None:
    result = parse_natural_date("tomorrow", NOW)
    assert result.tzinfo is not None
    assert result.utcoffset() == timedelta(0)


def test_iso_date_only_is_utc_midnight() -> None:
    assert parse_natural_date("2024-12-25", NOW) == datetime(2024, 12, 25, tzinfo=UTC)


def test_iso_datetime_variants() -> None:
    assert parse_natural_date("2024-12-25T10:00:00Z", NOW) == datetime(2024, 12, 25, 10, tzinfo=UTC)
    assert parse_natural_date("2024-12-25t10:00:00.250z", NOW) == datetime(
        2024, 12, 25, 10, 0, 0, 250000, tzinfo=UTC
    )
    # no offset -> taken as UTC
    assert parse_natural_date("2024-12-25T10:00:00", NOW) == datetime(2024, 12, 25, 10, tzinfo=UTC)


def test_invalid_iso_date() -> None:
    with pytest.raises(DateParseError, match="Invalid date format"):
        parse_natural_date("2024-13-45", NOW)


def test_unknown_phrase_mentions_it() -> None:
    with pytest.raises(DateParseError) as exc_info:
        parse_natural_date("gibberish", NOW)
    assert '"gibberish"' in str(exc_info.value)
    assert "next Monday" in str(exc_info.value)


def test_empty_phrase_is_rejected() -> None:
    with pytest.raises(DateParseError):
        parse_natural_date("   ", NOW)


def test_past_iso_date_is_rejected() -> None:
    with pytest.raises(PastDateError, match="Cannot schedule tasks in the past"):
        parse_natural_date("2020-01-01", NOW)


def test_today_after_noon_is_past() -> None:
    afternoon = datetime(2024, 1, 15, 13, 0, tzinfo=UTC)
    with pytest.raises(PastDateError):
        parse_natural_date("today", afternoon)
    # tonight is still ahead
    assert parse_natural_date("tonight", afternoon) == datetime(2024, 1, 15, 20, 0, tzinfo=UTC)


def test_reference_in_other_timezone_is_normalised() -> None:
    # 2024-01-15 23:30 in UTC-05:00 is already Tuesday in UTC.
    ref = datetime(2024, 1, 15, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert parse_natural_date("tomorrow", ref) == noon(2024, 1, 17)


def test_next_month_clamps_to_month_end() -> None:
    ref = datetime(2024, 1, 31, 9, 0, tzinfo=UTC)
    assert parse_natural_date("next month", ref) == noon(2024, 2, 29)


@pytest.mark.parametrize(
    ("start", "months", "expected"),
    [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2023, 12, 15), 2, date(2024, 2, 15)),
        (date(2024, 3, 31), 1, date(2024, 4, 30)),
    ],
)
def test_add_months(start: date, months: int, expected: date) -> None:
    assert add_months(start, months) == expected


def test_next_weekday_never_returns_today() -> None:
    assert next_weekday("Monday", NOW) == noon(2024, 1, 22)
    assert next_weekday("tuesday", NOW) == noon(2024, 1, 16)
    assert next_weekday("sunday", NOW) == noon(2024, 1, 21)


def test_next_weekday_force_next() -> None:
    assert next_weekday("tuesday", NOW, force_next=True) == noon(2024, 1, 23)
    # already pushed a week because it is today; not pushed twice
    assert next_weekday("monday", NOW, force_next=True) == noon(2024, 1, 22)


def test_next_weekday_rejects_unknown_name() -> None:
    with pytest.raises(DateParseError):
        next_weekday("funday", NOW)


def test_to_api_timestamp() -> None:
    assert to_api_timestamp(noon(2024, 1, 22)) == "2024-01-22T12:00:00.000Z"
    assert to_api_timestamp(datetime(2024, 1, 22, 12, 0, 0, 123456, tzinfo=UTC)) == "2024-01-22T12:00:00.123Z"
    offset = datetime(2024, 1, 22, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert to_api_timestamp(offset) == "2024-01-22T12:00:00.000Z"


def test_format_date_for_speech() -> None:
    assert format_date_for_speech(noon(2024, 1, 15), NOW) == "today"
    assert format_date_for_speech(noon(2024, 1, 16), NOW) == "tomorrow"
    assert format_date_for_speech(noon(2024, 12, 25), NOW) == "Wednesday, December 25"
