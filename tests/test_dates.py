"""Tests for date, instant and duration parsing."""

from datetime import date, datetime, timedelta, timezone

import pytest

from kanban_md.dates import format_duration, format_instant, parse_date, parse_duration, parse_instant
from kanban_md.errors import ErrorCode, KanbanError

NOW = datetime(2025, 3, 10, 15, 30, tzinfo=timezone.utc)


def test_parse_date_iso_day():
    assert parse_date("2025-01-02") == datetime(2025, 1, 2, tzinfo=timezone.utc)


def test_parse_date_iso_datetime_with_zone():
    assert parse_date("2025-01-02T12:00:00+02:00") == datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc)
    assert parse_date("2025-01-02T12:00:00Z") == datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)


def test_parse_date_keywords():
    assert parse_date("today", NOW) == datetime(2025, 3, 10, tzinfo=timezone.utc)
    assert parse_date("Tomorrow", NOW) == datetime(2025, 3, 11, tzinfo=timezone.utc)
    assert parse_date("yesterday", NOW) == datetime(2025, 3, 9, tzinfo=timezone.utc)


def test_parse_date_relative_days():
    assert parse_date("+3d", NOW) == datetime(2025, 3, 13, tzinfo=timezone.utc)
    assert parse_date("-1d", NOW) == datetime(2025, 3, 9, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["2025-13-45", "next week", "3d", ""])
def test_parse_date_invalid(value):
    with pytest.raises(KanbanError) as exc:
        parse_date(value, NOW)
    assert exc.value.code == ErrorCode.INVALID_DATE
    assert exc.value.details["value"] == value


def test_format_instant():
    assert format_instant(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2025-01-02T03:04:05Z"


def test_format_instant_converts_to_utc():
    tz = timezone(timedelta(hours=2))
    assert format_instant(datetime(2025, 1, 2, 3, 0, tzinfo=tz)) == "2025-01-02T01:00:00Z"


def test_parse_instant_accepts_yaml_values():
    assert parse_instant(None) is None
    assert parse_instant("") is None
    assert parse_instant(date(2025, 1, 2)) == datetime(2025, 1, 2, tzinfo=timezone.utc)
    assert parse_instant("2025-01-02T03:04:05Z") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert parse_instant(datetime(2025, 1, 2, 3, 4, 5)) == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_parse_duration():
    assert parse_duration("1h") == timedelta(hours=1)
    assert parse_duration("30m") == timedelta(minutes=30)
    assert parse_duration("1h30m") == timedelta(minutes=90)
    assert parse_duration("168h") == timedelta(days=7)
    assert parse_duration("0s") == timedelta(0)
    assert parse_duration("0") == timedelta(0)


@pytest.mark.parametrize("value", ["", "abc", "1h x", "h1", "1w"])
def test_parse_duration_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_format_duration():
    assert format_duration(timedelta(days=3, hours=4, minutes=5)) == "3d 4h"
    assert format_duration(timedelta(hours=5, minutes=12)) == "5h 12m"
    assert format_duration(timedelta(minutes=7, seconds=59)) == "7m"
    assert format_duration(timedelta(seconds=-30)) == "0m"
