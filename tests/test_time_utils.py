from datetime import date, datetime, timedelta, timezone

import pytest

from src.exceptions import InvalidDateFormat, InvalidTimeFormat
from src.time_utils import (
    compose_instant,
    normalize_time,
    overlaps,
    parse_date,
    parse_event_instant,
    resolve_timezone,
)


@pytest.mark.parametrize("raw, expected", [
    ("14:00", "14:00"),
    ("00:00", "00:00"),
    ("9:05", "09:05"),
    ("7 PM", "19:00"),
    ("7:30pm", "19:30"),
    ("07:30 PM", "19:30"),
    ("12 AM", "00:00"),
    ("12:15 am", "00:15"),
    ("12 PM", "12:00"),
    ("11am", "11:00"),
    (" 8:45 ", "08:45"),
])
def test_normalize_time(raw, expected):
    assert normalize_time(raw) == expected


@pytest.mark.parametrize("raw", ["14:00", "9:05", "7 PM", "12 AM", "11:59pm", "6:00"])
def test_normalize_time_is_idempotent(raw):
    once = normalize_time(raw)
    assert normalize_time(once) == once


@pytest.mark.parametrize("raw", ["25:00", "24:00", "10:75", "13 PM", "0 AM", "noon", "", "1430", None])
def test_normalize_time_rejects_garbage(raw):
    with pytest.raises(InvalidTimeFormat) as exc:
        normalize_time(raw)
    assert str(raw) in str(exc.value)


def test_compose_instant_uses_named_zone(tz):
    winter = compose_instant(date(2026, 1, 15), "2pm", tz)
    summer = compose_instant(date(2026, 7, 15), "14:00", tz)

    assert winter.isoformat() == "2026-01-15T14:00:00-05:00"
    assert summer.isoformat() == "2026-07-15T14:00:00-04:00"


def test_resolve_timezone_prefers_fixed_offset():
    fixed = resolve_timezone("America/New_York", "-05:00")
    instant = compose_instant(date(2026, 7, 15), "14:00", fixed)

    assert fixed == timezone(-timedelta(hours=5))
    assert instant.isoformat() == "2026-07-15T14:00:00-05:00"


def test_resolve_timezone_rejects_bad_offset():
    with pytest.raises(ValueError):
        resolve_timezone("UTC", "five hours")


def test_parse_date_iso_and_relative(tz):
    assert parse_date("2026-03-10", tz) == date(2026, 3, 10)
    assert parse_date("tomorrow", tz) == datetime.now(tz).date() + timedelta(days=1)


@pytest.mark.parametrize("raw", ["2026-13-40", "qwerty zxcv", "", None])
def test_parse_date_rejects_garbage(raw, tz):
    with pytest.raises(InvalidDateFormat):
        parse_date(raw, tz)


def test_parse_event_instant_handles_all_day_and_utc(tz):
    all_day = parse_event_instant({"date": "2026-03-10"}, tz)
    utc = parse_event_instant({"dateTime": "2026-03-10T18:00:00Z"}, tz)

    assert all_day == datetime(2026, 3, 10, tzinfo=tz)
    assert utc == datetime(2026, 3, 10, 18, 0, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        parse_event_instant({}, tz)


def test_overlaps_is_half_open(tz):
    day = date(2026, 3, 10)
    at = lambda hhmm: compose_instant(day, hhmm, tz)

    assert overlaps(at("13:30"), at("14:30"), at("14:00"), at("15:00"))
    assert overlaps(at("14:15"), at("14:45"), at("14:00"), at("15:00"))
    assert not overlaps(at("13:00"), at("14:00"), at("14:00"), at("15:00"))
    assert not overlaps(at("15:00"), at("16:00"), at("14:00"), at("15:00"))
