import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

import dateparser

from src.exceptions import InvalidDateFormat, InvalidTimeFormat

_HH_MM = re.compile(r"^(\d{2}):(\d{2})$")
_H_MM = re.compile(r"^(\d):(\d{2})$")
_TWELVE_HOUR = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(AM|PM)$", re.IGNORECASE)
_OFFSET = re.compile(r"^([+-])(\d{2}):?(\d{2})$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _format(hour: int, minute: int, raw) -> str:
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise InvalidTimeFormat(raw)
    return f"{hour:02d}:{minute:02d}"


def normalize_time(raw) -> str:
    """
    Converts a human time string to 24-hour ``HH:MM``.

    Accepts ``HH:MM``, ``H:MM`` and 12-hour forms such as ``7 PM``,
    ``7:30pm`` or ``07:30 PM``. Normalizing an already normalized value
    returns it unchanged.
    """
    if not isinstance(raw, str):
        raise InvalidTimeFormat(raw)
    value = raw.strip()

    match = _HH_MM.match(value) or _H_MM.match(value)
    if match:
        return _format(int(match.group(1)), int(match.group(2)), raw)

    match = _TWELVE_HOUR.match(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or "00")
        period = match.group(3).upper()
        if not 1 <= hour <= 12:
            raise InvalidTimeFormat(raw)
        if period == "PM" and hour != 12:
            hour += 12
        if period == "AM" and hour == 12:
            hour = 0
        return _format(hour, minute, raw)

    raise InvalidTimeFormat(raw)


def resolve_timezone(tz_name: str, utc_offset: Optional[str] = None) -> tzinfo:
    """Fixed civil offset when one is configured, otherwise the IANA zone."""
    if utc_offset:
        match = _OFFSET.match(utc_offset.strip())
        if not match:
            raise ValueError(f"Invalid UTC offset: '{utc_offset}'")
        sign = -1 if match.group(1) == "-" else 1
        delta = timedelta(hours=int(match.group(2)), minutes=int(match.group(3)))
        return timezone(sign * delta)
    return ZoneInfo(tz_name)


def parse_date(raw, tz: tzinfo) -> date:
    """ISO ``YYYY-MM-DD``, or a relative phrase like 'tomorrow' resolved in ``tz``."""
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidDateFormat(raw)
    value = raw.strip()
    if _ISO_DATE.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise InvalidDateFormat(raw)

    now = datetime.now(tz).replace(tzinfo=None)
    parsed = dateparser.parse(
        value,
        settings={"PREFER_DATES_FROM": "future", "RELATIVE_BASE": now},
    )
    if parsed is None:
        raise InvalidDateFormat(raw)
    return parsed.date()


def compose_instant(day: date, hhmm: str, tz: tzinfo) -> datetime:
    """Aware datetime for a wall-clock ``HH:MM`` on ``day`` in ``tz``."""
    hour, minute = (int(part) for part in normalize_time(hhmm).split(":"))
    return datetime.combine(day, time(hour, minute), tzinfo=tz)


def parse_event_instant(value: dict, tz: tzinfo) -> datetime:
    """
    Reads a Google Calendar ``start``/``end`` object.

    Timed events carry ``dateTime``; all-day events carry ``date`` and are
    pinned to local midnight.
    """
    if value.get("dateTime"):
        parsed = datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            event_tz = ZoneInfo(value["timeZone"]) if value.get("timeZone") else tz
            parsed = parsed.replace(tzinfo=event_tz)
        return parsed
    if value.get("date"):
        return datetime.combine(date.fromisoformat(value["date"]), time(0, 0), tzinfo=tz)
    raise ValueError(f"Event time has neither dateTime nor date: {value}")


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    # half-open [start, end)
    return start_a < end_b and start_b < end_a
