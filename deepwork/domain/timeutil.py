"""Helpers for HH:MM time-of-day strings and calendar dates."""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

SLOT_MINUTES = 15
MINUTES_PER_DAY = 24 * 60
LAST_MINUTE = MINUTES_PER_DAY - 1

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WEEKDAY_SHORT_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_TIME_RE = re.compile(r"(?:[01]\d|2[0-3]):[0-5]\d", re.ASCII)


def is_valid_time(value: str) -> bool:
    """Return True for a strict five-character HH:MM value between 00:00 and 23:59."""
    return isinstance(value, str) and bool(_TIME_RE.fullmatch(value))


def to_minutes(value: str) -> int:
    """Convert HH:MM to minutes since midnight; malformed input yields 0."""
    if not isinstance(value, str) or len(value) != 5 or value[2] != ":":
        return 0
    hours, minutes = value[:2], value[3:]
    if not (hours.isascii() and minutes.isascii() and hours.isdigit() and minutes.isdigit()):
        return 0
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        return 0
    return h * 60 + m


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to HH:MM, clamped to the same day."""
    minutes = max(0, min(int(minutes), LAST_MINUTE))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open interval overlap: adjacent blocks do not overlap."""
    return to_minutes(start1) < to_minutes(end2) and to_minutes(start2) < to_minutes(end1)


def overlap_minutes(start1: str, end1: str, start2: str, end2: str) -> int:
    """Return the number of minutes two HH:MM ranges share."""
    overlap_start = max(to_minutes(start1), to_minutes(start2))
    overlap_end = min(to_minutes(end1), to_minutes(end2))
    if overlap_end <= overlap_start:
        return 0
    return overlap_end - overlap_start


def round_to_quarter_hour(minutes: int) -> int:
    """Round to the nearest 15-minute mark, clamped to 23:59."""
    if minutes < 0:
        return 0
    rounded = ((minutes + 7) // SLOT_MINUTES) * SLOT_MINUTES
    return min(rounded, LAST_MINUTE)


def format_time(value: datetime) -> str:
    return value.strftime(TIME_FORMAT)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(value: Optional[str], default: Optional[date] = None) -> date:
    """Parse YYYY-MM-DD; an empty value means ``default`` (today when omitted).

    Raises ValueError for anything else.
    """
    if not value:
        return default or date.today()
    return datetime.strptime(value, DATE_FORMAT).date()


def weekday_name(index: int) -> str:
    if 0 <= index <= 6:
        return WEEKDAY_NAMES[index]
    return ""


def weekday_short_name(index: int) -> str:
    if 0 <= index <= 6:
        return WEEKDAY_SHORT_NAMES[index]
    return ""


def start_of_week(value: date) -> date:
    """Return the Monday of the week containing ``value``."""
    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=value.weekday())


def week_range(value: date) -> tuple[date, date]:
    monday = start_of_week(value)
    return monday, monday + timedelta(days=6)


def parse_relative_date(value: str, today: date) -> date:
    """Resolve human date shorthands relative to ``today``.

    Accepts ``today``/empty, ``tomorrow``, ``next-week``, weekday names,
    ``next-<weekday>`` and absolute ``YYYY-MM-DD`` dates. Weekday names always
    resolve to a future day. Absolute dates before ``today`` are rejected.
    """
    text = (value or "").strip().lower()
    if text in ("", "today"):
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)
    if text == "next-week":
        return today + timedelta(days=7)

    names = [name.lower() for name in WEEKDAY_NAMES]
    if text.startswith("next-"):
        text = text[len("next-"):]
        if text not in names:
            raise ValueError(f"unrecognized date {value!r}")
    if text in names:
        days_until = names.index(text) - today.weekday()
        if days_until <= 0:
            days_until += 7
        return today + timedelta(days=days_until)

    try:
        resolved = datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"unrecognized date {value!r}") from None
    if resolved < today:
        raise ValueError(f"{value} is in the past")
    return resolved


def local_now(timezone: str = "UTC") -> datetime:
    """Current wall-clock time in ``timezone`` as a naive datetime."""
    return datetime.now(ZoneInfo(timezone)).replace(tzinfo=None)
