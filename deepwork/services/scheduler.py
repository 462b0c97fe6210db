"""Workday and work-hour arithmetic used to place new tasks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from deepwork.domain.timeutil import SLOT_MINUTES, format_time, to_minutes, weekday_name

_SCAN_DAYS = 7


@dataclass(frozen=True)
class AvailableSlot:
    date: date
    start: str
    end: str

    @property
    def minutes(self) -> int:
        return max(0, to_minutes(self.end) - to_minutes(self.start))


class Scheduler:
    """Answers "when can work happen" for a set of workdays and a daily window."""

    def __init__(self, workdays: Iterable[str], day_start: str, day_end: str) -> None:
        self.workdays = {name.strip().lower() for name in workdays}
        self.day_start = day_start
        self.day_end = day_end

    @classmethod
    def from_settings(cls, settings) -> "Scheduler":
        return cls(settings.workdays, settings.day_start, settings.day_end)

    def is_workday(self, value: date) -> bool:
        return weekday_name(value.weekday()).lower() in self.workdays

    def is_within_work_hours(self, moment: datetime) -> bool:
        if not self.is_workday(moment):
            return False
        return self.day_start <= format_time(moment) < self.day_end

    def next_available_start(self, now: datetime) -> AvailableSlot:
        """Return the earliest slot work can start at, at or after ``now``.

        Before hours on a workday this is the day start; during hours it is
        ``now`` rounded up to the next quarter hour; otherwise it is the start
        of the next workday.
        """
        if self.is_workday(now):
            current = format_time(now)
            if current < self.day_start:
                return AvailableSlot(now.date(), self.day_start, self.day_end)
            if current < self.day_end:
                rounded = _round_up_to_slot(now)
                start = format_time(rounded)
                if rounded.date() == now.date() and start < self.day_end:
                    return AvailableSlot(now.date(), start, self.day_end)
        return self._next_workday(now.date())

    def _next_workday(self, after: date) -> AvailableSlot:
        candidate = after + timedelta(days=1)
        for _ in range(_SCAN_DAYS):
            if self.is_workday(candidate):
                return AvailableSlot(candidate, self.day_start, self.day_end)
            candidate += timedelta(days=1)
        # no workdays configured
        return AvailableSlot(after + timedelta(days=1), self.day_start, self.day_end)

    def available_minutes(self, slot: AvailableSlot) -> int:
        return slot.minutes

    def can_fit(self, day: date, start: str, duration_minutes: int) -> bool:
        if not self.is_workday(day):
            return False
        return self.can_fit_any_day(start, duration_minutes)

    def can_fit_any_day(self, start: str, duration_minutes: int) -> bool:
        """Like ``can_fit`` but ignores the workday policy."""
        start_minutes = to_minutes(start)
        end_minutes = to_minutes(self.day_end)
        if start_minutes < to_minutes(self.day_start) or start_minutes >= end_minutes:
            return False
        return start_minutes + duration_minutes <= end_minutes

    def validate_time_slot(self, day: date, start: str, end: str) -> str:
        """Return an empty string when the slot is usable, otherwise the reason."""
        if not self.is_workday(day):
            return "not a workday"
        return self.validate_time_slot_any_day(start, end)

    def validate_time_slot_any_day(self, start: str, end: str) -> str:
        start_minutes = to_minutes(start)
        end_minutes = to_minutes(end)
        if start_minutes >= end_minutes:
            return "start time must be before end time"
        if start_minutes < to_minutes(self.day_start):
            return "start time is before workday start"
        if end_minutes > to_minutes(self.day_end):
            return "end time is after workday end"
        return ""


def _round_up_to_slot(moment: datetime) -> datetime:
    remainder = moment.minute % SLOT_MINUTES
    if remainder == 0 and moment.second == 0 and moment.microsecond == 0:
        return moment
    truncated = moment.replace(second=0, microsecond=0)
    return truncated + timedelta(minutes=SLOT_MINUTES - remainder)
