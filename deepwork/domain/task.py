"""Task entity: a single scheduled block of deep or shallow work."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional, Union

from deepwork.domain.errors import ErrorKind, TaskValidationError
from deepwork.domain.timeutil import is_valid_time, parse_date, times_overlap, to_minutes


class TaskStatus(str, Enum):
    SCHEDULED = "scheduled"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


class Category(str, Enum):
    DEEP = "deep"
    SHALLOW = "shallow"


class Outcome(str, Enum):
    """How the real effort compared to the scheduled block."""

    ON_TIME = "on_time"
    OVER = "over"
    UNDER = "under"


DateInput = Union[str, date, None]


@dataclass
class Task:
    description: str
    category: Category
    scheduled_date: date
    scheduled_start: str
    scheduled_end: str
    status: TaskStatus = TaskStatus.SCHEDULED
    outcome: Optional[Outcome] = None
    postponed_from: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    id: int = 0

    @classmethod
    def new(
        cls,
        description: str,
        category: str,
        scheduled_date: DateInput,
        start: str,
        end: str,
        *,
        today: Optional[date] = None,
    ) -> "Task":
        """Build a validated task; the first failing check raises.

        Checks run in order: description, category, date, start, end, end > start.
        An empty date means ``today``.
        """
        if not description or not description.strip():
            raise TaskValidationError(ErrorKind.EMPTY_DESCRIPTION)
        parsed_category = parse_category(category)
        parsed_date = _coerce_date(scheduled_date, today)
        _check_time(start, "start")
        _check_time(end, "end")
        if to_minutes(end) <= to_minutes(start):
            raise TaskValidationError(ErrorKind.END_BEFORE_START, start=start, end=end)

        return cls(
            description=description,
            category=parsed_category,
            scheduled_date=parsed_date,
            scheduled_start=start,
            scheduled_end=end,
        )

    def is_scheduled(self) -> bool:
        return self.status == TaskStatus.SCHEDULED

    def is_cancelled(self) -> bool:
        return self.status == TaskStatus.CANCELLED

    def is_postponed(self) -> bool:
        return self.status == TaskStatus.POSTPONED

    def is_deep(self) -> bool:
        return self.category == Category.DEEP

    def is_shallow(self) -> bool:
        return self.category == Category.SHALLOW

    @property
    def duration(self) -> int:
        """Scheduled length in minutes."""
        if not (is_valid_time(self.scheduled_start) and is_valid_time(self.scheduled_end)):
            return 0
        return to_minutes(self.scheduled_end) - to_minutes(self.scheduled_start)

    def overlaps_with(self, other: Optional["Task"]) -> bool:
        if other is None or self.scheduled_date != other.scheduled_date:
            return False
        return times_overlap(self.scheduled_start, self.scheduled_end, other.scheduled_start, other.scheduled_end)

    def is_past(self, now: Optional[datetime] = None) -> bool:
        """True once the scheduled end has passed."""
        if not is_valid_time(self.scheduled_end):
            return False
        now = now or datetime.now()
        end_minutes = to_minutes(self.scheduled_end)
        ends_at = datetime.combine(self.scheduled_date, time(end_minutes // 60, end_minutes % 60))
        return now.replace(tzinfo=None) > ends_at

    def cancel(self) -> None:
        self.status = TaskStatus.CANCELLED

    def set_outcome(self, outcome: Union[str, Outcome]) -> None:
        self.outcome = parse_outcome(outcome)

    def set_times(self, start: str, end: str) -> None:
        """Replace both times at once after validating them."""
        _check_time(start, "start")
        _check_time(end, "end")
        if to_minutes(end) <= to_minutes(start):
            raise TaskValidationError(ErrorKind.END_BEFORE_START, start=start, end=end)
        self.scheduled_start = start
        self.scheduled_end = end

    def set_description(self, description: str) -> None:
        description = (description or "").strip()
        if not description:
            raise TaskValidationError(ErrorKind.EMPTY_DESCRIPTION)
        self.description = description

    def postpone(self, new_date: date, new_start: str, new_end: str) -> "Task":
        """Close this task and return its linked replacement.

        The original keeps every field except its status, which becomes
        ``postponed``.
        """
        replacement = Task.new(
            self.description,
            self.category.value,
            new_date,
            new_start,
            new_end,
        )
        replacement.postponed_from = self.id
        self.status = TaskStatus.POSTPONED
        return replacement


def parse_category(value: Union[str, Category]) -> Category:
    try:
        return Category(value)
    except ValueError:
        raise TaskValidationError(ErrorKind.INVALID_CATEGORY, category=value) from None


def parse_outcome(value: Union[str, Outcome]) -> Outcome:
    try:
        return Outcome(value)
    except ValueError:
        raise TaskValidationError(ErrorKind.INVALID_OUTCOME, outcome=value) from None


def _coerce_date(value: DateInput, today: Optional[date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_date(value, default=today)
    except ValueError:
        raise TaskValidationError(ErrorKind.INVALID_DATE_FORMAT, date=value) from None


def _check_time(value: str, label: str) -> None:
    if not is_valid_time(value):
        raise TaskValidationError(
            ErrorKind.INVALID_TIME_FORMAT,
            f"{label} time: time must be in HH:MM format",
            field=label,
            value=value,
        )
