"""Week aggregate: seven Days anchored on a Monday."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from deepwork.domain.day import Day, DayStats
from deepwork.domain.errors import OverlapError
from deepwork.domain.task import Task
from deepwork.domain.timeutil import start_of_week

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


@dataclass
class WeekStats:
    deep_minutes: int = 0
    shallow_minutes: int = 0
    peak_deep_minutes: int = 0
    total_blocks: int = 0
    cancelled_blocks: int = 0
    postponed_blocks: int = 0
    day_stats: List[DayStats] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return self.deep_minutes + self.shallow_minutes

    @property
    def deep_percent(self) -> int:
        if self.total_minutes == 0:
            return 0
        return (self.deep_minutes * 100) // self.total_minutes

    @property
    def peak_percent(self) -> int:
        """Share of deep work that landed inside peak hours."""
        if self.deep_minutes == 0:
            return 0
        return (self.peak_deep_minutes * 100) // self.deep_minutes

    @property
    def ratio(self) -> str:
        if self.shallow_minutes > 0:
            return f"{self.deep_minutes / self.shallow_minutes:.1f}:1"
        if self.deep_minutes > 0:
            return "∞:1"
        return "0:0"

    def best_day(self) -> Tuple[Optional[int], int]:
        """Return ``(weekday, deep_minutes)`` for the deepest day.

        Ties go to the earliest weekday; a week without deep work yields
        ``(None, 0)``.
        """
        best_index: Optional[int] = None
        best_minutes = 0
        for index, stats in enumerate(self.day_stats):
            if stats.deep_minutes > best_minutes:
                best_index = index
                best_minutes = stats.deep_minutes
        return best_index, best_minutes


class Week:
    def __init__(self, start_date: date) -> None:
        self.start_date = start_of_week(start_date)
        self.days: List[Day] = [Day(self.start_date + timedelta(days=offset)) for offset in range(DAYS_PER_WEEK)]

    @classmethod
    def for_date(cls, reference: date) -> "Week":
        return cls(reference)

    @classmethod
    def from_tasks(cls, reference: date, tasks: Iterable[Task]) -> "Week":
        """Distribute tasks into their days.

        Tasks dated outside the week are skipped; so is a task that would
        overlap another scheduled block of its day.
        """
        week = cls(reference)
        for task in tasks:
            day = week.day_by_date(task.scheduled_date)
            if day is None:
                continue
            try:
                day.add_task(task)
            except OverlapError as exc:
                logger.warning("Skipping task %s while building week %s: %s", task.id, week.start_date, exc)
        return week

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=DAYS_PER_WEEK - 1)

    def day(self, weekday: int) -> Optional[Day]:
        if 0 <= weekday < DAYS_PER_WEEK:
            return self.days[weekday]
        return None

    def day_by_date(self, value: date) -> Optional[Day]:
        offset = (value - self.start_date).days
        return self.day(offset)

    def contains(self, value: date) -> bool:
        return self.day_by_date(value) is not None

    def all_tasks(self) -> List[Task]:
        """All tasks ordered by date, then start time."""
        result: List[Task] = []
        for day in self.days:
            result.extend(day.tasks)
        return result

    def stats(self, peak_start: Optional[str] = None, peak_end: Optional[str] = None) -> WeekStats:
        stats = WeekStats()
        for day in self.days:
            day_stats = day.stats(peak_start, peak_end)
            stats.day_stats.append(day_stats)
            stats.deep_minutes += day_stats.deep_minutes
            stats.shallow_minutes += day_stats.shallow_minutes
            stats.peak_deep_minutes += day_stats.peak_deep_minutes
            stats.total_blocks += day_stats.total_blocks
            stats.cancelled_blocks += day_stats.cancelled_blocks
            stats.postponed_blocks += day_stats.postponed_blocks
        return stats
