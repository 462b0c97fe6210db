"""Day aggregate: the ordered, overlap-safe tasks of one calendar date."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional

from deepwork.domain.errors import OverlapError
from deepwork.domain.task import Task, TaskStatus
from deepwork.domain.timeutil import overlap_minutes, times_overlap, to_minutes


@dataclass
class DayStats:
    deep_minutes: int = 0
    shallow_minutes: int = 0
    total_blocks: int = 0
    cancelled_blocks: int = 0
    postponed_blocks: int = 0
    peak_deep_minutes: int = 0

    @property
    def total_minutes(self) -> int:
        return self.deep_minutes + self.shallow_minutes

    @property
    def deep_percent(self) -> int:
        if self.total_minutes == 0:
            return 0
        return (self.deep_minutes * 100) // self.total_minutes


class Day:
    """Tasks for a single date, kept sorted by start time.

    Only ``scheduled`` tasks take part in overlap checks, so cancelled and
    postponed blocks never prevent a new booking.
    """

    def __init__(self, day: date) -> None:
        if isinstance(day, datetime):
            day = day.date()
        self.date = day
        self._tasks: List[Task] = []

    @classmethod
    def from_tasks(cls, day: date, tasks: Iterable[Task]) -> "Day":
        """Build a Day, raising OverlapError on the first conflicting task."""
        result = cls(day)
        for task in tasks:
            result.add_task(task)
        return result

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self):
        return iter(list(self._tasks))

    def add_task(self, task: Optional[Task]) -> None:
        if task is None:
            return
        if task.is_scheduled():
            conflict = self.find_overlapping_task(task.scheduled_start, task.scheduled_end)
            if conflict is not None:
                raise OverlapError(
                    task.description,
                    task.scheduled_start,
                    task.scheduled_end,
                    conflict.description,
                    conflict.scheduled_start,
                    conflict.scheduled_end,
                    conflict_id=conflict.id or None,
                )
        self._tasks.append(task)
        # list.sort is stable, so equal start times keep insertion order
        self._tasks.sort(key=lambda item: to_minutes(item.scheduled_start))

    def find_overlapping_task(self, start: str, end: str) -> Optional[Task]:
        """Return the earliest scheduled task overlapping ``[start, end)``."""
        for task in self._tasks:
            if not task.is_scheduled():
                continue
            if times_overlap(start, end, task.scheduled_start, task.scheduled_end):
                return task
        return None

    def has_overlap(self, start: str, end: str) -> bool:
        return self.find_overlapping_task(start, end) is not None

    def scheduled_tasks(self) -> List[Task]:
        return [task for task in self._tasks if task.is_scheduled()]

    def remove_task(self, task_id: int) -> Optional[Task]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return self._tasks.pop(index)
        return None

    def stats(self, peak_start: Optional[str] = None, peak_end: Optional[str] = None) -> DayStats:
        """Fold every task once into minute totals and status counters."""
        stats = DayStats()
        track_peak = bool(peak_start and peak_end)
        for task in self._tasks:
            stats.total_blocks += 1
            if task.status == TaskStatus.CANCELLED:
                stats.cancelled_blocks += 1
                continue
            if task.status == TaskStatus.POSTPONED:
                stats.postponed_blocks += 1
                continue
            if task.is_deep():
                stats.deep_minutes += task.duration
                if track_peak:
                    stats.peak_deep_minutes += overlap_minutes(
                        task.scheduled_start, task.scheduled_end, peak_start, peak_end
                    )
            else:
                stats.shallow_minutes += task.duration
        return stats
