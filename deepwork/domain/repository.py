"""Persistence contract consumed by the scheduling engine."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Protocol, Sequence

from deepwork.domain.task import Outcome, Task


@dataclass(frozen=True)
class TaskTimeUpdate:
    task_id: int
    start: str
    end: str


class TaskRepository(Protocol):
    """Task storage.

    Every write is all-or-nothing: an overlap between scheduled tasks rejects
    the whole operation with OverlapError, unknown ids raise TaskNotFoundError.
    """

    def create_task(self, task: Task) -> Task:
        ...

    def create_tasks(self, tasks: Sequence[Task]) -> List[Task]:
        ...

    def get_task(self, task_id: int) -> Task:
        ...

    def cancel_task(self, task_id: int) -> Task:
        ...

    def set_task_outcome(self, task_id: int, outcome: Outcome) -> Task:
        ...

    def list_tasks_by_date_range(self, start: date, end: date) -> List[Task]:
        """Inclusive on both ends, ordered by date then start time."""
        ...

    def postpone_task(self, task_id: int, new_date: date, new_start: str, new_end: str) -> Task:
        """Flip the original to postponed and return the linked replacement."""
        ...

    def update_task(self, task_id: int, start: str, end: str) -> Task:
        ...

    def update_task_description(self, task_id: int, description: str) -> Task:
        ...

    def edit_task(
        self,
        task_id: int,
        *,
        description: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Task:
        """Description and/or times in one atomic change."""
        ...

    def batch_update_task_times(self, day: date, updates: Sequence[TaskTimeUpdate]) -> List[Task]:
        ...
