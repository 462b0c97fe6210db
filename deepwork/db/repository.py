"""SQLAlchemy implementation of the task repository."""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from deepwork.db.models.task import TaskRecord
from deepwork.domain.day import Day
from deepwork.domain.errors import OverlapError, TaskNotFoundError
from deepwork.domain.repository import TaskTimeUpdate
from deepwork.domain.task import Outcome, Task, TaskStatus, parse_outcome

logger = logging.getLogger(__name__)


class SqlTaskRepository:
    """Task storage on a SQLAlchemy session.

    Each public method is one transaction: it commits on success and rolls
    back before re-raising on any failure, so a rejected batch leaves no rows.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def create_task(self, task: Task) -> Task:
        return self.create_tasks([task])[0]

    def create_tasks(self, tasks: Sequence[Task]) -> List[Task]:
        if not tasks:
            return []
        try:
            _check_batch(tasks)
            for day in sorted({task.scheduled_date for task in tasks}):
                booked = self._day(day)
                for task in tasks:
                    if task.scheduled_date == day:
                        booked.add_task(task)
            records = [TaskRecord.from_domain(task) for task in tasks]
            self.db.add_all(records)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        for record in records:
            self.db.refresh(record)
        logger.info("Created %d task(s)", len(records))
        return [record.to_domain() for record in records]

    def get_task(self, task_id: int) -> Task:
        return self._record(task_id).to_domain()

    def cancel_task(self, task_id: int) -> Task:
        record = self._record(task_id)
        record.status = TaskStatus.CANCELLED.value
        return self._commit(record)

    def set_task_outcome(self, task_id: int, outcome: Outcome | str) -> Task:
        parsed = parse_outcome(outcome)
        record = self._record(task_id)
        record.outcome = parsed.value
        return self._commit(record)

    def list_tasks_by_date_range(self, start: date, end: date) -> List[Task]:
        records = (
            self.db.query(TaskRecord)
            .filter(TaskRecord.scheduled_date >= start, TaskRecord.scheduled_date <= end)
            .order_by(TaskRecord.scheduled_date, TaskRecord.scheduled_start, TaskRecord.id)
            .all()
        )
        return [record.to_domain() for record in records]

    def postpone_task(self, task_id: int, new_date: date, new_start: str, new_end: str) -> Task:
        """Mark the task postponed and book its replacement in one transaction."""
        record = self._record(task_id)
        original = record.to_domain()
        replacement = original.postpone(new_date, new_start, new_end)
        try:
            self._day(new_date, exclude_id=task_id).add_task(replacement)
            record.status = original.status.value
            replacement_record = TaskRecord.from_domain(replacement)
            self.db.add(replacement_record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(replacement_record)
        logger.info("Postponed task %s to %s as task %s", task_id, new_date, replacement_record.id)
        return replacement_record.to_domain()

    def update_task(self, task_id: int, start: str, end: str) -> Task:
        return self.edit_task(task_id, start=start, end=end)

    def update_task_description(self, task_id: int, description: str) -> Task:
        return self.edit_task(task_id, description=description)

    def edit_task(
        self,
        task_id: int,
        *,
        description: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Task:
        """Apply a description and/or time change in one commit; nothing is written if either fails."""
        record = self._record(task_id)
        task = record.to_domain()
        if start is not None or end is not None:
            task.set_times(start, end)
            if task.is_scheduled():
                self._day(task.scheduled_date, exclude_id=task_id).add_task(task)
        if description is not None:
            task.set_description(description)

        record.scheduled_start = task.scheduled_start
        record.scheduled_end = task.scheduled_end
        record.description = task.description
        return self._commit(record)

    def batch_update_task_times(self, day: date, updates: Sequence[TaskTimeUpdate]) -> List[Task]:
        """Move several tasks of ``day`` at once; the final layout must not overlap."""
        if not updates:
            return []
        records = {
            record.id: record
            for record in self.db.query(TaskRecord)
            .filter(TaskRecord.scheduled_date == day, TaskRecord.status == TaskStatus.SCHEDULED.value)
            .all()
        }
        moved: Dict[int, Task] = {}
        for update in updates:
            if update.task_id not in records:
                raise TaskNotFoundError(update.task_id)
            task = records[update.task_id].to_domain()
            task.set_times(update.start, update.end)
            moved[update.task_id] = task

        final = Day(day)
        for task_id, record in records.items():
            final.add_task(moved.get(task_id) or record.to_domain())

        try:
            for task_id, task in moved.items():
                records[task_id].scheduled_start = task.scheduled_start
                records[task_id].scheduled_end = task.scheduled_end
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Rescheduled %d task(s) on %s", len(moved), day)
        return [self.get_task(task_id) for task_id in moved]

    def _record(self, task_id: int) -> TaskRecord:
        record = self.db.get(TaskRecord, task_id)
        if record is None:
            raise TaskNotFoundError(task_id)
        return record

    def _day(self, day: date, exclude_id: Optional[int] = None) -> Day:
        records: Iterable[TaskRecord] = (
            self.db.query(TaskRecord)
            .filter(TaskRecord.scheduled_date == day, TaskRecord.status == TaskStatus.SCHEDULED.value)
            .all()
        )
        return Day.from_tasks(day, (record.to_domain() for record in records if record.id != exclude_id))

    def _commit(self, record: TaskRecord) -> Task:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(record)
        return record.to_domain()


def _check_batch(tasks: Sequence[Task]) -> None:
    """Reject a batch whose own scheduled tasks collide."""
    for position, first in enumerate(tasks):
        for second in tasks[position + 1 :]:
            if first.is_scheduled() and second.is_scheduled() and first.overlaps_with(second):
                raise OverlapError(
                    second.description,
                    second.scheduled_start,
                    second.scheduled_end,
                    first.description,
                    first.scheduled_start,
                    first.scheduled_end,
                )
