"""Task ORM model."""
from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func

from deepwork.db.base import Base
from deepwork.domain.task import Category, Outcome, Task, TaskStatus


class TaskRecord(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint("category IN ('deep', 'shallow')", name="ck_tasks_category"),
        CheckConstraint("status IN ('scheduled', 'postponed', 'cancelled')", name="ck_tasks_status"),
        CheckConstraint("outcome IS NULL OR outcome IN ('on_time', 'over', 'under')", name="ck_tasks_outcome"),
        CheckConstraint("scheduled_end > scheduled_start", name="ck_tasks_time_order"),
        Index("ix_tasks_scheduled_date", "scheduled_date"),
        Index("ix_tasks_status", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(Text, nullable=False)
    category = Column(String(16), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    # HH:MM strings sort the same as the times they encode.
    scheduled_start = Column(String(5), nullable=False)
    scheduled_end = Column(String(5), nullable=False)
    status = Column(String(16), nullable=False, default=TaskStatus.SCHEDULED.value)
    outcome = Column(String(16), nullable=True)
    postponed_from = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            description=self.description,
            category=Category(self.category),
            scheduled_date=self.scheduled_date,
            scheduled_start=self.scheduled_start,
            scheduled_end=self.scheduled_end,
            status=TaskStatus(self.status),
            outcome=Outcome(self.outcome) if self.outcome else None,
            postponed_from=self.postponed_from,
            created_at=self.created_at,
        )

    @classmethod
    def from_domain(cls, task: Task) -> "TaskRecord":
        return cls(
            description=task.description,
            category=task.category.value,
            scheduled_date=task.scheduled_date,
            scheduled_start=task.scheduled_start,
            scheduled_end=task.scheduled_end,
            status=task.status.value,
            outcome=task.outcome.value if task.outcome else None,
            postponed_from=task.postponed_from,
            created_at=task.created_at,
        )
