"""Schemas for task endpoints."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from deepwork.domain.task import Task


class TaskPayload(BaseModel):
    id: int
    description: str
    category: Literal["deep", "shallow"]
    scheduled_date: date
    scheduled_start: str
    scheduled_end: str
    status: Literal["scheduled", "postponed", "cancelled"]
    outcome: Optional[Literal["on_time", "over", "under"]] = None
    postponed_from: Optional[int] = None
    duration_min: int
    created_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskPayload":
        return cls(
            id=task.id,
            description=task.description,
            category=task.category.value,
            scheduled_date=task.scheduled_date,
            scheduled_start=task.scheduled_start,
            scheduled_end=task.scheduled_end,
            status=task.status.value,
            outcome=task.outcome.value if task.outcome else None,
            postponed_from=task.postponed_from,
            duration_min=task.duration,
            created_at=task.created_at,
        )


class TaskCreateRequest(BaseModel):
    description: str
    category: str
    scheduled_date: Optional[str] = Field(default=None, description="YYYY-MM-DD; defaults to today")
    scheduled_start: str
    scheduled_end: str


class TaskPostponeRequest(BaseModel):
    new_date: str = Field(description="today, tomorrow, a weekday name, next-<weekday>, next-week or YYYY-MM-DD")
    scheduled_start: str
    scheduled_end: str


class TaskOutcomeRequest(BaseModel):
    outcome: str


class TaskEditRequest(BaseModel):
    description: Optional[str] = None
    scheduled_start: Optional[str] = None
    scheduled_end: Optional[str] = None

    @model_validator(mode="after")
    def _check_fields(self) -> "TaskEditRequest":
        if self.description is None and self.scheduled_start is None and self.scheduled_end is None:
            raise ValueError("nothing to update")
        if (self.scheduled_start is None) != (self.scheduled_end is None):
            raise ValueError("scheduled_start and scheduled_end must be changed together")
        return self


class TaskTimeChange(BaseModel):
    id: int
    scheduled_start: str
    scheduled_end: str


class TaskRescheduleRequest(BaseModel):
    scheduled_date: date
    updates: List[TaskTimeChange] = Field(min_length=1)


class TaskListResponse(BaseModel):
    start: date
    end: date
    tasks: List[TaskPayload]
    request_id: str
