"""Scheduling domain: tasks, days, weeks and the repository contract."""
from deepwork.domain.day import Day, DayStats
from deepwork.domain.errors import (
    DeepWorkError,
    ErrorKind,
    OverlapError,
    TaskNotFoundError,
    TaskValidationError,
)
from deepwork.domain.task import Category, Outcome, Task, TaskStatus
from deepwork.domain.week import Week, WeekStats
from deepwork.domain.week_window import WeekWindow

__all__ = [
    "Category",
    "Day",
    "DayStats",
    "DeepWorkError",
    "ErrorKind",
    "Outcome",
    "OverlapError",
    "Task",
    "TaskNotFoundError",
    "TaskStatus",
    "TaskValidationError",
    "Week",
    "WeekStats",
    "WeekWindow",
]
