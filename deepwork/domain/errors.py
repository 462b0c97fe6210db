"""Typed failures raised by the scheduling domain."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    EMPTY_DESCRIPTION = "empty_description"
    INVALID_CATEGORY = "invalid_category"
    INVALID_DATE_FORMAT = "invalid_date_format"
    INVALID_TIME_FORMAT = "invalid_time_format"
    END_BEFORE_START = "end_before_start"
    INVALID_OUTCOME = "invalid_outcome"
    TIME_BLOCK_OVERLAP = "time_block_overlap"
    TASK_NOT_FOUND = "task_not_found"


_DEFAULT_MESSAGES = {
    ErrorKind.EMPTY_DESCRIPTION: "description cannot be empty",
    ErrorKind.INVALID_CATEGORY: "category must be 'deep' or 'shallow'",
    ErrorKind.INVALID_DATE_FORMAT: "date must be in YYYY-MM-DD format",
    ErrorKind.INVALID_TIME_FORMAT: "time must be in HH:MM format",
    ErrorKind.END_BEFORE_START: "end time must be after start time",
    ErrorKind.INVALID_OUTCOME: "outcome must be 'on_time', 'over' or 'under'",
    ErrorKind.TIME_BLOCK_OVERLAP: "time block overlaps with existing task",
    ErrorKind.TASK_NOT_FOUND: "task not found",
}


class DeepWorkError(Exception):
    """Base error carrying a machine-readable kind and a context payload."""

    def __init__(self, kind: ErrorKind, message: Optional[str] = None, **context: Any) -> None:
        self.kind = kind
        self.context: Dict[str, Any] = context
        super().__init__(message or _DEFAULT_MESSAGES[kind])

    @property
    def message(self) -> str:
        return str(self)


class TaskValidationError(DeepWorkError, ValueError):
    """A task field failed construction-time validation."""


class OverlapError(DeepWorkError):
    """A scheduled block would overlap another scheduled block on the same date."""

    def __init__(
        self,
        description: str,
        start: str,
        end: str,
        conflict_description: str,
        conflict_start: str,
        conflict_end: str,
        conflict_id: Optional[int] = None,
    ) -> None:
        message = (
            f"{_DEFAULT_MESSAGES[ErrorKind.TIME_BLOCK_OVERLAP]}: "
            f"{description!r} ({start}-{end}) conflicts with "
            f"{_conflict_label(conflict_id, conflict_description)} ({conflict_start}-{conflict_end})"
        )
        super().__init__(
            ErrorKind.TIME_BLOCK_OVERLAP,
            message,
            description=description,
            start=start,
            end=end,
            conflict_id=conflict_id,
            conflict_description=conflict_description,
            conflict_start=conflict_start,
            conflict_end=conflict_end,
        )


class TaskNotFoundError(DeepWorkError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(ErrorKind.TASK_NOT_FOUND, f"task {task_id} not found", task_id=task_id)


def _conflict_label(conflict_id: Optional[int], description: str) -> str:
    if conflict_id:
        return f"#{conflict_id} {description!r}"
    return repr(description)
