"""Schemas for LLM planning payloads and the planning endpoints."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class ProposedTask(BaseModel):
    """One task as proposed by the model; fields are unvalidated strings."""

    description: str = ""
    category: str = ""
    scheduled_date: str = ""
    scheduled_start: str = ""
    scheduled_end: str = ""

    @field_validator("description", "category", "scheduled_date", "scheduled_start", "scheduled_end", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


class PlanResponse(BaseModel):
    tasks: List[ProposedTask] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)

    @field_validator("tasks", mode="before")
    @classmethod
    def _none_as_no_tasks(cls, value: Any) -> Any:
        return value or []

    @field_validator("warnings", "suggestions", mode="before")
    @classmethod
    def _flatten_notes(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, (str, dict)):
            value = [value]
        return [_note_text(item) for item in value]


def _note_text(item: Any) -> str:
    # Local models sometimes answer with {"message": "..."} objects.
    if isinstance(item, dict):
        return " ".join(str(part) for part in item.values())
    return str(item)


class PlanRequest(BaseModel):
    text: str = Field(min_length=1)
    max_retries: Optional[int] = Field(default=None, ge=0, le=10)


class PlanContinueRequest(BaseModel):
    feedback: str = Field(min_length=1)
    max_retries: Optional[int] = Field(default=None, ge=0, le=10)


class ValidationIssuePayload(BaseModel):
    task_index: int
    field: str
    message: str


class PlanResultResponse(BaseModel):
    session_id: str
    tasks_by_date: Dict[str, List[ProposedTask]]
    sorted_dates: List[str]
    warnings: List[str]
    suggestions: List[str]
    validation_errors: List[ValidationIssuePayload]
    effective_start: str
    effective_end: str
    available_minutes: int
    is_non_workday: bool
    today: date
    total_tasks: int
    request_id: str


class PlanSaveResponse(BaseModel):
    session_id: str
    created_task_ids: List[int]
    request_id: str
