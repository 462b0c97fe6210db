"""Task booking and editing routes."""
from __future__ import annotations

from datetime import date, datetime
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from deepwork.api.deps import get_clock, get_repository
from deepwork.api.schemas.task import (
    TaskCreateRequest,
    TaskEditRequest,
    TaskListResponse,
    TaskOutcomeRequest,
    TaskPayload,
    TaskPostponeRequest,
    TaskRescheduleRequest,
)
from deepwork.db.repository import SqlTaskRepository
from deepwork.domain.repository import TaskTimeUpdate
from deepwork.domain.task import Task
from deepwork.domain.timeutil import parse_relative_date
from deepwork.observability.metrics import log_metric
from deepwork.observability.tracing import trace

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
def list_tasks(
    request: Request,
    from_: Optional[date] = Query(default=None, alias="from"),
    to: Optional[date] = Query(default=None),
    repository: SqlTaskRepository = Depends(get_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TaskListResponse:
    """List tasks between two dates (inclusive); both default to today."""
    today = clock().date()
    start = from_ or today
    end = to or start
    if end < start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="'to' must not be before 'from'")

    with trace("task.list", metadata={"from": start.isoformat(), "to": end.isoformat()}):
        tasks = repository.list_tasks_by_date_range(start, end)
    log_metric("task.list.count", len(tasks))

    return TaskListResponse(
        start=start,
        end=end,
        tasks=[TaskPayload.from_task(task) for task in tasks],
        request_id=request.state.request_id,
    )


@router.post("", response_model=TaskPayload, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreateRequest,
    repository: SqlTaskRepository = Depends(get_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TaskPayload:
    task = Task.new(
        payload.description,
        payload.category,
        payload.scheduled_date,
        payload.scheduled_start,
        payload.scheduled_end,
        today=clock().date(),
    )
    with trace("task.create", metadata={"date": task.scheduled_date.isoformat(), "category": task.category.value}):
        created = repository.create_task(task)
    return TaskPayload.from_task(created)


@router.post("/reschedule", response_model=List[TaskPayload])
def reschedule_tasks(
    payload: TaskRescheduleRequest,
    repository: SqlTaskRepository = Depends(get_repository),
) -> List[TaskPayload]:
    """Move several tasks of one date at once; the whole change is rejected on any overlap."""
    updates = [TaskTimeUpdate(change.id, change.scheduled_start, change.scheduled_end) for change in payload.updates]
    with trace("task.reschedule", metadata={"date": payload.scheduled_date.isoformat(), "updates": len(updates)}):
        moved = repository.batch_update_task_times(payload.scheduled_date, updates)
    return [TaskPayload.from_task(task) for task in moved]


@router.get("/{task_id}", response_model=TaskPayload)
def get_task(task_id: int, repository: SqlTaskRepository = Depends(get_repository)) -> TaskPayload:
    return TaskPayload.from_task(repository.get_task(task_id))


@router.post("/{task_id}/cancel", response_model=TaskPayload)
def cancel_task(task_id: int, repository: SqlTaskRepository = Depends(get_repository)) -> TaskPayload:
    with trace("task.cancel", metadata={"task_id": task_id}):
        task = repository.cancel_task(task_id)
    return TaskPayload.from_task(task)


@router.post("/{task_id}/postpone", response_model=TaskPayload, status_code=status.HTTP_201_CREATED)
def postpone_task(
    task_id: int,
    payload: TaskPostponeRequest,
    repository: SqlTaskRepository = Depends(get_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TaskPayload:
    """Close the task and return the replacement booked at the new slot."""
    try:
        new_date = parse_relative_date(payload.new_date, clock().date())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    with trace("task.postpone", metadata={"task_id": task_id, "new_date": new_date.isoformat()}):
        replacement = repository.postpone_task(task_id, new_date, payload.scheduled_start, payload.scheduled_end)
    log_metric("task.postponed", 1, {"task_id": task_id})
    return TaskPayload.from_task(replacement)


@router.patch("/{task_id}/outcome", response_model=TaskPayload)
def set_task_outcome(
    task_id: int,
    payload: TaskOutcomeRequest,
    repository: SqlTaskRepository = Depends(get_repository),
) -> TaskPayload:
    task = repository.set_task_outcome(task_id, payload.outcome)
    return TaskPayload.from_task(task)


@router.patch("/{task_id}", response_model=TaskPayload)
def edit_task(
    task_id: int,
    payload: TaskEditRequest,
    repository: SqlTaskRepository = Depends(get_repository),
) -> TaskPayload:
    """Replace the description and/or the start and end times in one change."""
    with trace("task.edit", metadata={"task_id": task_id}):
        task = repository.edit_task(
            task_id,
            description=payload.description,
            start=payload.scheduled_start,
            end=payload.scheduled_end,
        )
    return TaskPayload.from_task(task)
