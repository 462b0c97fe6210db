"""Conversational planning routes."""
from __future__ import annotations

from datetime import datetime
from time import perf_counter
from typing import Callable

from fastapi import APIRouter, Depends, Request, Response, status

from deepwork.api.deps import get_clock, get_llm_client_factory, get_repository, get_session_store
from deepwork.api.schemas.plan import (
    PlanContinueRequest,
    PlanRequest,
    PlanResultResponse,
    PlanSaveResponse,
    ValidationIssuePayload,
)
from deepwork.core.config import Settings, get_settings
from deepwork.core.context import session_id_ctx_var
from deepwork.db.repository import SqlTaskRepository
from deepwork.llm.client import LLMClient
from deepwork.observability.metrics import log_metric
from deepwork.services.planner import PlanResult, Planner, PlanningSession
from deepwork.services.planning_sessions import PlanningSessionStore

router = APIRouter(prefix="/plans", tags=["plans"])


def _planner(
    session: PlanningSession,
    repository: SqlTaskRepository,
    settings: Settings,
    clock: Callable[[], datetime],
    client_factory: Callable[[Settings], LLMClient],
) -> Planner:
    return Planner(client_factory(settings), repository, settings, session=session, clock=clock)


def _serialize(session: PlanningSession, result: PlanResult, request: Request) -> PlanResultResponse:
    return PlanResultResponse(
        session_id=session.id,
        tasks_by_date=result.tasks_by_date,
        sorted_dates=result.sorted_dates,
        warnings=result.warnings,
        suggestions=result.suggestions,
        validation_errors=[
            ValidationIssuePayload(task_index=issue.task_index, field=issue.field, message=issue.message)
            for issue in result.validation_errors
        ],
        effective_start=result.effective_start,
        effective_end=result.effective_end,
        available_minutes=result.available_minutes,
        is_non_workday=result.is_non_workday,
        today=result.today,
        total_tasks=result.total_tasks(),
        request_id=request.state.request_id,
    )


@router.post("", response_model=PlanResultResponse, status_code=status.HTTP_201_CREATED)
def start_plan(
    payload: PlanRequest,
    request: Request,
    repository: SqlTaskRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
    client_factory: Callable[[Settings], LLMClient] = Depends(get_llm_client_factory),
    store: PlanningSessionStore = Depends(get_session_store),
) -> PlanResultResponse:
    """Open a planning session and return the first validated proposal."""
    session = store.create()
    token = session_id_ctx_var.set(session.id)
    started = perf_counter()
    try:
        planner = _planner(session, repository, settings, clock, client_factory)
        result = planner.plan_with_retry(payload.text, payload.max_retries)
    except Exception:
        store.discard(session.id)
        raise
    finally:
        session_id_ctx_var.reset(token)

    log_metric("plan.start.latency_ms", (perf_counter() - started) * 1000, {"session_id": session.id})
    return _serialize(session, result, request)


@router.post("/{session_id}/continue", response_model=PlanResultResponse)
def continue_plan(
    session_id: str,
    payload: PlanContinueRequest,
    request: Request,
    repository: SqlTaskRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
    client_factory: Callable[[Settings], LLMClient] = Depends(get_llm_client_factory),
    store: PlanningSessionStore = Depends(get_session_store),
) -> PlanResultResponse:
    """Send feedback on the current proposal and get a revised one."""
    session = store.get(session_id)
    planner = _planner(session, repository, settings, clock, client_factory)
    result = planner.continue_planning(payload.feedback, payload.max_retries)
    return _serialize(session, result, request)


@router.post("/{session_id}/save", response_model=PlanSaveResponse, status_code=status.HTTP_201_CREATED)
def save_plan(
    session_id: str,
    request: Request,
    repository: SqlTaskRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
    client_factory: Callable[[Settings], LLMClient] = Depends(get_llm_client_factory),
    store: PlanningSessionStore = Depends(get_session_store),
) -> PlanSaveResponse:
    """Persist the latest proposal and close the session."""
    session = store.get(session_id)
    planner = _planner(session, repository, settings, clock, client_factory)
    created = planner.save()
    store.discard(session_id)
    return PlanSaveResponse(
        session_id=session_id,
        created_task_ids=[task.id for task in created],
        request_id=request.state.request_id,
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def discard_plan(
    session_id: str,
    store: PlanningSessionStore = Depends(get_session_store),
) -> Response:
    store.get(session_id)
    store.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
