"""Week view, week summary and next-slot routes."""
from __future__ import annotations

from datetime import date, datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from deepwork.api.deps import get_clock, get_llm_client_factory, get_repository, get_scheduler
from deepwork.api.schemas.task import TaskPayload
from deepwork.api.schemas.week import DayPayload, NextSlotResponse, WeekResponse, WeekStatsPayload, WeekSummaryResponse
from deepwork.core.config import Settings, get_settings
from deepwork.db.repository import SqlTaskRepository
from deepwork.domain.timeutil import parse_date
from deepwork.llm.client import LLMClient
from deepwork.observability.tracing import trace
from deepwork.services.scheduler import Scheduler
from deepwork.services.week_summary import build_week_summary

router = APIRouter(tags=["weeks"])


def _reference_day(value: str, clock: Callable[[], datetime]) -> date:
    if value == "today":
        return clock().date()
    try:
        return parse_date(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"'{value}' is not a date (use YYYY-MM-DD or 'today')",
        ) from exc


@router.get("/weeks/{day}", response_model=WeekResponse)
def get_week(
    day: str,
    request: Request,
    repository: SqlTaskRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> WeekResponse:
    """Return the Monday-to-Sunday week containing ``day`` with its statistics."""
    reference = _reference_day(day, clock)
    with trace("week.view", metadata={"reference": reference.isoformat()}):
        summary = build_week_summary(repository, settings, reference)

    return WeekResponse(
        start=summary.start,
        end=summary.end,
        days=[
            DayPayload.from_day(week_day, day_stats)
            for week_day, day_stats in zip(summary.week.days, summary.stats.day_stats)
        ],
        stats=WeekStatsPayload.from_stats(summary.stats),
        request_id=request.state.request_id,
    )


@router.get("/weeks/{day}/summary", response_model=WeekSummaryResponse)
def get_week_summary(
    day: str,
    request: Request,
    insight: bool = Query(default=False, description="Ask the LLM for a short review of the week"),
    repository: SqlTaskRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
    client_factory: Callable[[Settings], LLMClient] = Depends(get_llm_client_factory),
) -> WeekSummaryResponse:
    reference = _reference_day(day, clock)
    summary = build_week_summary(
        repository,
        settings,
        reference,
        include_insight=insight,
        client_factory=client_factory,
    )
    return WeekSummaryResponse(
        start=summary.start,
        end=summary.end,
        tasks=[TaskPayload.from_task(task) for task in summary.tasks],
        stats=WeekStatsPayload.from_stats(summary.stats),
        insight=summary.insight,
        request_id=request.state.request_id,
    )


@router.get("/schedule/next-slot", response_model=NextSlotResponse, tags=["schedule"])
def next_slot(
    request: Request,
    scheduler: Scheduler = Depends(get_scheduler),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> NextSlotResponse:
    """Earliest start at which new work can be booked."""
    slot = scheduler.next_available_start(clock())
    return NextSlotResponse(
        date=slot.date,
        start=slot.start,
        end=slot.end,
        available_minutes=scheduler.available_minutes(slot),
        is_workday=scheduler.is_workday(slot.date),
        request_id=request.state.request_id,
    )
