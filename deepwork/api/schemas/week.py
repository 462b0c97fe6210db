"""Schemas for week views and summaries."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from deepwork.api.schemas.task import TaskPayload
from deepwork.domain.day import Day, DayStats
from deepwork.domain.timeutil import weekday_name
from deepwork.domain.week import WeekStats


class DayStatsPayload(BaseModel):
    deep_minutes: int
    shallow_minutes: int
    total_minutes: int
    deep_percent: int
    peak_deep_minutes: int
    total_blocks: int
    cancelled_blocks: int
    postponed_blocks: int

    @classmethod
    def from_stats(cls, stats: DayStats) -> "DayStatsPayload":
        return cls(
            deep_minutes=stats.deep_minutes,
            shallow_minutes=stats.shallow_minutes,
            total_minutes=stats.total_minutes,
            deep_percent=stats.deep_percent,
            peak_deep_minutes=stats.peak_deep_minutes,
            total_blocks=stats.total_blocks,
            cancelled_blocks=stats.cancelled_blocks,
            postponed_blocks=stats.postponed_blocks,
        )


class DayPayload(BaseModel):
    date: date
    weekday: str
    tasks: List[TaskPayload]
    stats: DayStatsPayload

    @classmethod
    def from_day(cls, day: Day, stats: DayStats) -> "DayPayload":
        return cls(
            date=day.date,
            weekday=weekday_name(day.date.weekday()),
            tasks=[TaskPayload.from_task(task) for task in day.tasks],
            stats=DayStatsPayload.from_stats(stats),
        )


class WeekStatsPayload(BaseModel):
    deep_minutes: int
    shallow_minutes: int
    total_minutes: int
    deep_percent: int
    peak_deep_minutes: int
    peak_percent: int
    ratio: str
    total_blocks: int
    cancelled_blocks: int
    postponed_blocks: int
    best_day: Optional[str] = None
    best_day_deep_minutes: int = 0

    @classmethod
    def from_stats(cls, stats: WeekStats) -> "WeekStatsPayload":
        best_index, best_minutes = stats.best_day()
        return cls(
            deep_minutes=stats.deep_minutes,
            shallow_minutes=stats.shallow_minutes,
            total_minutes=stats.total_minutes,
            deep_percent=stats.deep_percent,
            peak_deep_minutes=stats.peak_deep_minutes,
            peak_percent=stats.peak_percent,
            ratio=stats.ratio,
            total_blocks=stats.total_blocks,
            cancelled_blocks=stats.cancelled_blocks,
            postponed_blocks=stats.postponed_blocks,
            best_day=weekday_name(best_index) if best_index is not None else None,
            best_day_deep_minutes=best_minutes,
        )


class WeekResponse(BaseModel):
    start: date
    end: date
    days: List[DayPayload]
    stats: WeekStatsPayload
    request_id: str


class WeekSummaryResponse(BaseModel):
    start: date
    end: date
    tasks: List[TaskPayload]
    stats: WeekStatsPayload
    insight: Optional[str] = None
    request_id: str


class NextSlotResponse(BaseModel):
    date: date
    start: str
    end: str
    available_minutes: int
    is_workday: bool
    request_id: str
