"""Repository-backed week statistics with an optional LLM insight."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence

from deepwork.core.config import Settings
from deepwork.domain.repository import TaskRepository
from deepwork.domain.task import Task
from deepwork.domain.timeutil import week_range
from deepwork.domain.week import Week, WeekStats
from deepwork.llm.client import LLMClient
from deepwork.llm.evaluator import WeekEvaluator
from deepwork.llm.factory import create_llm_client
from deepwork.observability.tracing import trace

logger = logging.getLogger(__name__)


@dataclass
class WeekSummary:
    start: date
    end: date
    week: Week
    stats: WeekStats
    insight: Optional[str] = None

    @property
    def tasks(self) -> List[Task]:
        return self.week.all_tasks()


def summarize_week(reference: date, tasks: Sequence[Task], peak_start: str | None = None, peak_end: str | None = None) -> WeekSummary:
    start, end = week_range(reference)
    week = Week.from_tasks(start, tasks)
    return WeekSummary(start=start, end=end, week=week, stats=week.stats(peak_start, peak_end))


def build_week_summary(
    repository: TaskRepository,
    settings: Settings,
    reference: date,
    *,
    include_insight: bool = False,
    client_factory: Optional[Callable[[Settings], LLMClient]] = None,
) -> WeekSummary:
    """Load the week containing ``reference`` and compute its statistics.

    With ``include_insight`` a non-empty week is also sent to the LLM for a
    short written review. Peak-hour figures are only computed when peak
    hours are configured.
    """
    start, end = week_range(reference)
    tasks = repository.list_tasks_by_date_range(start, end)
    summary = summarize_week(start, tasks, settings.peak_hours_start, settings.peak_hours_end)

    if include_insight and summary.tasks:
        client_factory = client_factory or create_llm_client
        evaluator = WeekEvaluator(client_factory(settings), settings.peak_hours_start, settings.peak_hours_end)
        with trace("week_summary.insight", metadata={"week_start": start.isoformat(), "tasks": len(summary.tasks)}):
            summary.insight = evaluator.evaluate_week(start, end, summary.tasks)
        logger.info("Generated insight for week %s", start)

    return summary
