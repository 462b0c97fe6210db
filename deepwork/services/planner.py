"""Conversational planning: LLM proposals, validation feedback and persistence."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError

from deepwork.api.schemas.plan import PlanResponse, ProposedTask
from deepwork.core.config import Settings
from deepwork.domain.repository import TaskRepository
from deepwork.domain.task import Category, Task
from deepwork.domain.timeutil import local_now
from deepwork.llm.client import LLMClient, LLMResponseError, Message, PlanningError
from deepwork.llm.prompts import PromptContext, build_system_prompt
from deepwork.observability.metrics import PLAN_ATTEMPTS, PLAN_TASKS_SAVED, PLAN_VALIDATION_ERRORS, log_metric
from deepwork.observability.tracing import trace
from deepwork.services.plan_validator import PlanValidator, ValidationIssue, ValidationResult
from deepwork.services.scheduler import AvailableSlot, Scheduler

logger = logging.getLogger(__name__)

EXISTING_WINDOW_MONTHS = 1
HISTORY_DAYS = 14

ValidatorFactory = Callable[[datetime, str, str, Sequence[Task]], PlanValidator]


class NoActiveSessionError(LookupError):
    def __init__(self, message: str = "no active planning session") -> None:
        super().__init__(message)


class UnresolvedValidationError(ValueError):
    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues = list(issues)
        super().__init__("cannot save: result has validation errors")


@dataclass
class PlanResult:
    tasks_by_date: Dict[str, List[ProposedTask]]
    sorted_dates: List[str]
    warnings: List[str]
    suggestions: List[str]
    validation_errors: List[ValidationIssue]
    effective_start: str
    effective_end: str
    available_minutes: int
    is_non_workday: bool
    today: date

    def total_tasks(self) -> int:
        return sum(len(tasks) for tasks in self.tasks_by_date.values())

    def has_validation_errors(self) -> bool:
        return bool(self.validation_errors)

    def all_tasks(self) -> List[ProposedTask]:
        return [task for day in self.sorted_dates for task in self.tasks_by_date[day]]


@dataclass
class PlanningSession:
    """Conversation state owned by a single planning flow."""

    id: str = field(default_factory=lambda: uuid4().hex)
    messages: List[Message] = field(default_factory=list)
    existing_tasks: List[Task] = field(default_factory=list)
    last_response: Optional[PlanResponse] = None
    last_result: Optional[PlanResult] = None

    def is_active(self) -> bool:
        return bool(self.messages)


@dataclass
class _Window:
    now: datetime
    slot: AvailableSlot
    effective_start: str
    effective_end: str
    available_minutes: int


class Planner:
    def __init__(
        self,
        client: LLMClient,
        repository: TaskRepository,
        settings: Settings,
        *,
        session: Optional[PlanningSession] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
        validator_factory: ValidatorFactory = PlanValidator,
    ) -> None:
        self.client = client
        self.repository = repository
        self.settings = settings
        self.session = session or PlanningSession()
        self.scheduler = scheduler or Scheduler.from_settings(settings)
        self._clock = clock or (lambda: local_now(settings.timezone))
        self._validator_factory = validator_factory

    def plan_with_retry(self, text: str, max_retries: Optional[int] = None) -> PlanResult:
        """Start a fresh conversation from ``text`` and return the first acceptable plan.

        When every attempt fails validation the last proposal is returned with
        its validation errors instead of raising.
        """
        max_retries = self._retries(max_retries)
        window = self._window()
        today = window.now.date()

        existing = self.repository.list_tasks_by_date_range(today, _add_months(today, EXISTING_WINDOW_MONTHS))
        recent = self.repository.list_tasks_by_date_range(
            today - timedelta(days=HISTORY_DAYS), today - timedelta(days=1)
        )
        next_workday = self.scheduler.next_available_start(datetime.combine(window.slot.date, time(23, 59)))

        prompt = build_system_prompt(
            PromptContext(
                request=text,
                now=window.now,
                day_start=window.effective_start,
                day_end=window.effective_end,
                next_workday=next_workday.date,
                existing=existing,
                recent=recent,
                compact=self.settings.uses_compact_prompt(),
            )
        )

        session = self.session
        session.existing_tasks = list(existing)
        session.last_response = None
        session.last_result = None
        session.messages = [
            Message(role="system", content=prompt),
            Message(role="user", content=text),
        ]
        logger.info(
            "Planning session %s started with %d existing and %d recent tasks",
            session.id,
            len(existing),
            len(recent),
        )
        return self._run(window, max_retries)

    def continue_planning(self, feedback: str, max_retries: Optional[int] = None) -> PlanResult:
        """Amend the current plan with user feedback, reusing the original snapshot."""
        session = self.session
        if not session.is_active():
            raise NoActiveSessionError()
        max_retries = self._retries(max_retries)
        window = self._window()

        if session.last_response is not None:
            session.messages.append(Message(role="assistant", content=session.last_response.model_dump_json()))
        session.messages.append(Message(role="user", content=feedback))
        return self._run(window, max_retries)

    def save(self, result: Optional[PlanResult] = None) -> List[Task]:
        """Persist every proposed task in one atomic batch."""
        result = result or self.session.last_result
        if result is None:
            raise NoActiveSessionError("no plan to save")
        if result.has_validation_errors():
            raise UnresolvedValidationError(result.validation_errors)

        tasks = [_to_task(proposal) for proposal in result.all_tasks()]
        if not tasks:
            return []

        with trace("planner.save", metadata={"tasks": len(tasks)}, session_id=self.session.id):
            created = self.repository.create_tasks(tasks)
        log_metric(PLAN_TASKS_SAVED, len(created))
        logger.info("Planning session %s saved %d tasks", self.session.id, len(created))
        return created

    def _run(self, window: _Window, max_retries: int) -> PlanResult:
        session = self.session
        validation = ValidationResult()
        response: Optional[PlanResponse] = None

        for attempt in range(max_retries + 1):
            with trace(
                "planner.attempt",
                metadata={"attempt": attempt + 1, "messages": len(session.messages)},
                session_id=session.id,
            ) as attempt_trace:
                try:
                    response = self._request_plan(session.messages)
                except PlanningError as exc:
                    logger.warning("LLM planning failed on attempt %d: %s", attempt + 1, exc)
                    raise type(exc)(f"LLM planning (attempt {attempt + 1}): {exc}") from exc
                session.last_response = response

                validator = self._validator_factory(
                    window.now, window.effective_start, window.effective_end, session.existing_tasks
                )
                validation = validator.validate(response.tasks)
                log_metric(PLAN_ATTEMPTS, attempt + 1, {"valid": validation.valid})
                if attempt_trace:
                    attempt_trace.update(
                        metadata={"valid": validation.valid, "errors": [str(issue) for issue in validation.errors][:10]}
                    )

            if validation.valid:
                return self._finish(response, window, [])

            log_metric(PLAN_VALIDATION_ERRORS, len(validation.errors))
            logger.info(
                "Plan attempt %d/%d failed validation with %d issue(s)",
                attempt + 1,
                max_retries + 1,
                len(validation.errors),
            )
            if attempt < max_retries:
                session.messages.append(Message(role="assistant", content=response.model_dump_json()))
                session.messages.append(Message(role="user", content=validation.format_errors()))

        return self._finish(response, window, validation.errors)

    def _request_plan(self, messages: Sequence[Message]) -> PlanResponse:
        payload = self.client.chat_json(list(messages))
        if isinstance(payload, list):
            payload = {"tasks": payload}
        try:
            return PlanResponse.model_validate(payload)
        except ValidationError as exc:
            raise LLMResponseError(f"unexpected plan shape: {exc.error_count()} error(s)") from exc

    def _finish(self, response: PlanResponse, window: _Window, errors: List[ValidationIssue]) -> PlanResult:
        tasks_by_date: Dict[str, List[ProposedTask]] = {}
        for proposal in response.tasks:
            tasks_by_date.setdefault(proposal.scheduled_date, []).append(proposal)

        today = window.now.date()
        result = PlanResult(
            tasks_by_date=tasks_by_date,
            sorted_dates=sorted(tasks_by_date),
            warnings=list(response.warnings),
            suggestions=list(response.suggestions),
            validation_errors=list(errors),
            effective_start=window.effective_start,
            effective_end=window.effective_end,
            available_minutes=window.available_minutes,
            is_non_workday=not self.scheduler.is_workday(today),
            today=today,
        )
        self.session.last_result = result
        return result

    def _window(self) -> _Window:
        now = self._clock()
        slot = self.scheduler.next_available_start(now)
        effective_end = self.settings.day_end
        return _Window(
            now=now,
            slot=slot,
            effective_start=slot.start,
            effective_end=effective_end,
            available_minutes=self.scheduler.available_minutes(AvailableSlot(slot.date, slot.start, effective_end)),
        )

    def _retries(self, max_retries: Optional[int]) -> int:
        return self.settings.plan_max_retries if max_retries is None else max_retries


def _to_task(proposal: ProposedTask) -> Task:
    category = Category.SHALLOW if proposal.category == Category.SHALLOW.value else Category.DEEP
    return Task.new(
        proposal.description,
        category.value,
        proposal.scheduled_date,
        proposal.scheduled_start,
        proposal.scheduled_end,
    )


def _add_months(value: date, months: int) -> date:
    """Calendar-month offset, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    for day in range(value.day, 27, -1):
        try:
            return value.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return value.replace(year=year, month=month, day=min(value.day, 28))
