from datetime import date, datetime

import pytest

from deepwork.core.config import Settings
from deepwork.domain.task import Category
from deepwork.llm.client import LLMResponseError, LLMTransportError
from deepwork.services.planner import NoActiveSessionError, Planner, PlanningSession, UnresolvedValidationError

from .conftest import NOW, FakeLLMClient, make_task, proposal

VALID_PLAN = {
    "tasks": [
        proposal("Write chapter", "10:15", "12:00"),
        proposal("Inbox", "13:00", "13:30", category="shallow"),
        proposal("Draft slides", "09:00", "11:00", day="2025-03-11", category="focus"),
    ],
    "warnings": [{"message": "Busy Tuesday"}],
    "suggestions": "Batch email after lunch",
}
OVERLAPPING_PLAN = {
    "tasks": [
        proposal("Write chapter", "10:15", "12:00"),
        proposal("Review", "11:00", "11:30"),
    ]
}


@pytest.fixture()
def settings() -> Settings:
    return Settings(plan_max_retries=3)


def _planner(repository, settings, replies, now: datetime = NOW, session=None) -> Planner:
    return Planner(FakeLLMClient(replies), repository, settings, session=session, clock=lambda: now)


def test_first_valid_answer_is_returned(repository, settings) -> None:
    planner = _planner(repository, settings, [VALID_PLAN])

    result = planner.plan_with_retry("Write the chapter, clear inbox, slides tomorrow")

    assert len(planner.client.calls) == 1
    assert [message.role for message in planner.client.calls[0]] == ["system", "user"]
    assert result.sorted_dates == ["2025-03-10", "2025-03-11"]
    assert [task.description for task in result.tasks_by_date["2025-03-10"]] == ["Write chapter", "Inbox"]
    assert result.total_tasks() == 3
    assert result.warnings == ["Busy Tuesday"]
    assert result.suggestions == ["Batch email after lunch"]
    assert (result.effective_start, result.effective_end) == ("10:15", "17:00")
    assert result.available_minutes == 405
    assert result.is_non_workday is False
    assert result.today == NOW.date()
    assert not result.has_validation_errors()


def test_validation_feedback_is_sent_back(repository, settings) -> None:
    planner = _planner(repository, settings, [OVERLAPPING_PLAN, VALID_PLAN])

    result = planner.plan_with_retry("plan my day")

    assert len(planner.client.calls) == 2
    retry = planner.client.calls[1]
    assert [message.role for message in retry] == ["system", "user", "assistant", "user"]
    assert '"Review"' in retry[2].content
    assert retry[3].content.startswith("Your response had these errors:")
    assert "Task 1: overlap" in retry[3].content
    assert not result.has_validation_errors()


def test_exhausted_retries_return_last_errors(repository, settings) -> None:
    planner = _planner(repository, settings, [OVERLAPPING_PLAN] * 3)

    result = planner.plan_with_retry("plan my day", max_retries=2)

    assert len(planner.client.calls) == 3
    assert result.has_validation_errors()
    assert result.validation_errors[0].field == "overlap"
    assert result.total_tasks() == 2


def test_blank_description_is_retried(repository, settings) -> None:
    planner = _planner(repository, settings, [{"tasks": [proposal("", "10:15", "11:00")]}, VALID_PLAN])

    result = planner.plan_with_retry("plan my day")

    assert len(planner.client.calls) == 2
    assert "Task 0: description - description cannot be empty" in planner.client.calls[1][3].content
    assert not result.has_validation_errors()


def test_zero_retries_make_a_single_call(repository) -> None:
    planner = _planner(repository, Settings(plan_max_retries=0), [OVERLAPPING_PLAN])

    result = planner.plan_with_retry("plan my day")

    assert len(planner.client.calls) == 1
    assert result.has_validation_errors()


def test_llm_failure_names_the_attempt(repository, settings) -> None:
    planner = _planner(repository, settings, [OVERLAPPING_PLAN, LLMTransportError("connection reset")])

    with pytest.raises(LLMTransportError) as excinfo:
        planner.plan_with_retry("plan my day")

    assert str(excinfo.value) == "LLM planning (attempt 2): connection reset"


def test_malformed_payload_is_a_response_error(repository, settings) -> None:
    planner = _planner(repository, settings, [{"tasks": "tomorrow"}])

    with pytest.raises(LLMResponseError, match=r"attempt 1\): unexpected plan shape"):
        planner.plan_with_retry("plan my day")


def test_bare_task_list_is_accepted(repository, settings) -> None:
    planner = _planner(repository, settings, [[proposal("Write chapter", "10:15", "12:00")]])

    result = planner.plan_with_retry("plan my day")

    assert result.total_tasks() == 1


def test_prompt_lists_existing_and_recent_tasks(repository, settings) -> None:
    repository.create_tasks(
        [
            make_task("Standup", "09:00", "09:15", day=date(2025, 3, 10)),
            make_task("Gym", "18:00", "19:00", day=date(2025, 3, 7)),
            make_task("Gym", "18:30", "19:30", day=date(2025, 3, 5)),
            make_task("Too old", "09:00", "10:00", day=date(2025, 2, 20)),
        ]
    )
    planner = _planner(repository, settings, [VALID_PLAN])

    planner.plan_with_retry("plan my day")

    prompt = planner.client.calls[0][0].content
    assert "Existing scheduled tasks (avoid overlaps):\n- 2025-03-10 09:00-09:15: Standup [deep]" in prompt
    assert "- 2025-03-07 18:00-19:00: Gym [deep]" in prompt
    assert "Gym: ~18:15-19:15 (n=2)" in prompt
    assert "Too old" not in prompt
    assert "Next workday: Tuesday, March 11 (2025-03-11)" in prompt
    assert [task.description for task in planner.session.existing_tasks] == ["Standup"]


def test_local_provider_gets_compact_prompt(repository) -> None:
    planner = _planner(repository, Settings(llm_provider="ollama"), [VALID_PLAN])

    planner.plan_with_retry("plan my day")

    prompt = planner.client.calls[0][0].content
    assert prompt.startswith("You are a scheduling assistant.")
    assert "Recent schedule history" not in prompt


def test_weekend_request_reports_non_workday(repository, settings) -> None:
    saturday = datetime(2025, 3, 15, 11, 0)
    planner = _planner(repository, settings, [[proposal("Read", "12:00", "13:00", day="2025-03-15")]], now=saturday)

    result = planner.plan_with_retry("read today")

    assert result.is_non_workday is True
    assert result.today == date(2025, 3, 15)
    assert result.effective_start == "09:00"


def test_continue_requires_an_active_session(repository, settings) -> None:
    with pytest.raises(NoActiveSessionError):
        _planner(repository, settings, []).continue_planning("move it")


def test_continue_sends_previous_answer_and_feedback(repository, settings) -> None:
    session = PlanningSession()
    first = _planner(repository, settings, [VALID_PLAN], session=session)
    first.plan_with_retry("plan my day")

    second = _planner(repository, settings, [OVERLAPPING_PLAN, VALID_PLAN], session=session)
    second.continue_planning("move the slides to Wednesday", max_retries=1)

    feedback_call = second.client.calls[0]
    assert [message.role for message in feedback_call] == ["system", "user", "assistant", "user"]
    assert feedback_call[-1].content == "move the slides to Wednesday"
    assert len(second.client.calls[1]) == 6


def test_save_persists_every_task(repository, settings) -> None:
    planner = _planner(repository, settings, [VALID_PLAN])
    planner.plan_with_retry("plan my day")

    created = planner.save()

    assert [task.id for task in created] == [1, 2, 3]
    assert [task.category for task in created] == [Category.DEEP, Category.SHALLOW, Category.DEEP]
    assert len(repository.list_tasks_by_date_range(date(2025, 3, 10), date(2025, 3, 11))) == 3


def test_save_refuses_unresolved_plan(repository) -> None:
    planner = _planner(repository, Settings(plan_max_retries=0), [OVERLAPPING_PLAN])
    planner.plan_with_retry("plan my day")

    with pytest.raises(UnresolvedValidationError) as excinfo:
        planner.save()

    assert excinfo.value.issues
    assert repository.list_tasks_by_date_range(date(2025, 3, 10), date(2025, 3, 10)) == []


def test_save_without_a_plan(repository, settings) -> None:
    with pytest.raises(NoActiveSessionError):
        _planner(repository, settings, []).save()
