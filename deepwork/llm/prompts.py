"""Prompt construction for the planning conversation."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Sequence

from deepwork.domain.task import Task
from deepwork.domain.timeutil import (
    format_date,
    format_time,
    is_valid_time,
    minutes_to_time,
    round_to_quarter_hour,
    to_minutes,
    weekday_name,
)

FULL_PROMPT_TEMPLATE = """You are a productivity assistant implementing Cal Newport's deep work methodology.

Context:
- Current date and time: {weekday}, {today} {now} (format: DayOfWeek, YYYY-MM-DD HH:MM)
- Today: {today} ({weekday}, {today_kind})
- Tomorrow: {tomorrow} ({tomorrow_weekday}, {tomorrow_kind})
- Configured workday hours: {day_start} to {day_end}
- Next workday: {next_workday} ({next_workday_date})

{existing}

{recent}

{suggested}

User request: "{request}"

CRITICAL DATE RULES:
1. "today" ALWAYS means {today}, even if it's a weekend
2. "tomorrow" ALWAYS means the next calendar day ({tomorrow}), even if it's a weekend
3. If the user explicitly asks for a weekend date, SCHEDULE IT on that weekend
4. Only suggest workdays as alternatives, never silently change "today" or "tomorrow"
5. For weekends, use the same workday hours (e.g., {day_start} to {day_end}) unless user specifies otherwise

Date parsing:
- "today" -> {today} (current day, even if weekend)
- "tomorrow" -> {tomorrow} (next calendar day, even if weekend)
- "monday", "next monday" -> next occurrence of Monday
- "saturday", "next saturday" -> next Saturday (schedule it!)
- "in X days" -> add X days to today
- "next week" -> add 7 days to today
- Explicit "YYYY-MM-DD" -> use that exact date

Other rules:
1. Resolve ALL dates to YYYY-MM-DD format in scheduled_date
2. Never schedule before current time ({now}) if scheduling for today
3. Never overlap with existing tasks listed above
4. Use 24-hour time format (HH:MM) for scheduled_start and scheduled_end
5. Round durations to 15-minute increments (minimum 15 minutes)
6. Categorize as "deep" (focused, cognitively demanding) or "shallow" (admin, meetings, email)
7. Schedule deep work in longer blocks, prefer earlier in the day
8. Batch shallow tasks together when possible
9. Add a warning if scheduling on a weekend (but still schedule it!)
10. Warn if tasks don't fit in available time
11. If a task lacks a specific time, infer a likely placement using the recent schedule history above
12. If a task matches a suggested time window, prefer that time unless the user specifies otherwise

{schema}"""

COMPACT_PROMPT_TEMPLATE = """You are a scheduling assistant. Use the context and return JSON only.

Today: {weekday} ({today})
Tomorrow: {tomorrow_weekday} ({tomorrow})
Current time: {now}
Workday hours: {day_start} to {day_end}
Next workday: {next_workday} ({next_workday_date})

{existing}

User request: "{request}"

Rules:
- Return JSON only (no markdown).
- Use scheduled_date YYYY-MM-DD and time HH:MM (24-hour).
- Schedule tasks within workday hours unless user explicitly requests otherwise.
- Do not overlap with existing tasks above.
- Do not schedule before current time if scheduling today.
- Use 15-minute increments (minimum 15 minutes).
- Category must be "deep" or "shallow".
- "warnings" and "suggestions" must be arrays of strings (no objects).

{schema}"""

RESPONSE_SCHEMA = """Respond ONLY with valid JSON (no markdown, no explanation):
{
  "tasks": [
    {
      "description": "string",
      "category": "deep" or "shallow",
      "scheduled_date": "YYYY-MM-DD",
      "scheduled_start": "HH:MM",
      "scheduled_end": "HH:MM"
    }
  ],
  "warnings": ["string"],
  "suggestions": ["string"]
}"""

NO_EXISTING = "Existing scheduled tasks: None"
NO_RECENT = "Recent schedule history (last 14 days): None"
NO_SUGGESTED = "Suggested time windows from recent history: None"


@dataclass
class PromptContext:
    request: str
    now: datetime
    day_start: str
    day_end: str
    next_workday: date
    existing: Sequence[Task] = field(default_factory=list)
    recent: Sequence[Task] = field(default_factory=list)
    compact: bool = False


def build_system_prompt(context: PromptContext) -> str:
    today = context.now.date()
    tomorrow = today + timedelta(days=1)
    values = {
        "weekday": weekday_name(today.weekday()),
        "today": format_date(today),
        "now": format_time(context.now),
        "today_kind": _day_kind(today),
        "tomorrow": format_date(tomorrow),
        "tomorrow_weekday": weekday_name(tomorrow.weekday()),
        "tomorrow_kind": _day_kind(tomorrow),
        "day_start": context.day_start or "09:00",
        "day_end": context.day_end or "17:00",
        "next_workday": f"{context.next_workday:%A, %B} {context.next_workday.day}",
        "next_workday_date": format_date(context.next_workday),
        "existing": format_existing_tasks(context.existing),
        "request": context.request,
        "schema": RESPONSE_SCHEMA,
    }
    if context.compact:
        return COMPACT_PROMPT_TEMPLATE.format(**values)
    values["recent"] = format_recent_tasks(context.recent)
    values["suggested"] = format_suggested_windows(context.recent)
    return FULL_PROMPT_TEMPLATE.format(**values)


def format_existing_tasks(tasks: Sequence[Task]) -> str:
    scheduled = [task for task in tasks if task.is_scheduled()]
    if not scheduled:
        return NO_EXISTING
    lines = ["Existing scheduled tasks (avoid overlaps):"]
    lines.extend(_task_line(task) for task in scheduled)
    return "\n".join(lines) + "\n"


def format_recent_tasks(tasks: Sequence[Task]) -> str:
    scheduled = [task for task in tasks if task.is_scheduled()]
    if not scheduled:
        return NO_RECENT
    scheduled.sort(key=lambda task: (task.scheduled_date, task.scheduled_start, task.scheduled_end, task.description))
    lines = ["Recent schedule history (last 14 days):"]
    lines.extend(_task_line(task) for task in scheduled)
    return "\n".join(lines) + "\n"


def format_suggested_windows(tasks: Sequence[Task]) -> str:
    suggestions = suggested_time_windows(tasks)
    if not suggestions:
        return NO_SUGGESTED
    lines = ["Suggested time windows from recent history (median):"]
    lines.extend(f"- {suggestion}" for suggestion in suggestions)
    return "\n".join(lines) + "\n"


def suggested_time_windows(tasks: Sequence[Task]) -> List[str]:
    """Median start/end per exact description, rounded to the quarter hour."""
    starts: Dict[str, List[int]] = {}
    ends: Dict[str, List[int]] = {}
    for task in tasks:
        if not task.is_scheduled() or not task.description:
            continue
        if not (is_valid_time(task.scheduled_start) and is_valid_time(task.scheduled_end)):
            continue
        starts.setdefault(task.description, []).append(to_minutes(task.scheduled_start))
        ends.setdefault(task.description, []).append(to_minutes(task.scheduled_end))

    suggestions = []
    for description in sorted(starts):
        start = round_to_quarter_hour(median_minutes(starts[description]))
        end = round_to_quarter_hour(median_minutes(ends[description]))
        suggestions.append(
            f"{description}: ~{minutes_to_time(start)}-{minutes_to_time(end)} (n={len(starts[description])})"
        )
    return suggestions


def median_minutes(values: Sequence[int]) -> int:
    """Median of minute values; even counts use the floored mean of the middle pair."""
    if not values:
        return 0
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) // 2


def _task_line(task: Task) -> str:
    return (
        f"- {format_date(task.scheduled_date)} {task.scheduled_start}-{task.scheduled_end}: "
        f"{task.description} [{task.category.value}]"
    )


def _day_kind(day: date) -> str:
    return "weekend" if day.weekday() >= 5 else "weekday"
