"""LLM-written insight for a finished (or in-progress) week."""
from __future__ import annotations

from datetime import date
from typing import List, Sequence

from deepwork.domain.task import Task
from deepwork.domain.timeutil import overlap_minutes
from deepwork.llm.client import LLMClient, Message

DEFAULT_PEAK_START = "09:00"
DEFAULT_PEAK_END = "12:00"

EVALUATOR_SYSTEM_PROMPT = (
    "You are a minimalist productivity analyst. Output ONLY the exact format shown - "
    "no markdown, no extra text. Be extremely concise."
)

EVALUATOR_USER_TEMPLATE = """Analyze this week's work log and output EXACTLY this format (no markdown, no code blocks):

THEME: [ 2-4 word theme ]

⚠️  PEAK LEAKAGE: Xh of ⚡ energy spent on [S] (specific activities).
📉 ENERGY DECAY: One sentence about how deep work duration changed Mon→Fri.
🧠 RESIDUE RISK: Mention if any [D] block followed [S] with <15m gap.

NEXT WEEK:
➜  First specific action to protect peak hours.
➜  Second specific scheduling change.

Data Format:
- [D] = Deep Work, [S] = Shallow Work
- ⚡ = Peak Energy Window ({peak_start}-{peak_end})

Weekly Data:
{week_data}

Rules:
- Use the exact emoji prefixes shown (⚠️, 📉, 🧠, ➜)
- Keep each line under 70 characters
- Be specific with times and durations from the data
- If no issue exists for a category, omit that line
- Output plain text only, no markdown formatting"""


class WeekEvaluator:
    def __init__(self, client: LLMClient, peak_start: str | None = None, peak_end: str | None = None) -> None:
        self.client = client
        self.peak_start = peak_start
        self.peak_end = peak_end

    def evaluate_week(self, start: date, end: date, tasks: Sequence[Task]) -> str:
        prompt = EVALUATOR_USER_TEMPLATE.format(
            peak_start=self.peak_start or DEFAULT_PEAK_START,
            peak_end=self.peak_end or DEFAULT_PEAK_END,
            week_data=self.format_week_data(start, end, tasks),
        )
        return self.client.chat(
            [
                Message(role="system", content=EVALUATOR_SYSTEM_PROMPT),
                Message(role="user", content=prompt),
            ]
        )

    def format_week_data(self, start: date, end: date, tasks: Sequence[Task]) -> str:
        lines: List[str] = [f"Week: {_short_day(start)} - {_short_day(end)}, {end.year}", ""]
        current = None
        for task in tasks:
            if task.scheduled_date != current:
                if current is not None:
                    lines.append("")
                lines.append(_short_day(task.scheduled_date))
                current = task.scheduled_date
            marker = "⚡" if self._touches_peak(task) else "  "
            tag = "[D]" if task.is_deep() else "[S]"
            lines.append(
                f"  {marker} {task.scheduled_start}-{task.scheduled_end}  {tag}  "
                f"{task.description}  {format_duration(task.duration)}"
            )
        return "\n".join(lines) + "\n"

    def _touches_peak(self, task: Task) -> bool:
        if not (self.peak_start and self.peak_end):
            return False
        return overlap_minutes(task.scheduled_start, task.scheduled_end, self.peak_start, self.peak_end) > 0


def format_duration(minutes: int) -> str:
    """``90`` -> ``1h30m``, ``60`` -> ``1h``, ``45`` -> ``45m``."""
    if minutes <= 0:
        return "0m"
    hours, rest = divmod(minutes, 60)
    if hours == 0:
        return f"{rest}m"
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h{rest}m"


def _short_day(value: date) -> str:
    return f"{value:%a %b} {value.day}"
