"""Multi-pass checks for LLM-proposed tasks."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Dict, List, Sequence, Tuple

from deepwork.api.schemas.plan import ProposedTask
from deepwork.domain.task import Task
from deepwork.domain.timeutil import DATE_FORMAT, format_date, is_valid_time, times_overlap, to_minutes

FIELD_DATE = "scheduled_date"
FIELD_START = "scheduled_start"
FIELD_END = "scheduled_end"
FIELD_OVERLAP = "overlap"
FIELD_DESCRIPTION = "description"


@dataclass(frozen=True)
class ValidationIssue:
    task_index: int
    field: str
    message: str

    def __str__(self) -> str:
        return f"Task {self.task_index}: {self.field} - {self.message}"


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[ValidationIssue] = field(default_factory=list)

    def format_errors(self) -> str:
        """Render every issue as one feedback message for the model."""
        if not self.errors:
            return ""
        lines = ["Your response had these errors:"]
        lines.extend(f"- {issue}" for issue in self.errors)
        return "\n".join(lines) + "\n\nPlease correct these issues and respond again with valid JSON."


class PlanValidator:
    """Validate a batch of proposals, collecting every violation.

    Pass one checks each task's fields. Tasks that pass are then checked
    against each other per date, then against already scheduled tasks.
    """

    def __init__(self, now: datetime, day_start: str, day_end: str, existing: Sequence[Task] = ()) -> None:
        self.now = now.replace(tzinfo=None)
        self.day_start = day_start
        self.day_end = day_end
        self.existing = list(existing)

    def validate(self, tasks: Sequence[ProposedTask]) -> ValidationResult:
        result = ValidationResult()
        accepted: List[Tuple[int, ProposedTask, date]] = []

        for index, proposal in enumerate(tasks):
            parsed_date = self._check_fields(index, proposal, result)
            if parsed_date is not None:
                accepted.append((index, proposal, parsed_date))

        self._check_self_overlaps(accepted, result)
        self._check_existing_overlaps(accepted, result)
        result.valid = not result.errors
        return result

    def _check_fields(self, index: int, proposal: ProposedTask, result: ValidationResult) -> date | None:
        issues: List[ValidationIssue] = []
        if not proposal.description.strip():
            issues.append(ValidationIssue(index, FIELD_DESCRIPTION, "description cannot be empty"))
        parsed_date = _parse_strict_date(proposal.scheduled_date)
        if parsed_date is None:
            issues.append(
                ValidationIssue(index, FIELD_DATE, f"'{proposal.scheduled_date}' is invalid (must be YYYY-MM-DD format)")
            )

        start_ok = is_valid_time(proposal.scheduled_start)
        end_ok = is_valid_time(proposal.scheduled_end)
        if not start_ok:
            issues.append(
                ValidationIssue(index, FIELD_START, f"'{proposal.scheduled_start}' is invalid (must be HH:MM format, 00:00-23:59)")
            )
        if not end_ok:
            issues.append(
                ValidationIssue(index, FIELD_END, f"'{proposal.scheduled_end}' is invalid (must be HH:MM format, 00:00-23:59)")
            )
        if start_ok and end_ok and to_minutes(proposal.scheduled_end) <= to_minutes(proposal.scheduled_start):
            issues.append(
                ValidationIssue(
                    index,
                    FIELD_END,
                    f"end time '{proposal.scheduled_end}' must be after start time '{proposal.scheduled_start}'",
                )
            )
        if parsed_date is not None and start_ok and self._is_in_past(parsed_date, proposal.scheduled_start):
            issues.append(
                ValidationIssue(
                    index,
                    FIELD_START,
                    f"start time '{proposal.scheduled_start}' on '{proposal.scheduled_date}' is in the past",
                )
            )

        result.errors.extend(issues)
        if issues:
            return None
        return parsed_date

    def _is_in_past(self, day: date, start: str) -> bool:
        # Only today's tasks can start in the past; an exact match with now is allowed.
        if day != self.now.date():
            return False
        minutes = to_minutes(start)
        return datetime.combine(day, time(minutes // 60, minutes % 60)) < self.now

    def _check_self_overlaps(self, accepted: List[Tuple[int, ProposedTask, date]], result: ValidationResult) -> None:
        by_date: Dict[date, List[Tuple[int, ProposedTask]]] = {}
        for index, proposal, day in accepted:
            by_date.setdefault(day, []).append((index, proposal))

        for day in sorted(by_date):
            day_tasks = sorted(by_date[day], key=lambda item: to_minutes(item[1].scheduled_start))
            for position, (_, earlier) in enumerate(day_tasks):
                for later_index, later in day_tasks[position + 1 :]:
                    if times_overlap(
                        earlier.scheduled_start, earlier.scheduled_end, later.scheduled_start, later.scheduled_end
                    ):
                        result.errors.append(
                            ValidationIssue(
                                later_index,
                                FIELD_OVERLAP,
                                f"overlaps with task '{earlier.description}' "
                                f"({earlier.scheduled_start}-{earlier.scheduled_end})",
                            )
                        )

    def _check_existing_overlaps(self, accepted: List[Tuple[int, ProposedTask, date]], result: ValidationResult) -> None:
        for index, proposal, day in accepted:
            for existing in self.existing:
                if not existing.is_scheduled() or existing.scheduled_date != day:
                    continue
                if times_overlap(
                    proposal.scheduled_start, proposal.scheduled_end, existing.scheduled_start, existing.scheduled_end
                ):
                    result.errors.append(
                        ValidationIssue(
                            index,
                            FIELD_OVERLAP,
                            f"overlaps with existing task '{existing.description}' "
                            f"({existing.scheduled_start}-{existing.scheduled_end} on {format_date(existing.scheduled_date)})",
                        )
                    )


def _parse_strict_date(value: str) -> date | None:
    if len(value) != len("YYYY-MM-DD") or not value.isascii():
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None
