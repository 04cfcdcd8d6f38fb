from __future__ import annotations

import logging
from datetime import datetime

from kaizen.constants import DEFAULT_FINAL_TASK_NAME, FINAL_TASK_CONTEXT
from kaizen.errors import InvalidDeadline, InvalidStep, SchedulingError
from kaizen.models import ProjectDefinition, ScheduledTask, StepTemplate, TaskStatus
from kaizen.timeutil import minus_calendar_days, parse_time_of_day, parse_timestamp, with_time_of_day

logger = logging.getLogger(__name__)

_FORBIDDEN_NAME_CHARS = frozenset('/\\')


def terminal_step(final_task_name: str | None) -> StepTemplate:
    return StepTemplate(
        name=(final_task_name or "").strip() or DEFAULT_FINAL_TASK_NAME,
        lead_days=0,
        context=FINAL_TASK_CONTEXT,
    )


def validate_step(step: StepTemplate, position: int) -> None:
    name = (step.name or "").strip()
    if not name:
        raise InvalidStep(f"step {position}: name is required")
    if any(c in _FORBIDDEN_NAME_CHARS for c in name):
        raise InvalidStep(f"step {position}: name {name!r} must not contain path separators")

    lead = step.lead_days
    if isinstance(lead, bool) or not isinstance(lead, int):
        raise InvalidStep(f"step {position} ({name}): lead days must be an integer, got {lead!r}")
    if lead < 0:
        raise InvalidStep(f"step {position} ({name}): lead days must not be negative, got {lead}")

    if step.time is not None:
        try:
            parse_time_of_day(step.time)
        except ValueError as e:
            raise InvalidStep(f"step {position} ({name}): {e}") from e


def schedule(definition: ProjectDefinition, now: datetime | None = None) -> list[ScheduledTask]:
    """Backward-schedule a project into a contiguous chain of tasks.

    Starting from the project deadline, each step (last-to-do first) is due
    when its successor starts and is planned ``lead_days`` calendar days
    earlier. The result is in forward order: the first step to work on comes
    first and the terminal step is last.

    ``now`` only supplies the timezone for a naive deadline. The whole
    definition is validated before any task is produced, so a failure never
    leaves a partial chain.
    """
    project = (definition.project_name or "").strip()
    if not project:
        raise SchedulingError("project name is required")

    try:
        deadline = parse_timestamp(definition.deadline, tz=now.tzinfo if now is not None else None)
    except (TypeError, ValueError) as e:
        raise InvalidDeadline(f"invalid deadline: {definition.deadline!r}") from e

    steps = [*definition.steps, terminal_step(definition.final_task_name)]
    for position, step in enumerate(steps, start=1):
        validate_step(step, position)

    cursor = deadline
    chain: list[ScheduledTask] = []
    for position, step in reversed(list(enumerate(steps, start=1))):
        task_deadline = cursor
        if step.time is not None:
            task_deadline = with_time_of_day(cursor, parse_time_of_day(step.time))

        try:
            task_start = minus_calendar_days(task_deadline, step.lead_days)
        except OverflowError as e:
            raise InvalidStep(
                f"step {position} ({step.name.strip()}): lead days {step.lead_days} reach outside the calendar"
            ) from e
        chain.append(
            ScheduledTask(
                name=step.name.strip(),
                project=project,
                context=step.context,
                lead_days=step.lead_days,
                deadline=task_deadline,
                planned_date=task_start,
                status=TaskStatus.TODO,
            )
        )
        cursor = task_start

    chain.reverse()
    logger.debug("Scheduled %d tasks for %s (deadline %s)", len(chain), project, deadline.isoformat())
    return chain
