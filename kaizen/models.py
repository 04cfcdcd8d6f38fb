"""Value types shared by the scheduler, the repository and the presenter.

Step order is chronological: index 0 of ``ProjectDefinition.steps`` is the
first thing to do. The terminal step (``final_task_name``) is implicit and is
appended by the scheduler.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from kaizen.constants import DEFAULT_CONTEXT, DEFAULT_EST_MINUTES


class TaskStatus(str, Enum):
    TODO = "todo"
    DONE = "done"

    def toggled(self) -> TaskStatus:
        return TaskStatus.TODO if self is TaskStatus.DONE else TaskStatus.DONE


@dataclass(frozen=True)
class StepTemplate:
    name: str
    lead_days: int
    context: str = DEFAULT_CONTEXT
    time: str | None = None


@dataclass(frozen=True)
class ProjectDefinition:
    project_name: str
    deadline: datetime | str
    steps: tuple[StepTemplate, ...] = ()
    final_task_name: str | None = None

    def __post_init__(self) -> None:
        # Accept any sequence from callers; keep the stored value immutable.
        object.__setattr__(self, "steps", tuple(self.steps))


@dataclass(frozen=True)
class ScheduledTask:
    name: str
    project: str
    context: str
    lead_days: int
    deadline: datetime
    planned_date: datetime
    status: TaskStatus = TaskStatus.TODO
    est_minutes: int = DEFAULT_EST_MINUTES
    act_minutes: int | None = None
