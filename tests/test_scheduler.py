from datetime import UTC, datetime, timedelta

import pytest

from kaizen.errors import InvalidDeadline, InvalidStep, SchedulingError
from kaizen.models import ProjectDefinition, StepTemplate, TaskStatus
from kaizen.scheduler import schedule

JAN1 = datetime(2024, 1, 1, tzinfo=UTC)
DEADLINE = datetime(2024, 1, 10, 17, 0, tzinfo=UTC)


def _project(steps=(), deadline=DEADLINE, final=None, name="Ep 1"):
    return ProjectDefinition(project_name=name, deadline=deadline, steps=steps, final_task_name=final)


def test_draft_and_submit_chain():
    tasks = schedule(
        _project(
            steps=[StepTemplate(name="Draft", lead_days=3, context="Writing")],
            deadline="2024-01-10T17:00",
            final="Submit",
        ),
        JAN1,
    )

    assert [t.name for t in tasks] == ["Draft", "Submit"]
    draft, submit = tasks

    assert submit.deadline == DEADLINE
    assert submit.planned_date == DEADLINE
    assert submit.lead_days == 0
    assert submit.context == "Submission"

    assert draft.deadline == DEADLINE
    assert draft.planned_date == datetime(2024, 1, 7, 17, 0, tzinfo=UTC)
    assert draft.lead_days == 3
    assert draft.context == "Writing"
    assert draft.project == "Ep 1"
    assert all(t.status is TaskStatus.TODO for t in tasks)


def test_chain_is_contiguous_and_lead_times_hold():
    steps = [
        StepTemplate(name="Research", lead_days=2),
        StepTemplate(name="Outline", lead_days=3),
        StepTemplate(name="Record", lead_days=1),
        StepTemplate(name="Buffer", lead_days=0),
    ]
    tasks = schedule(_project(steps=steps), JAN1)

    assert [t.name for t in tasks] == ["Research", "Outline", "Record", "Buffer", "Submission"]
    for earlier, later in zip(tasks, tasks[1:]):
        assert earlier.deadline == later.planned_date
    for t in tasks:
        assert t.planned_date <= t.deadline
        assert t.deadline - t.planned_date == timedelta(days=t.lead_days)

    assert tasks[0].planned_date == DEADLINE - timedelta(days=6)
    assert tasks[-1].deadline == DEADLINE
    assert tasks[-1].lead_days == 0


def test_empty_steps_produce_only_the_final_task():
    tasks = schedule(_project(), JAN1)

    assert len(tasks) == 1
    assert tasks[0].name == "Submission"
    assert tasks[0].deadline == DEADLINE
    assert tasks[0].planned_date == DEADLINE


def test_blank_final_task_name_uses_default():
    tasks = schedule(_project(final="  "), JAN1)
    assert tasks[-1].name == "Submission"


def test_time_override_replaces_time_of_day_before_subtracting():
    steps = [
        StepTemplate(name="Draft", lead_days=2),
        StepTemplate(name="Review", lead_days=1, time="09:30"),
    ]
    draft, review, final = schedule(_project(steps=steps), JAN1)

    assert final.deadline == DEADLINE
    assert review.deadline == datetime(2024, 1, 10, 9, 30, tzinfo=UTC)
    assert review.planned_date == datetime(2024, 1, 9, 9, 30, tzinfo=UTC)
    assert draft.deadline == review.planned_date
    assert draft.planned_date == datetime(2024, 1, 7, 9, 30, tzinfo=UTC)


def test_naive_deadline_takes_timezone_of_now():
    (task,) = schedule(_project(deadline="2024-01-10T17:00"), JAN1)
    assert task.deadline.tzinfo is UTC
    assert task.deadline == DEADLINE


def test_date_only_deadline_means_midnight():
    (task,) = schedule(_project(deadline="2024-01-10"), JAN1)
    assert task.deadline == datetime(2024, 1, 10, tzinfo=UTC)


def test_calendar_day_subtraction_keeps_wall_clock_across_dst():
    zoneinfo = pytest.importorskip("zoneinfo")
    try:
        berlin = zoneinfo.ZoneInfo("Europe/Berlin")
    except zoneinfo.ZoneInfoNotFoundError:
        pytest.skip("tz database not available")

    deadline = datetime(2024, 4, 2, 17, 0, tzinfo=berlin)
    draft, _final = schedule(_project(steps=[StepTemplate("Draft", 5)], deadline=deadline), JAN1)

    assert draft.planned_date.hour == 17
    assert draft.planned_date.date() == datetime(2024, 3, 28).date()


@pytest.mark.parametrize("deadline", ["not a date", "", "2024-13-45T10:00", None])
def test_invalid_deadline(deadline):
    with pytest.raises(InvalidDeadline):
        schedule(_project(deadline=deadline), JAN1)


@pytest.mark.parametrize(
    "step",
    [
        StepTemplate(name="Draft", lead_days=-1),
        StepTemplate(name="Draft", lead_days=1, time="25:99"),
        StepTemplate(name="Draft", lead_days=1, time="abc"),
        StepTemplate(name="Draft", lead_days=1, time="9.30"),
        StepTemplate(name="", lead_days=1),
        StepTemplate(name="drafts/one", lead_days=1),
        StepTemplate(name="Draft", lead_days="2"),  # type: ignore[arg-type]
        StepTemplate(name="Draft", lead_days=True),  # type: ignore[arg-type]
        StepTemplate(name="Draft", lead_days=10**9),
        StepTemplate(name="Draft", lead_days=10**6),
    ],
)
def test_invalid_step_aborts_whole_schedule(step):
    with pytest.raises(InvalidStep):
        schedule(_project(steps=[StepTemplate("Outline", 1), step]), JAN1)


def test_scheduling_errors_are_value_errors():
    assert issubclass(InvalidStep, ValueError)
    assert issubclass(InvalidDeadline, SchedulingError)


def test_project_name_is_required():
    with pytest.raises(SchedulingError):
        schedule(_project(name="   "), JAN1)
