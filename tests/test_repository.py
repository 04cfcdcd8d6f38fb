from dataclasses import replace
from datetime import UTC, datetime, timedelta, timezone

import pytest

from kaizen import db
from kaizen.errors import RecordAlreadyExists
from kaizen.models import ProjectDefinition, StepTemplate, TaskStatus
from kaizen.repository import (
    create_project_tasks,
    create_task,
    delete_task,
    get_task,
    list_projects,
    list_tasks,
    record_actual_time,
    set_task_status,
    status_counts,
    toggle_task_status,
)
from kaizen.scheduler import schedule

NOW = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def conn(tmp_path):
    c = db.connect(tmp_path / "kaizen.db")
    db.migrate(c)
    yield c
    c.close()


def _chain(project="Ep 1", steps=("Draft",)):
    return schedule(
        ProjectDefinition(
            project_name=project,
            deadline="2024-01-10T17:00",
            steps=[StepTemplate(name=s, lead_days=2, context="Writing") for s in steps],
        ),
        NOW,
    )


def test_migrate_is_idempotent(conn, tmp_path):
    assert db.migrate(conn) == 1
    assert db.db_info(conn, tmp_path / "kaizen.db").schema_version == 1


def test_created_rows_round_trip_every_field(conn):
    chain = _chain()
    report = create_project_tasks(conn, tasks=chain, now=NOW)
    conn.commit()

    assert report.ok
    assert report.attempted == 2
    for task, row in zip(chain, report.created):
        assert row.to_task() == task
        assert row.act_minutes is None
        assert row.created_at == row.updated_at
        assert get_task(conn, task_id=row.id) == row


def test_stored_timestamps_are_whole_utc_seconds(conn):
    tokyo = timezone(timedelta(hours=9))
    (task,) = _chain(steps=())
    task = replace(task, deadline=datetime(2024, 1, 10, 17, 0, 30, 250_000, tzinfo=tokyo))

    restored = create_task(conn, task=task, now=NOW).to_task()

    assert restored.deadline == datetime(2024, 1, 10, 8, 0, 30, tzinfo=UTC)
    assert restored.deadline.tzinfo is UTC
    assert restored.planned_date == task.planned_date


def test_existing_record_is_never_overwritten(conn):
    chain = _chain()
    first = create_task(conn, task=chain[0], now=NOW)

    with pytest.raises(RecordAlreadyExists):
        create_task(conn, task=chain[0], now=NOW)

    assert get_task(conn, task_id=first.id) == first
    assert len(list_tasks(conn)) == 1


def test_batch_creation_continues_past_failures(conn):
    create_project_tasks(conn, tasks=_chain(steps=("Draft",)), now=NOW)

    report = create_project_tasks(conn, tasks=_chain(steps=("Outline", "Draft")), now=NOW)

    assert [r.name for r in report.created] == ["Outline"]
    assert [f.name for f in report.failed] == ["Draft", "Submission"]
    assert all(isinstance(f, RecordAlreadyExists) for f in report.failed)
    assert report.attempted == 3
    assert not report.ok
    assert len(list_tasks(conn)) == 3


def test_same_task_name_in_another_project_is_allowed(conn):
    create_project_tasks(conn, tasks=_chain(project="Ep 1"), now=NOW)
    report = create_project_tasks(conn, tasks=_chain(project="Ep 2"), now=NOW)
    assert report.ok
    assert list_projects(conn) == ["Ep 1", "Ep 2"]


def test_status_changes(conn):
    report = create_project_tasks(conn, tasks=_chain(), now=NOW)
    draft = report.created[0]

    assert status_counts(conn) == (2, 0)
    assert toggle_task_status(conn, task_id=draft.id, now_epoch=100) is TaskStatus.DONE
    assert status_counts(conn) == (1, 1)
    assert get_task(conn, task_id=draft.id).is_done
    assert toggle_task_status(conn, task_id=draft.id, now_epoch=200) is TaskStatus.TODO
    assert get_task(conn, task_id=draft.id).updated_at == 200

    assert set_task_status(conn, task_id=draft.id, status=TaskStatus.DONE, now_epoch=300)
    assert toggle_task_status(conn, task_id="missing", now_epoch=300) is None


def test_actual_time(conn):
    draft = create_project_tasks(conn, tasks=_chain(), now=NOW).created[0]

    assert record_actual_time(conn, task_id=draft.id, minutes=45, now_epoch=100)
    assert get_task(conn, task_id=draft.id).act_minutes == 45
    with pytest.raises(ValueError):
        record_actual_time(conn, task_id=draft.id, minutes=-5, now_epoch=100)


def test_list_tasks_filters(conn):
    create_project_tasks(conn, tasks=_chain(project="Podcast", steps=("Record",)), now=NOW)
    create_project_tasks(conn, tasks=_chain(project="Essay", steps=("Draft",)), now=NOW)

    assert {r.name for r in list_tasks(conn, q_like="%record%")} == {"Record"}
    assert {r.project for r in list_tasks(conn, q_like="%essay%")} == {"Essay"}
    assert {r.name for r in list_tasks(conn, contexts=["writing"])} == {"Record", "Draft"}
    assert {r.name for r in list_tasks(conn, contexts=["submission"], project="Essay")} == {"Submission"}
    assert {r.name for r in list_tasks(conn, contexts=["writ"], project="essay")} == {"Draft"}
    assert list_tasks(conn, contexts=["wr%"]) == []

    planned = [r.planned_date for r in list_tasks(conn)]
    assert planned == sorted(planned)


def test_rows_without_schedule(conn):
    conn.execute(
        """
        INSERT INTO tasks(id, name, project, context, status, lead_days, deadline, planned_date,
                          est_minutes, act_minutes, created_at, updated_at)
        VALUES('x', 'Loose', 'Misc', '', 'todo', 0, NULL, NULL, 60, NULL, 0, 0)
        """
    )
    row = get_task(conn, task_id="x")
    assert row.deadline is None and row.planned_date is None
    assert row.deadline_dt is None
    with pytest.raises(ValueError):
        row.to_task()

    assert list_tasks(conn)[-1].id == "x"


def test_delete(conn):
    draft = create_project_tasks(conn, tasks=_chain(), now=NOW).created[0]
    assert delete_task(conn, task_id=draft.id)
    assert not delete_task(conn, task_id=draft.id)
    assert get_task(conn, task_id=draft.id) is None
