from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from kaizen.errors import RecordAlreadyExists, RecordCreationFailed
from kaizen.models import ScheduledTask, TaskStatus
from kaizen.timeutil import from_epoch_seconds, to_epoch_seconds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRow:
    id: str
    name: str
    project: str
    context: str
    status: str
    lead_days: int
    deadline: int | None
    planned_date: int | None
    est_minutes: int
    act_minutes: int | None
    created_at: int
    updated_at: int

    @property
    def is_done(self) -> bool:
        return self.status == TaskStatus.DONE.value

    @property
    def deadline_dt(self) -> datetime | None:
        return from_epoch_seconds(self.deadline) if self.deadline is not None else None

    @property
    def planned_dt(self) -> datetime | None:
        return from_epoch_seconds(self.planned_date) if self.planned_date is not None else None

    def to_task(self) -> ScheduledTask:
        if self.deadline is None or self.planned_date is None:
            raise ValueError(f"task {self.id} has no schedule")
        return ScheduledTask(
            name=self.name,
            project=self.project,
            context=self.context,
            lead_days=self.lead_days,
            deadline=from_epoch_seconds(self.deadline),
            planned_date=from_epoch_seconds(self.planned_date),
            status=TaskStatus(self.status),
            est_minutes=self.est_minutes,
            act_minutes=self.act_minutes,
        )


@dataclass
class CreationReport:
    created: list[TaskRow] = field(default_factory=list)
    failed: list[RecordCreationFailed] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.created) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


_SELECT = """
    SELECT id, name, project, context, status, lead_days, deadline, planned_date,
           est_minutes, act_minutes, created_at, updated_at
    FROM tasks
"""


def _uuid() -> str:
    return str(uuid.uuid4())


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_task_row(r: sqlite3.Row) -> TaskRow:
    return TaskRow(
        id=r["id"],
        name=r["name"],
        project=r["project"],
        context=r["context"] or "",
        status=r["status"],
        lead_days=int(r["lead_days"]),
        deadline=r["deadline"],
        planned_date=r["planned_date"],
        est_minutes=int(r["est_minutes"]),
        act_minutes=r["act_minutes"],
        created_at=int(r["created_at"]),
        updated_at=int(r["updated_at"]),
    )


def task_exists(conn: sqlite3.Connection, *, project: str, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM tasks WHERE project = :project AND name = :name",
        {"project": project, "name": name},
    ).fetchone()
    return row is not None


def create_task(conn: sqlite3.Connection, *, task: ScheduledTask, now: datetime) -> TaskRow:
    """Insert one task; an existing (project, name) record is never overwritten."""
    if task_exists(conn, project=task.project, name=task.name):
        raise RecordAlreadyExists(task.project, task.name)

    task_id = _uuid()
    now_ep = to_epoch_seconds(now)
    params = {
        "id": task_id,
        "name": task.name,
        "project": task.project,
        "context": task.context,
        "status": TaskStatus(task.status).value,
        "lead_days": task.lead_days,
        "deadline": to_epoch_seconds(task.deadline),
        "planned_date": to_epoch_seconds(task.planned_date),
        "est_minutes": task.est_minutes,
        "act_minutes": task.act_minutes,
        "now": now_ep,
    }
    try:
        conn.execute(
            """
            INSERT INTO tasks(id, name, project, context, status, lead_days, deadline, planned_date,
                              est_minutes, act_minutes, created_at, updated_at)
            VALUES(:id, :name, :project, :context, :status, :lead_days, :deadline, :planned_date,
                   :est_minutes, :act_minutes, :now, :now)
            """,
            params,
        )
    except sqlite3.IntegrityError as e:
        if "UNIQUE" in str(e):
            raise RecordAlreadyExists(task.project, task.name) from e
        raise RecordCreationFailed(task.name, str(e)) from e

    return TaskRow(
        id=task_id,
        name=task.name,
        project=task.project,
        context=task.context,
        status=params["status"],
        lead_days=task.lead_days,
        deadline=params["deadline"],
        planned_date=params["planned_date"],
        est_minutes=task.est_minutes,
        act_minutes=task.act_minutes,
        created_at=now_ep,
        updated_at=now_ep,
    )


def create_project_tasks(
    conn: sqlite3.Connection,
    *,
    tasks: Iterable[ScheduledTask],
    now: datetime,
) -> CreationReport:
    """Persist every task of a chain, continuing past individual failures."""
    report = CreationReport()
    for task in tasks:
        try:
            report.created.append(create_task(conn, task=task, now=now))
        except RecordCreationFailed as e:
            logger.warning("Failed to create task %s/%s: %s", task.project, task.name, e.reason)
            report.failed.append(e)
        except sqlite3.Error as e:
            logger.exception("Database error creating task %s/%s", task.project, task.name)
            report.failed.append(RecordCreationFailed(task.name, str(e)))
    return report


def get_task(conn: sqlite3.Connection, *, task_id: str) -> TaskRow | None:
    row = conn.execute(_SELECT + " WHERE id = :id", {"id": task_id}).fetchone()
    if not row:
        return None
    return _row_to_task_row(row)


def list_tasks(
    conn: sqlite3.Connection,
    *,
    q_like: str | None = None,
    contexts: list[str] | None = None,
    project: str | None = None,
) -> list[TaskRow]:
    params: dict[str, object] = {}
    where_parts: list[str] = ["1 = 1"]

    if q_like:
        where_parts.append("(name LIKE :q OR project LIKE :q)")
        params["q"] = q_like

    if project:
        where_parts.append("LOWER(project) = LOWER(:project)")
        params["project"] = project

    # contexts are prefixes: "#writ" finds "Writing"
    for i, ctx in enumerate(contexts or [], start=1):
        key = f"ctx{i}"
        where_parts.append(f"LOWER(context) LIKE :{key} ESCAPE '\\'")
        params[key] = _like_escape(ctx.lower()) + "%"

    sql = f"""
    {_SELECT}
    WHERE {' AND '.join(where_parts)}
    ORDER BY CASE WHEN planned_date IS NULL THEN 1 ELSE 0 END, planned_date ASC, created_at ASC
    """
    rows = conn.execute(sql, params).fetchall()
    return [_row_to_task_row(r) for r in rows]


def list_projects(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute("SELECT DISTINCT project FROM tasks ORDER BY project ASC").fetchall()
    return [str(r["project"]) for r in rows]


def status_counts(conn: sqlite3.Connection) -> tuple[int, int]:
    """Return (todo, done) counts."""
    rows = conn.execute("SELECT status, COUNT(*) AS c FROM tasks GROUP BY status").fetchall()
    counts = {r["status"]: int(r["c"]) for r in rows}
    return counts.get(TaskStatus.TODO.value, 0), counts.get(TaskStatus.DONE.value, 0)


def set_task_status(conn: sqlite3.Connection, *, task_id: str, status: TaskStatus, now_epoch: int) -> bool:
    cur = conn.execute(
        "UPDATE tasks SET status = :status, updated_at = :now WHERE id = :id",
        {"id": task_id, "status": TaskStatus(status).value, "now": now_epoch},
    )
    return cur.rowcount > 0


def toggle_task_status(conn: sqlite3.Connection, *, task_id: str, now_epoch: int) -> TaskStatus | None:
    row = get_task(conn, task_id=task_id)
    if row is None:
        return None
    new_status = TaskStatus(row.status).toggled()
    set_task_status(conn, task_id=task_id, status=new_status, now_epoch=now_epoch)
    return new_status


def record_actual_time(conn: sqlite3.Connection, *, task_id: str, minutes: int | None, now_epoch: int) -> bool:
    if minutes is not None and minutes < 0:
        raise ValueError("actual time must not be negative")
    cur = conn.execute(
        "UPDATE tasks SET act_minutes = :m, updated_at = :now WHERE id = :id",
        {"id": task_id, "m": minutes, "now": now_epoch},
    )
    return cur.rowcount > 0


def delete_task(conn: sqlite3.Connection, *, task_id: str) -> bool:
    cur = conn.execute("DELETE FROM tasks WHERE id = :id", {"id": task_id})
    return cur.rowcount > 0
