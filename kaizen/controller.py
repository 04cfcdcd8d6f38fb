from __future__ import annotations

import logging
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Property, QTimer, Signal, Slot

from kaizen import db
from kaizen.constants import SEARCH_DEBOUNCE_MS, URGENCY_UPDATE_INTERVAL_MS, VIEWS
from kaizen.errors import SchedulingError
from kaizen.models import ProjectDefinition, StepTemplate
from kaizen.presenter import present
from kaizen.query_parser import parse_search_query
from kaizen.repository import (
    CreationReport,
    TaskRow,
    create_project_tasks,
    delete_task,
    get_task,
    list_projects,
    list_tasks,
    record_actual_time,
    status_counts,
    toggle_task_status,
)
from kaizen.scheduler import schedule
from kaizen.settings import AppSettings, default_db_path
from kaizen.step_parser import parse_steps, steps_from_records
from kaizen.table_models import Column, TaskTableModel
from kaizen.timeutil import format_iso, to_epoch_seconds, utc_now

logger = logging.getLogger(__name__)

_COLUMNS = [
    Column("Task", "name"),
    Column("Project", "project"),
    Column("Context", "context"),
    Column("Urgency", "urgency"),
    Column("Countdown", "countdown"),
    Column("Start", "planned_date"),
    Column("Due", "deadline"),
]


def creation_summary(project: str, report: CreationReport) -> str:
    msg = f"Created {len(report.created)} of {report.attempted} tasks in {project}"
    if report.failed:
        msg += f" (failed: {', '.join(f.name for f in report.failed)})"
    return msg


class KaizenController(QObject):
    viewChanged = Signal()
    statusMessageChanged = Signal()
    dbLabelChanged = Signal()
    countsChanged = Signal()
    finalTaskNameChanged = Signal()
    projectsChanged = Signal()

    def __init__(
        self,
        settings: AppSettings | None = None,
        db_path: Path | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__()
        self._settings = settings or AppSettings()
        self._clock = clock
        self._db_path = Path(db_path or self._settings.db_path() or default_db_path())
        self._conn: sqlite3.Connection | None = None

        self._view = self._settings.view()
        self._search_query = ""
        self._status_message = ""
        self._rows: list[TaskRow] = []
        self._projects: list[str] = []

        self._sprintModel = TaskTableModel(_COLUMNS, parent=self)
        self._allModel = TaskTableModel(_COLUMNS, parent=self)

        self._todo_count = 0
        self._done_count = 0

        self._searchTimer = QTimer(self)
        self._searchTimer.setSingleShot(True)
        self._searchTimer.timeout.connect(self.refresh)

        self._urgencyTimer = QTimer(self)
        self._urgencyTimer.timeout.connect(self._tick_urgency)

        self._open_db()
        self.refresh()
        self._urgencyTimer.start(URGENCY_UPDATE_INTERVAL_MS)

    # ---------- properties ----------

    @Property(str, notify=viewChanged)
    def currentView(self) -> str:
        return self._view

    @Property(QObject, constant=True)
    def sprintModel(self) -> QObject:
        return self._sprintModel

    @Property(QObject, constant=True)
    def allModel(self) -> QObject:
        return self._allModel

    @Property(str, notify=statusMessageChanged)
    def statusMessage(self) -> str:
        return self._status_message

    @Property(int, notify=countsChanged)
    def todoCount(self) -> int:
        return self._todo_count

    @Property(int, notify=countsChanged)
    def doneCount(self) -> int:
        return self._done_count

    @Property(int, notify=countsChanged)
    def sprintCount(self) -> int:
        return self._sprintModel.rowCount()

    @Property("QStringList", notify=projectsChanged)
    def projects(self) -> list[str]:
        return list(self._projects)

    @Property(str, notify=finalTaskNameChanged)
    def finalTaskName(self) -> str:
        return self._settings.final_task_name()

    @Property(str, notify=dbLabelChanged)
    def dbLabel(self) -> str:
        return self._db_path.name if self._db_path else "(not set)"

    @Property(str, notify=dbLabelChanged)
    def dbTooltip(self) -> str:
        info = self._db_info()
        ver = info.schema_version if info else None
        return f"{self._db_path}\nSchema: {ver}"

    @Property(str, notify=dbLabelChanged)
    def dbPath(self) -> str:
        return str(self._db_path) if self._db_path else ""

    # ---------- internal ----------

    def _open_db(self) -> None:
        self._conn = db.connect(self._db_path)
        db.migrate(self._conn)
        logger.info("Opened task database %s", self._db_path)

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("DB not initialized")
        return self._conn

    def _db_info(self):
        if self._conn is None:
            return None
        return db.db_info(self._conn, self._db_path)

    def _set_status(self, msg: str) -> None:
        self._status_message = msg
        self.statusMessageChanged.emit()

    def _update_counts(self) -> None:
        conn = self._require_conn()
        self._todo_count, self._done_count = status_counts(conn)
        self.countsChanged.emit()

    def _rerank(self, now: datetime) -> None:
        self._sprintModel.updateRows(present(self._rows, now, "sprint"), now)
        self._allModel.updateRows(present(self._rows, now, "all"), now)

    def _tick_urgency(self) -> None:
        now = self._clock()
        before = self._sprintModel.rowCount()
        self._rerank(now)
        if self._sprintModel.rowCount() != before:
            self.countsChanged.emit()

    # ---------- slots (navigation) ----------

    @Slot(str)
    def setView(self, view: str) -> None:
        if view not in VIEWS:
            return
        self._view = view
        self._settings.set_view(view)
        self.viewChanged.emit()

    # ---------- slots (search/refresh) ----------

    @Slot(str)
    def setSearchQuery(self, query: str) -> None:
        self._search_query = query
        self._searchTimer.start(SEARCH_DEBOUNCE_MS)

    @Slot()
    def refresh(self) -> None:
        conn = self._require_conn()
        query = parse_search_query(self._search_query)
        self._rows = list_tasks(
            conn, q_like=query.like_pattern(), contexts=list(query.contexts), project=query.project
        )

        self._rerank(self._clock())
        self._update_counts()

        projects = list_projects(conn)
        if projects != self._projects:
            self._projects = projects
            self.projectsChanged.emit()

    # ---------- slots (details) ----------

    @Slot(str, result="QVariantMap")
    def taskDetail(self, task_id: str):
        conn = self._require_conn()
        t = get_task(conn, task_id=task_id)
        if t is None:
            return {}

        return {
            "id": t.id,
            "name": t.name,
            "project": t.project,
            "context": t.context,
            "status": t.status,
            "leadDays": t.lead_days,
            "deadline": format_iso(t.deadline_dt),
            "plannedDate": format_iso(t.planned_dt),
            "estMinutes": t.est_minutes,
            "actMinutes": t.act_minutes,
            "createdAt": int(t.created_at),
            "updatedAt": int(t.updated_at),
        }

    # ---------- slots (projects) ----------

    def create_project(self, definition: ProjectDefinition) -> CreationReport | None:
        """Schedule and persist a project; returns None when scheduling fails."""
        now = self._clock()
        try:
            # Typed deadlines are wall-clock times in the user's zone.
            chain = schedule(definition, now.astimezone())
        except SchedulingError as e:
            logger.info("Rejected project %r: %s", definition.project_name, e)
            self._set_status(f"Cannot create project: {e}")
            return None

        conn = self._require_conn()
        with conn:
            report = create_project_tasks(conn, tasks=chain, now=now)

        project = chain[0].project
        logger.info(
            "Project %s: %d created, %d failed", project, len(report.created), len(report.failed)
        )
        self._set_status(creation_summary(project, report))
        self.refresh()
        return report

    def _create(self, name: str, deadline: str, final_task_name: str, steps: list[StepTemplate]) -> None:
        self.create_project(
            ProjectDefinition(
                project_name=(name or "").strip(),
                deadline=(deadline or "").strip(),
                steps=tuple(steps),
                final_task_name=(final_task_name or "").strip() or self._settings.final_task_name(),
            )
        )

    @Slot(str, str, str, "QVariantList")
    def createProject(self, name: str, deadline: str, final_task_name: str, steps: list) -> None:
        if not (name or "").strip() or not (deadline or "").strip():
            self._set_status("Project name and deadline are required")
            return
        try:
            templates = steps_from_records([dict(s) for s in steps or []])
        except SchedulingError as e:
            self._set_status(f"Cannot create project: {e}")
            return
        self._create(name, deadline, final_task_name, templates)

    @Slot(str, str, str, str)
    def createProjectFromText(self, name: str, deadline: str, final_task_name: str, steps_text: str) -> None:
        if not (name or "").strip() or not (deadline or "").strip():
            self._set_status("Project name and deadline are required")
            return
        try:
            templates = parse_steps(steps_text)
        except SchedulingError as e:
            self._set_status(f"Cannot create project: {e}")
            return
        self._create(name, deadline, final_task_name, templates)

    # ---------- slots (task status) ----------

    @Slot(str)
    def toggleComplete(self, task_id: str) -> None:
        conn = self._require_conn()
        try:
            with conn:
                new_status = toggle_task_status(conn, task_id=task_id, now_epoch=to_epoch_seconds(self._clock()))
            if new_status is None:
                self._set_status("Task not found")
                return
            self._set_status(f"Marked {new_status.value}")
            self.refresh()
        except sqlite3.Error as e:
            logger.exception("Failed to update status of %s", task_id)
            self._set_status(f"Failed to update status: {e}")

    @Slot(str, int)
    def recordActualTime(self, task_id: str, minutes: int) -> None:
        conn = self._require_conn()
        try:
            with conn:
                record_actual_time(
                    conn,
                    task_id=task_id,
                    minutes=minutes if minutes >= 0 else None,
                    now_epoch=to_epoch_seconds(self._clock()),
                )
            self._set_status("Actual time recorded")
            self.refresh()
        except (ValueError, sqlite3.Error) as e:
            logger.exception("Failed to record actual time of %s", task_id)
            self._set_status(f"Failed to record time: {e}")

    @Slot(str)
    def deleteTask(self, task_id: str) -> None:
        conn = self._require_conn()
        try:
            with conn:
                deleted = delete_task(conn, task_id=task_id)
            self._set_status("Deleted" if deleted else "Task not found")
            self.refresh()
        except sqlite3.Error as e:
            logger.exception("Failed to delete %s", task_id)
            self._set_status(f"Failed to delete: {e}")

    # ---------- settings ----------

    @Slot(str)
    def setFinalTaskName(self, name: str) -> None:
        self._settings.set_final_task_name(name)
        self.finalTaskNameChanged.emit()
        self._set_status("Default final task name updated")

    @Slot(str)
    def setDbPath(self, path: str) -> None:
        p = Path(path).expanduser()
        self._settings.set_db_path(str(p))
        self._db_path = p

        if self._conn is not None:
            self._conn.close()
            self._conn = None

        self._open_db()
        self.dbLabelChanged.emit()
        self._set_status("DB switched")
        self.refresh()

    @Slot(str)
    def backupDbTo(self, dest_path: str) -> None:
        dest = Path(dest_path).expanduser()
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            if self._conn is not None:
                self._conn.commit()
            shutil.copy2(self._db_path, dest)
            self._set_status(f"Backup created: {dest.name}")
        except OSError as e:
            logger.exception("Backup to %s failed", dest)
            self._set_status(f"Backup failed: {e}")

    def close(self) -> None:
        self._urgencyTimer.stop()
        if self._conn is not None:
            self._conn.close()
            self._conn = None
