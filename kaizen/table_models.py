from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt
from PySide6.QtCore import Slot

from kaizen.presenter import RankedTask
from kaizen.timeutil import countdown, format_local, utc_now

UrgencyRole = int(Qt.UserRole) + 1
DoneRole = int(Qt.UserRole) + 2


@dataclass(frozen=True)
class Column:
    header: str
    key: str


class TaskTableModel(QAbstractTableModel):
    def __init__(self, columns: list[Column], parent=None) -> None:
        super().__init__(parent)
        self._columns = columns
        self._rows: list[RankedTask] = []
        self._now: datetime = utc_now()

    def setRows(self, rows: list[RankedTask], now: datetime | None = None) -> None:  # Qt slot style
        self.beginResetModel()
        self._rows = list(rows)
        self._now = now or utc_now()
        self.endResetModel()

    def updateRows(self, rows: list[RankedTask], now: datetime) -> None:
        """Reset only when the ranking changed; otherwise just refresh the cells."""
        if [(r.row.id, r.urgency) for r in rows] == [(r.row.id, r.urgency) for r in self._rows]:
            self._rows = list(rows)
            self.tick(now)
        else:
            self.setRows(rows, now)

    def tick(self, now: datetime) -> None:
        """Refresh time-dependent cells without resetting the model."""
        self._now = now
        if self._rows:
            self.dataChanged.emit(
                self.index(0, 0),
                self.index(len(self._rows) - 1, len(self._columns) - 1),
                [int(Qt.DisplayRole)],
            )

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        if parent.isValid():
            return 0
        return len(self._columns)

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole):  # type: ignore[override]
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal and 0 <= section < len(self._columns):
            return self._columns[section].header
        return None

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._rows)):
            return None

        item = self._rows[index.row()]
        col = self._columns[index.column()].key

        if role == Qt.DisplayRole:
            return self._display_value(item, col)

        if role == Qt.UserRole:
            return item.row.id

        if role == UrgencyRole:
            return item.urgency.level.css_name

        if role == DoneRole:
            return item.row.is_done

        return None

    def roleNames(self):  # type: ignore[override]
        roles = super().roleNames()
        roles[int(Qt.UserRole)] = b"taskId"
        roles[UrgencyRole] = b"urgency"
        roles[DoneRole] = b"done"
        return roles

    @Slot(int, result=str)
    def taskIdAtRow(self, row: int) -> str:
        if not (0 <= row < len(self._rows)):
            return ""
        return self._rows[row].row.id

    @Slot(str, result=int)
    def findRowByTaskId(self, task_id: str) -> int:
        for i, r in enumerate(self._rows):
            if r.row.id == task_id:
                return i
        return -1

    @Slot(int, int, result=str)
    def cellDisplay(self, row: int, column: int) -> str:
        if not (0 <= row < len(self._rows)):
            return ""
        if not (0 <= column < len(self._columns)):
            return ""
        return self._display_value(self._rows[row], self._columns[column].key)

    def rowAt(self, row: int) -> RankedTask | None:
        if not (0 <= row < len(self._rows)):
            return None
        return self._rows[row]

    def _display_value(self, item: RankedTask, col: str) -> str:
        row = item.row

        if col == "name":
            return row.name
        if col == "project":
            return row.project
        if col == "context":
            return row.context
        if col == "status":
            return row.status
        if col == "urgency":
            # Completed tasks carry no urgency badge.
            return "" if row.is_done else item.urgency.label
        if col == "countdown":
            if row.is_done or row.deadline is None:
                return ""
            return countdown(self._now, row.deadline_dt)
        if col == "planned_date":
            return format_local(row.planned_dt)
        if col == "deadline":
            return format_local(row.deadline_dt)
        if col == "lead_days":
            return str(row.lead_days)

        return ""
