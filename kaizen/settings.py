from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QSettings

from kaizen.constants import (
    APP_NAME,
    APP_ORG,
    DB_PATH_ENV,
    DEFAULT_FINAL_TASK_NAME,
    DEFAULT_VIEW,
    VIEWS,
)


@dataclass(frozen=True)
class AppSettingsSnapshot:
    db_path: str | None
    view: str
    final_task_name: str


class AppSettings:
    def __init__(self, q: QSettings | None = None) -> None:
        self._q = q if q is not None else QSettings(APP_ORG, APP_NAME)

    def snapshot(self) -> AppSettingsSnapshot:
        return AppSettingsSnapshot(
            db_path=self.db_path(),
            view=self.view(),
            final_task_name=self.final_task_name(),
        )

    def db_path(self) -> str | None:
        value = self._q.value("storage/db_path", "", type=str)
        return value or None

    def set_db_path(self, path: str | None) -> None:
        self._q.setValue("storage/db_path", path or "")

    def view(self) -> str:
        value = self._q.value("ui/view", DEFAULT_VIEW, type=str)
        return value if value in VIEWS else DEFAULT_VIEW

    def set_view(self, view: str) -> None:
        if view not in VIEWS:
            return
        self._q.setValue("ui/view", view)

    def final_task_name(self) -> str:
        value = self._q.value("projects/final_task_name", DEFAULT_FINAL_TASK_NAME, type=str)
        return value.strip() or DEFAULT_FINAL_TASK_NAME

    def set_final_task_name(self, name: str) -> None:
        self._q.setValue("projects/final_task_name", (name or "").strip() or DEFAULT_FINAL_TASK_NAME)


def default_db_path() -> Path:
    env_path = os.getenv(DB_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser()
    base = Path.home() / ".local" / "share"
    base.mkdir(parents=True, exist_ok=True)
    return base / "kaizen.db"
