from __future__ import annotations

import time

import pytest
from PySide6.QtCore import QCoreApplication, QSettings

from kaizen.settings import AppSettings


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def settings(qapp, tmp_path) -> AppSettings:
    q = QSettings(str(tmp_path / "kaizen.ini"), QSettings.Format.IniFormat)
    return AppSettings(q)


@pytest.fixture
def local_tz(monkeypatch):
    """Switch the process-local timezone, e.g. ``local_tz("JST-9")``."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset not available")

    def use(name: str) -> None:
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield use
    monkeypatch.undo()
    time.tzset()
