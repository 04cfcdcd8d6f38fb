from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path

from kaizen.constants import SCHEMA_VERSION


@dataclass(frozen=True)
class DbInfo:
    path: Path
    schema_version: int | None


def connect(db_path: Path) -> sqlite3.Connection:
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    ).fetchone()
    if not row:
        return None

    row2 = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
    if not row2:
        return None
    return int(row2["version"])


def migrate(conn: sqlite3.Connection) -> int:
    current = get_schema_version(conn)

    if current is None:
        _create_v1(conn)
        current = 1

    if current != SCHEMA_VERSION:
        raise RuntimeError(
            f"Unsupported schema version: {current} (expected {SCHEMA_VERSION})"
        )

    return current


def db_info(conn: sqlite3.Connection, db_path: Path) -> DbInfo:
    return DbInfo(path=db_path, schema_version=get_schema_version(conn))


def _create_v1(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id           TEXT PRIMARY KEY,
            name         TEXT NOT NULL,
            project      TEXT NOT NULL,
            context      TEXT NOT NULL DEFAULT '',
            status       TEXT NOT NULL,
            lead_days    INTEGER NOT NULL,
            deadline     INTEGER,
            planned_date INTEGER,
            est_minutes  INTEGER NOT NULL,
            act_minutes  INTEGER,
            created_at   INTEGER NOT NULL,
            updated_at   INTEGER NOT NULL,
            UNIQUE (project, name),
            CHECK (status IN ('todo', 'done')),
            CHECK (lead_days >= 0)
        );

        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_tasks_status_planned
            ON tasks(status, planned_date);

        CREATE INDEX IF NOT EXISTS idx_tasks_deadline
            ON tasks(deadline);
        """
    )

    conn.execute("DELETE FROM schema_version")
    conn.execute("INSERT INTO schema_version(version) VALUES (?)", (SCHEMA_VERSION,))
    conn.commit()
