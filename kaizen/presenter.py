"""Ranking and view filtering of stored tasks.

Urgency is recomputed for every row on each pass; nothing here is cached.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from kaizen.constants import VIEWS
from kaizen.repository import TaskRow
from kaizen.urgency import UrgencyLevel, UrgencyStatus, classify


@dataclass(frozen=True)
class RankedTask:
    row: TaskRow
    urgency: UrgencyStatus


def _sort_key(item: RankedTask) -> tuple[int, int, int]:
    planned = item.row.planned_date
    # Missing planned dates go after every dated task of the same score.
    return (-item.urgency.score, 1 if planned is None else 0, planned or 0)


def rank(rows: Iterable[TaskRow], now: datetime) -> list[RankedTask]:
    ranked = [
        RankedTask(row=r, urgency=classify(r.deadline_dt, r.planned_dt, now))
        for r in rows
    ]
    # sorted() is stable, so equal keys keep their incoming order.
    return sorted(ranked, key=_sort_key)


def filter_view(ranked: Iterable[RankedTask], view: str) -> list[RankedTask]:
    if view not in VIEWS:
        raise ValueError(f"invalid view: {view}")
    if view == "all":
        return list(ranked)
    return [t for t in ranked if not t.row.is_done and t.urgency.level is not UrgencyLevel.CHILL]


def present(rows: Iterable[TaskRow], now: datetime, view: str) -> list[RankedTask]:
    return filter_view(rank(rows, now), view)
