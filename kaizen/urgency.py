"""Urgency classification.

A task's deadline and planned start are compared with "now" in fractional
days (time-of-day precision, the same policy for both values) and mapped to
one of four tiers. Rules are checked in priority order; a near or missed
deadline always outranks a missed planned start.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from kaizen.constants import (
    DUE_TODAY_WINDOW_DAYS,
    PROXIMITY_DAYS,
    SCORE_CRISIS,
    SCORE_DUE_TODAY,
    SCORE_ON_TRACK,
    SCORE_PLAN_PASSED,
    SCORE_PROXIMITY,
    SCORE_SOMEDAY,
    SENTINEL_DAYS,
)
from kaizen.timeutil import diff_days, parse_timestamp, try_parse_timestamp


class UrgencyLevel(str, Enum):
    CRISIS = "CRISIS"
    DUE_TODAY = "DUE_TODAY"
    DO_NOW = "DO_NOW"
    CHILL = "CHILL"

    @property
    def css_name(self) -> str:
        return self.value.lower().replace("_", "-")


@dataclass(frozen=True)
class UrgencyStatus:
    level: UrgencyLevel
    label: str
    score: int


SOMEDAY = UrgencyStatus(UrgencyLevel.CHILL, "Someday", SCORE_SOMEDAY)
ON_TRACK = UrgencyStatus(UrgencyLevel.CHILL, "On Track", SCORE_ON_TRACK)
DO_NOW = UrgencyStatus(UrgencyLevel.DO_NOW, "Do Now", SCORE_PLAN_PASSED)


def _is_absent(value: datetime | str | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _days_until(value: datetime | str | None, now: datetime) -> float:
    dt = try_parse_timestamp(value)
    if dt is None:
        return SENTINEL_DAYS
    return diff_days(dt, now)


def _overdue_label(elapsed_days: float) -> str:
    if elapsed_days >= 1:
        return f"Overdue by {math.floor(elapsed_days)}d"
    return f"Overdue by {max(1, math.ceil(elapsed_days * 24))}h"


def _due_in_hours_label(days: float) -> str:
    hours = math.ceil(days * 24)
    if hours <= 0:
        return "Due now"
    return f"Due in {hours}h"


def classify(
    deadline: datetime | str | None,
    planned_date: datetime | str | None,
    now: datetime,
) -> UrgencyStatus:
    """Return the urgency tier of a task at ``now``.

    Never raises on bad timestamps: an unparsable value counts as far in the
    future. A naive ``now`` is read as local time.
    """
    if _is_absent(deadline) and _is_absent(planned_date):
        return SOMEDAY

    now = parse_timestamp(now)

    deadline_diff = _days_until(deadline, now)
    plan_diff = _days_until(planned_date, now)

    if deadline_diff < 0:
        return UrgencyStatus(UrgencyLevel.CRISIS, _overdue_label(-deadline_diff), SCORE_CRISIS)

    if deadline_diff <= DUE_TODAY_WINDOW_DAYS:
        return UrgencyStatus(UrgencyLevel.DUE_TODAY, _due_in_hours_label(deadline_diff), SCORE_DUE_TODAY)

    if plan_diff <= 0:
        return DO_NOW

    if deadline_diff <= PROXIMITY_DAYS:
        return UrgencyStatus(UrgencyLevel.DO_NOW, f"Due in {math.ceil(deadline_diff)}d", SCORE_PROXIMITY)

    return ON_TRACK
