from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo

_SECONDS_PER_DAY = 86400.0
_TIME_OF_DAY_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_epoch_seconds(dt: datetime) -> int:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return int(dt.timestamp())


def from_epoch_seconds(epoch_seconds: int) -> datetime:
    return datetime.fromtimestamp(int(epoch_seconds), tz=UTC)


def parse_timestamp(value: datetime | date | str, *, tz: tzinfo | None = None) -> datetime:
    """Return a timezone-aware datetime for an ISO-8601 string or datetime.

    Naive values are placed in ``tz``, or in the local zone when ``tz`` is None.
    Date-only input means midnight of that day. Raises ValueError otherwise.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty timestamp")
        dt = datetime.fromisoformat(text)
    else:
        raise ValueError(f"unsupported timestamp: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz) if tz is not None else dt.astimezone()
    return dt


def try_parse_timestamp(value: datetime | str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError):
        return None


def parse_time_of_day(text: str) -> time:
    """Parse a strict ``HH:MM`` 24h time of day."""
    m = _TIME_OF_DAY_RE.match((text or "").strip())
    if not m:
        raise ValueError(f"invalid time of day: {text!r}")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"invalid time of day: {text!r}")
    return time(hour, minute)


def with_time_of_day(dt: datetime, tod: time) -> datetime:
    return dt.replace(hour=tod.hour, minute=tod.minute, second=0, microsecond=0)


def minus_calendar_days(dt: datetime, days: int) -> datetime:
    # Wall-clock arithmetic: the time of day is carried through unchanged.
    return dt - timedelta(days=days)


def diff_days(target: datetime, now: datetime) -> float:
    if target.tzinfo is None or now.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return (target - now).total_seconds() / _SECONDS_PER_DAY


def format_local(dt: datetime | None) -> str:
    if dt is None:
        return ""
    # Convert to local time for display
    local_dt = dt.astimezone()
    return local_dt.strftime("%Y-%m-%d %H:%M")


def format_iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone().isoformat(timespec="minutes")


@dataclass(frozen=True)
class Remaining:
    days: int
    hours: int
    minutes: int
    seconds: int
    past: bool = False

    def __str__(self) -> str:
        text = f"{self.days}d {self.hours}h {self.minutes}m {self.seconds}s"
        return f"-{text}" if self.past else text


def split_remaining(now: datetime, target: datetime) -> Remaining:
    if now.tzinfo is None or target.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    total_seconds = int((target - now).total_seconds())
    past = total_seconds < 0
    total_seconds = abs(total_seconds)

    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return Remaining(days=days, hours=hours, minutes=minutes, seconds=seconds, past=past)


def countdown(now: datetime, target: datetime | str | None) -> str:
    """Signed live countdown to ``target``; ``--`` when there is nothing to count to."""
    target_dt = try_parse_timestamp(target)
    if target_dt is None:
        return "--"
    return str(split_remaining(now, target_dt))
