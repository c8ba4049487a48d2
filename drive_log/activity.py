"""Daily activity histogram for the calendar heat-map."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from drive_log.models import ACTIVITY_CALENDAR_DAYS, DriveSession
from drive_log.timeutils import ensure_utc, local_date, local_midnight_utc

MAX_LEVEL = 4


@dataclass(frozen=True, slots=True)
class CalendarDay:
    """One cell of the activity calendar."""

    date: date
    count: int
    level: int


@dataclass(frozen=True, slots=True)
class CalendarData:
    """Everything the calendar widget needs to render."""

    days: list[CalendarDay]
    label: str
    total_days: int


def date_range(days: int, today: date) -> tuple[date, date]:
    """Inclusive [today - (days - 1), today]."""

    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")
    return today - timedelta(days=days - 1), today


def activity_by_date(
    sessions: Iterable[DriveSession],
    days: int = ACTIVITY_CALENDAR_DAYS,
    tz_name: str | None = None,
    *,
    now: datetime,
) -> dict[date, int]:
    """Count completed drives per local start date over the trailing window.

    Args:
        sessions: Sessions of one user.
        days: Window length in days, ending today.
        tz_name: IANA timezone for local dates. None means UTC.
        now: Current instant; "today" is its date in tz_name.

    Returns:
        date -> count. Dates without drives are absent.
    """

    today = local_date(now, tz_name)
    start_d, end_d = date_range(days, today)
    range_start = local_midnight_utc(start_d, tz_name)

    counts: Counter[date] = Counter()
    for s in sessions:
        if s.is_in_progress or s.started_at is None:
            continue
        started = ensure_utc(s.started_at)
        if started < range_start:
            continue
        d = local_date(started, tz_name)
        if d > end_d:
            continue
        counts[d] += 1
    return dict(counts)


def activity_level(count: int) -> int:
    """Heat-map intensity: 0, 1, 2, 3, then 4 for four or more drives."""

    if count <= 0:
        return 0
    return min(count, MAX_LEVEL)


def weeks_label(days: int) -> str:
    weeks = int(math.floor(days / 7.0 + 0.5))
    if weeks == 1:
        return "Last week"
    return f"Last {weeks} weeks"


def calendar_data(activity: dict[date, int], days: int = ACTIVITY_CALENDAR_DAYS, *, today: date) -> CalendarData:
    """Expand an activity map into one entry per day of the window, oldest first."""

    start_d, end_d = date_range(days, today)
    cells: list[CalendarDay] = []
    cur = start_d
    while cur <= end_d:
        count = activity.get(cur, 0)
        cells.append(CalendarDay(date=cur, count=count, level=activity_level(count)))
        cur = cur + timedelta(days=1)
    return CalendarData(days=cells, label=weeks_label(days), total_days=days)
