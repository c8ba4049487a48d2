from __future__ import annotations

from datetime import date, datetime, time, timedelta

from drive_log.models import DriveSession
from drive_log.timeutils import local_datetime

CHICAGO = (41.8781, -87.6298)


def chicago(day: date, hour: int, minute: int = 0) -> datetime:
    return local_datetime(day, time(hour, minute), "America/Chicago")


def make_session(
    started_at: datetime | None,
    ended_at: datetime | None = None,
    *,
    minutes: int | None = None,
    night: bool = False,
    driver_name: str = "Test Driver",
    session_id: str = "",
    user_id: str = "u1",
) -> DriveSession:
    if minutes is not None and ended_at is None and started_at is not None:
        ended_at = started_at + timedelta(minutes=minutes)
    return DriveSession(
        id=session_id,
        user_id=user_id,
        driver_name=driver_name,
        started_at=started_at,
        ended_at=ended_at,
        duration_minutes=minutes,
        is_night_drive=night,
    )
