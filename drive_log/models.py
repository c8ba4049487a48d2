"""Data models for drive sessions and the user context they are computed for."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final


HOURS_NEEDED: Final[int] = 50
NIGHT_HOURS_NEEDED: Final[int] = 10
ACTIVITY_CALENDAR_DAYS: Final[int] = 28
REMINDER_DELAY_MINUTES: Final[int] = 60

DEFAULT_TZ: Final[str] = "UTC"


@dataclass(frozen=True, slots=True)
class DriveSession:
    """A single supervised drive.

    Attributes:
        id: Unique identifier. Empty until the store assigns one.
        user_id: Opaque owner identifier.
        driver_name: Name of the learner driving.
        started_at: Start instant, timezone-aware UTC.
        ended_at: End instant (UTC) or None while the drive is in progress.
        duration_minutes: Derived; whole minutes between start and end.
        is_night_drive: Derived; start or end falls outside civil daylight.
        notes: Free text.
        created_at: Set by the store on first save.
        updated_at: Set by the store on every save.

    Note:
        Instances are immutable. Edits go through ``dataclasses.replace`` and
        back through the save path so derived fields are never stale.
    """

    id: str
    user_id: str
    driver_name: str
    started_at: datetime | None
    ended_at: datetime | None = None
    duration_minutes: int | None = None
    is_night_drive: bool = False
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.ended_at is not None

    @property
    def is_in_progress(self) -> bool:
        return not self.is_completed

    @property
    def duration_hours(self) -> float:
        """Duration in hours rounded to 2 decimals; 0 when not completed."""

        if not self.duration_minutes:
            return 0
        return round(self.duration_minutes / 60.0, 2)


@dataclass(frozen=True, slots=True)
class UserContext:
    """Location context of the user owning the sessions.

    Attributes:
        user_id: Opaque identifier.
        latitude: Optional home latitude in decimal degrees.
        longitude: Optional home longitude in decimal degrees.
        tz_name: IANA timezone name used for local dates.
    """

    user_id: str
    latitude: float | None = None
    longitude: float | None = None
    tz_name: str = DEFAULT_TZ


@dataclass(frozen=True, slots=True)
class FieldError:
    """A validation failure scoped to one field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field} {self.message}"
