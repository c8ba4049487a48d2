"""Drive session validation and derived-field computation."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from drive_log.geo import resolve_coordinates
from drive_log.models import DriveSession, FieldError, UserContext
from drive_log.night import is_night
from drive_log.timeutils import ensure_utc

logger = logging.getLogger(__name__)


class SessionValidationError(ValueError):
    """Raised by the save path when a session fails validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__("; ".join(str(e) for e in errors))


def compute_duration(started_at: datetime, ended_at: datetime | None) -> int | None:
    """Whole minutes between start and end, truncated.

    Returns:
        None while the drive is in progress.

    Raises:
        ValueError: If ended_at is not after started_at.
    """

    if ended_at is None:
        return None
    seconds = int((ensure_utc(ended_at) - ensure_utc(started_at)).total_seconds())
    if seconds <= 0:
        raise ValueError("ended_at must be after started_at")
    return seconds // 60


def compute_night_flag(started_at: datetime, ended_at: datetime | None, lat: float, lon: float) -> bool:
    """A drive is a night drive if it starts, or ends, at night."""

    if is_night(started_at, lat, lon):
        return True
    return ended_at is not None and is_night(ended_at, lat, lon)


def validate(session: DriveSession) -> list[FieldError]:
    """Field-scoped validation errors; empty when the session is valid."""

    errors: list[FieldError] = []
    if not (session.driver_name or "").strip():
        errors.append(FieldError("driver_name", "can't be blank"))
    if session.started_at is None:
        errors.append(FieldError("started_at", "can't be blank"))
    elif session.ended_at is not None and ensure_utc(session.ended_at) <= ensure_utc(session.started_at):
        errors.append(FieldError("ended_at", "must be after start time"))
    return errors


def prepare_for_save(
    session: DriveSession,
    user: UserContext,
    previous: DriveSession | None = None,
) -> DriveSession:
    """Validate and re-derive duration and night flag before persisting.

    Args:
        session: The record about to be written.
        user: Location context used for the night classification.
        previous: The stored version, when this is an update.

    Returns:
        A copy with UTC-normalized timestamps and fresh derived fields.

    Raises:
        SessionValidationError: If validation fails.
    """

    errors = validate(session)
    if errors or session.started_at is None:
        raise SessionValidationError(errors)

    started_at = ensure_utc(session.started_at)
    ended_at = ensure_utc(session.ended_at) if session.ended_at is not None else None
    out = replace(session, driver_name=session.driver_name.strip(), started_at=started_at, ended_at=ended_at)

    times_changed = (
        previous is None
        or previous.started_at != started_at
        or previous.ended_at != ended_at
    )
    if not times_changed:
        return out

    lat, lon = resolve_coordinates(user.tz_name, user.latitude, user.longitude)
    duration = compute_duration(started_at, ended_at)
    night = compute_night_flag(started_at, ended_at, lat, lon)
    logger.debug("Derived session %s: duration=%s night=%s at (%.4f, %.4f)", session.id, duration, night, lat, lon)
    return replace(out, duration_minutes=duration, is_night_drive=night)


def elapsed_text(session: DriveSession, now: datetime) -> str | None:
    """Running time of an in-progress drive, e.g. "1h 5m" or "42m"."""

    if session.is_completed or session.started_at is None:
        return None
    elapsed = max(0, int((ensure_utc(now) - ensure_utc(session.started_at)).total_seconds()))
    hours = elapsed // 3600
    minutes = (elapsed % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_duration(hours: float | None) -> str:
    """Human readable hours, e.g. "2 hrs 30 mins", "1 hr", "45 mins"."""

    if not hours:
        return "0 hrs"
    total_minutes = int(round(hours * 60))
    h = total_minutes // 60
    m = total_minutes % 60
    if h > 0 and m > 0:
        return f"{h} hrs {m} mins"
    if h > 0:
        return f"{h} {'hr' if h == 1 else 'hrs'}"
    return f"{m} mins"
