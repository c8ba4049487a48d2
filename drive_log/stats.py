"""Progress statistics over a user's drive sessions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from drive_log.models import HOURS_NEEDED, NIGHT_HOURS_NEEDED, DriveSession


@dataclass(frozen=True, slots=True)
class DriveStatistics:
    """Totals toward the hours requirement."""

    total_hours: float
    night_hours: float
    hours_needed: float
    night_hours_needed: float
    in_progress: DriveSession | None


def statistics_for(sessions: Iterable[DriveSession]) -> DriveStatistics:
    """Aggregate completed drive minutes into hour totals.

    Args:
        sessions: All sessions of one user, in any order.

    Returns:
        DriveStatistics. Needed values never go below 0.
    """

    total_minutes = 0
    night_minutes = 0
    in_progress: DriveSession | None = None
    for s in sessions:
        if s.is_in_progress:
            if in_progress is None:
                in_progress = s
            continue
        minutes = s.duration_minutes or 0
        total_minutes += minutes
        if s.is_night_drive:
            night_minutes += minutes

    total_hours = total_minutes / 60.0
    night_hours = night_minutes / 60.0
    return DriveStatistics(
        total_hours=total_hours,
        night_hours=night_hours,
        hours_needed=max(0.0, HOURS_NEEDED - total_hours),
        night_hours_needed=max(0.0, NIGHT_HOURS_NEEDED - night_hours),
        in_progress=in_progress,
    )


def progress_percent(current: float, total: float) -> float:
    """Share of total reached, clamped to [0, 100]."""

    if total <= 0:
        return 100.0
    return min(100.0, max(0.0, current / total * 100.0))


def recent_completed(sessions: Iterable[DriveSession], limit: int = 3) -> Sequence[DriveSession]:
    """Completed sessions, newest start first."""

    done = [s for s in sessions if s.is_completed and s.started_at is not None]
    done.sort(key=lambda s: s.started_at, reverse=True)  # type: ignore[arg-type, return-value]
    return done[:limit]
