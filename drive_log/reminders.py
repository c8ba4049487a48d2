"""Reminder payloads for drives that were left running."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable

from drive_log.models import REMINDER_DELAY_MINUTES, DriveSession
from drive_log.timeutils import ensure_utc


@dataclass(frozen=True, slots=True)
class ReminderNotice:
    """A push notification payload; delivery is up to the caller."""

    user_id: str
    session_id: str
    title: str
    body: str
    url: str
    tag: str
    require_interaction: bool = True

    def as_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "url": self.url,
            "options": {"tag": self.tag, "requireInteraction": self.require_interaction},
        }


def reminder_for(
    session: DriveSession | None,
    now: datetime,
    delay_minutes: int = REMINDER_DELAY_MINUTES,
) -> ReminderNotice | None:
    """Build the reminder for one session, if it is still running past the delay.

    Returns None when the session no longer exists, has ended, or is not due yet.
    """

    if session is None or session.is_completed or session.started_at is None:
        return None
    if ensure_utc(now) - ensure_utc(session.started_at) < timedelta(minutes=delay_minutes):
        return None
    return ReminderNotice(
        user_id=session.user_id,
        session_id=session.id,
        title="Drive in Progress",
        body=f"You've been driving for over {delay_minutes} minutes. Don't forget to end your session!",
        url="/",
        tag=f"drive-reminder-{session.id}",
    )


def due_reminders(
    sessions: Iterable[DriveSession],
    now: datetime,
    delay_minutes: int = REMINDER_DELAY_MINUTES,
) -> list[ReminderNotice]:
    """Reminders for every running session that is past the delay."""

    out: list[ReminderNotice] = []
    for s in sessions:
        notice = reminder_for(s, now, delay_minutes)
        if notice is not None:
            out.append(notice)
    return out
