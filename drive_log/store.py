"""A small JSON-file repository for drive sessions.

The snapshot file holds every session keyed by id. Each write is also appended
to a JSONL journal next to it, so nothing is lost if the process dies before
``flush()``; the journal is replayed on load and cleared after a flush.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Literal

from drive_log.models import DriveSession, UserContext
from drive_log.sessions import prepare_for_save

logger = logging.getLogger(__name__)

EventKind = Literal["created", "updated", "completed", "deleted"]


class SessionNotFoundError(KeyError):
    """No session with the given id."""


@dataclass(frozen=True, slots=True)
class SessionEvent:
    """Emitted after a session was saved or deleted."""

    kind: EventKind
    session: DriveSession


def _dt_to_str(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _dt_from_str(value: Any) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def session_to_dict(s: DriveSession) -> dict[str, Any]:
    return {
        "id": s.id,
        "user_id": s.user_id,
        "driver_name": s.driver_name,
        "started_at": _dt_to_str(s.started_at),
        "ended_at": _dt_to_str(s.ended_at),
        "duration_minutes": s.duration_minutes,
        "is_night_drive": s.is_night_drive,
        "notes": s.notes,
        "created_at": _dt_to_str(s.created_at),
        "updated_at": _dt_to_str(s.updated_at),
    }


def session_from_dict(d: dict[str, Any]) -> DriveSession:
    duration = d.get("duration_minutes")
    return DriveSession(
        id=str(d["id"]),
        user_id=str(d.get("user_id", "")),
        driver_name=str(d.get("driver_name", "")),
        started_at=_dt_from_str(d.get("started_at")),
        ended_at=_dt_from_str(d.get("ended_at")),
        duration_minutes=int(duration) if duration is not None else None,
        is_night_drive=bool(d.get("is_night_drive", False)),
        notes=d.get("notes"),
        created_at=_dt_from_str(d.get("created_at")),
        updated_at=_dt_from_str(d.get("updated_at")),
    )


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SessionStore:
    """Drive sessions persisted on disk (id -> session)."""

    def __init__(self, path: str | Path, clock: Callable[[], datetime] = _utc_now) -> None:
        self._path = Path(path)
        # Example: drive_log.json -> drive_log.journal.jsonl
        self._journal_path = self._path.with_name(f"{self._path.stem}.journal.jsonl")
        self._clock = clock
        self._data: dict[str, DriveSession] = {}
        self._loaded = False
        self._listeners: list[Callable[[SessionEvent], None]] = []

    @property
    def path(self) -> Path:
        return self._path

    def subscribe(self, callback: Callable[[SessionEvent], None]) -> None:
        """Register a callback invoked after every successful save or delete."""

        self._listeners.append(callback)

    def load(self) -> None:
        """Load sessions from disk (no-op if file not exists)."""

        if self._loaded:
            return
        self._data = {}
        if self._path.exists():
            text = self._path.read_text(encoding="utf-8").strip()
            if text:
                try:
                    raw = json.loads(text)
                    self._data = {k: session_from_dict(v) for k, v in raw.items()}
                except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError):
                    # Snapshot corrupted: keep a backup and start fresh
                    backup = self._path.with_suffix(self._path.suffix + ".broken")
                    backup.write_text(text, encoding="utf-8")
                    logger.warning("Store file %s is corrupted; moved to %s", self._path, backup)
                    self._data = {}

        # Replay journal (if any) so that writes after the last flush survive a crash.
        self._replay_journal()
        self._loaded = True

    def get(self, session_id: str) -> DriveSession | None:
        self.load()
        return self._data.get(session_id)

    def require(self, session_id: str) -> DriveSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_for_user(self, user_id: str) -> list[DriveSession]:
        """Sessions of one user, newest start first."""

        self.load()
        out = [s for s in self._data.values() if s.user_id == user_id]
        out.sort(key=lambda s: s.started_at or datetime.min.replace(tzinfo=UTC), reverse=True)
        return out

    def in_progress_for(self, user_id: str) -> DriveSession | None:
        for s in self.list_for_user(user_id):
            if s.is_in_progress:
                return s
        return None

    def create(self, session: DriveSession, user: UserContext) -> DriveSession:
        """Validate, derive and persist a new session.

        Raises:
            SessionValidationError: If the session is invalid.
        """

        self.load()
        prepared = prepare_for_save(session, user)
        now = self._clock()
        saved = replace(
            prepared,
            id=prepared.id or uuid.uuid4().hex,
            user_id=prepared.user_id or user.user_id,
            created_at=now,
            updated_at=now,
        )
        self._put(saved)
        logger.info("Created drive %s for user %s", saved.id, saved.user_id)
        self._emit(SessionEvent("created", saved))
        return saved

    def update(self, session_id: str, user: UserContext, **changes: Any) -> DriveSession:
        """Apply field changes to a stored session and re-derive before persisting.

        Raises:
            SessionNotFoundError: Unknown id.
            SessionValidationError: If the result is invalid; nothing is written.
        """

        previous = self.require(session_id)
        candidate = replace(previous, **changes)
        prepared = prepare_for_save(candidate, user, previous=previous)
        saved = replace(prepared, id=previous.id, updated_at=self._clock())
        self._put(saved)

        kind: EventKind = "completed" if previous.is_in_progress and saved.is_completed else "updated"
        logger.info("Drive %s %s", saved.id, kind)
        self._emit(SessionEvent(kind, saved))
        return saved

    def complete(self, session_id: str, user: UserContext, ended_at: datetime) -> DriveSession:
        """End a running drive at ended_at."""

        return self.update(session_id, user, ended_at=ended_at)

    def delete(self, session_id: str) -> DriveSession:
        """Remove a session and return what was removed."""

        session = self.require(session_id)
        del self._data[session_id]
        self._append_journal({"op": "del", "id": session_id})
        logger.info("Deleted drive %s", session_id)
        self._emit(SessionEvent("deleted", session))
        return session

    def flush(self) -> None:
        """Persist all sessions to disk (atomic-ish)."""

        self.load()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        payload = {k: session_to_dict(v) for k, v in self._data.items()}
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self._path)
        # After we persisted the full snapshot, it's safe to clear the journal.
        self._clear_journal()

    def _put(self, session: DriveSession) -> None:
        self._data[session.id] = session
        self._append_journal({"op": "put", "id": session.id, "v": session_to_dict(session)})

    def _emit(self, event: SessionEvent) -> None:
        for callback in self._listeners:
            callback(event)

    def _append_journal(self, record: dict[str, Any]) -> None:
        """Append a single change to the journal for crash-safe persistence."""

        self._journal_path.parent.mkdir(parents=True, exist_ok=True)
        with self._journal_path.open("a", encoding="utf-8", newline="\n") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")

    def _replay_journal(self) -> None:
        """Replay journal entries into memory (best-effort)."""

        if not self._journal_path.exists():
            return
        try:
            with self._journal_path.open("r", encoding="utf-8") as f:
                for line in f:
                    s = line.strip()
                    if not s:
                        continue
                    try:
                        rec = json.loads(s)
                    except json.JSONDecodeError:
                        # ignore broken tail lines
                        logger.warning("Skipping unreadable journal line in %s", self._journal_path)
                        continue
                    if not isinstance(rec, dict):
                        logger.warning("Skipping malformed journal record in %s", self._journal_path)
                        continue
                    op = rec.get("op")
                    key = rec.get("id")
                    if not isinstance(key, str):
                        continue
                    if op == "del":
                        self._data.pop(key, None)
                    elif op == "put" and isinstance(rec.get("v"), dict):
                        try:
                            self._data[key] = session_from_dict(rec["v"])
                        except (KeyError, TypeError, ValueError, AttributeError):
                            logger.warning("Skipping malformed journal entry for %s in %s", key, self._journal_path)
        except OSError:
            logger.warning("Cannot read journal %s", self._journal_path)
            return

    def _clear_journal(self) -> None:
        """Clear journal file if exists (best-effort)."""

        try:
            if self._journal_path.exists():
                self._journal_path.unlink()
        except OSError:
            return
