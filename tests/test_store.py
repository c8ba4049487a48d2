from __future__ import annotations

import json
from datetime import UTC, date, datetime, timedelta

import pytest

from drive_log.models import DriveSession
from drive_log.sessions import SessionValidationError
from drive_log.store import SessionNotFoundError, SessionStore
from helpers import chicago, make_session

WINTER = date(2024, 12, 15)


def test_create_assigns_id_and_derives(store, chicago_user, clock):
    saved = store.create(make_session(chicago(WINTER, 17), chicago(WINTER, 18)), chicago_user)

    assert saved.id
    assert saved.user_id == "u1"
    assert saved.duration_minutes == 60
    assert saved.is_night_drive is True
    assert saved.created_at == clock.now
    assert store.get(saved.id) == saved


def test_create_invalid_writes_nothing(store, chicago_user):
    with pytest.raises(SessionValidationError):
        store.create(make_session(chicago(WINTER, 17), chicago(WINTER, 16)), chicago_user)

    assert store.list_for_user("u1") == []


def test_flush_and_reload(tmp_path, store, chicago_user):
    saved = store.create(make_session(chicago(WINTER, 14), chicago(WINTER, 15), driver_name="Sam"), chicago_user)
    store.flush()

    assert not (tmp_path / "drive_log.journal.jsonl").exists()
    reloaded = SessionStore(tmp_path / "drive_log.json").get(saved.id)
    assert reloaded == saved


def test_journal_is_replayed_without_flush(tmp_path, store, chicago_user):
    kept = store.create(make_session(chicago(WINTER, 14), chicago(WINTER, 15)), chicago_user)
    gone = store.create(make_session(chicago(WINTER, 16), chicago(WINTER, 17)), chicago_user)
    store.delete(gone.id)

    reopened = SessionStore(tmp_path / "drive_log.json")
    assert [s.id for s in reopened.list_for_user("u1")] == [kept.id]


def test_broken_journal_line_is_skipped(tmp_path, store, chicago_user):
    saved = store.create(make_session(chicago(WINTER, 14), chicago(WINTER, 15)), chicago_user)
    with (tmp_path / "drive_log.journal.jsonl").open("a", encoding="utf-8") as f:
        f.write('{"op": "put", "id": "x", "v": {\n')

    assert SessionStore(tmp_path / "drive_log.json").get(saved.id) == saved


@pytest.mark.parametrize(
    "record",
    [
        [1, 2],
        "put",
        {"op": "put", "id": "x", "v": {"started_at": "garbage"}},
        {"op": "put", "id": "y", "v": {"id": "y", "started_at": "not a time"}},
    ],
)
def test_malformed_journal_record_is_skipped(tmp_path, store, chicago_user, record):
    saved = store.create(make_session(chicago(WINTER, 14), chicago(WINTER, 15)), chicago_user)
    with (tmp_path / "drive_log.journal.jsonl").open("a", encoding="utf-8") as f:
        f.write(json.dumps(record) + "\n")

    reopened = SessionStore(tmp_path / "drive_log.json")
    assert reopened.get(saved.id) == saved
    assert [s.id for s in reopened.list_for_user(saved.user_id)] == [saved.id]


def test_corrupted_snapshot_is_backed_up(tmp_path):
    path = tmp_path / "drive_log.json"
    path.write_text("{not json", encoding="utf-8")

    store = SessionStore(path)
    assert store.list_for_user("u1") == []
    assert (tmp_path / "drive_log.json.broken").read_text(encoding="utf-8") == "{not json"


def test_update_rederives_on_time_change(store, chicago_user, clock):
    running = store.create(make_session(chicago(WINTER, 15)), chicago_user)
    assert running.is_night_drive is False
    assert running.duration_minutes is None

    clock.now = clock.now + timedelta(hours=1)
    ended = store.complete(running.id, chicago_user, chicago(WINTER, 18))
    assert ended.duration_minutes == 180
    assert ended.is_night_drive is True
    assert ended.updated_at == clock.now
    assert ended.created_at == running.created_at

    moved = store.update(running.id, chicago_user, started_at=chicago(WINTER, 13), ended_at=chicago(WINTER, 14))
    assert moved.duration_minutes == 60
    assert moved.is_night_drive is False


def test_update_invalid_leaves_stored_version(store, chicago_user):
    saved = store.create(make_session(chicago(WINTER, 14), chicago(WINTER, 15)), chicago_user)

    with pytest.raises(SessionValidationError):
        store.update(saved.id, chicago_user, ended_at=chicago(WINTER, 13))

    assert store.get(saved.id) == saved


def test_unknown_id(store, chicago_user):
    with pytest.raises(SessionNotFoundError):
        store.update("missing", chicago_user, notes="x")
    with pytest.raises(KeyError):
        store.delete("missing")


def test_events_after_save_and_delete(store, chicago_user):
    events = []
    store.subscribe(lambda e: events.append((e.kind, e.session.id)))

    running = store.create(make_session(chicago(WINTER, 15)), chicago_user)
    store.complete(running.id, chicago_user, chicago(WINTER, 16))
    store.update(running.id, chicago_user, notes="highway")
    store.delete(running.id)

    assert events == [
        ("created", running.id),
        ("completed", running.id),
        ("updated", running.id),
        ("deleted", running.id),
    ]


def test_no_event_on_failed_save(store, chicago_user):
    events = []
    store.subscribe(events.append)

    with pytest.raises(SessionValidationError):
        store.create(make_session(chicago(WINTER, 15), driver_name=""), chicago_user)
    assert events == []


def test_list_and_in_progress(store, chicago_user):
    older = store.create(make_session(chicago(WINTER, 9), chicago(WINTER, 10)), chicago_user)
    newer = store.create(make_session(chicago(WINTER, 12)), chicago_user)
    store.create(
        DriveSession(id="", user_id="other", driver_name="Kim", started_at=datetime(2024, 12, 16, tzinfo=UTC)),
        chicago_user,
    )

    assert [s.id for s in store.list_for_user("u1")] == [newer.id, older.id]
    assert store.in_progress_for("u1") == newer
    assert store.in_progress_for("nobody") is None


def test_snapshot_is_plain_json(tmp_path, store, chicago_user):
    saved = store.create(make_session(chicago(WINTER, 17), chicago(WINTER, 18)), chicago_user)
    store.flush()

    raw = json.loads((tmp_path / "drive_log.json").read_text(encoding="utf-8"))
    assert raw[saved.id]["duration_minutes"] == 60
    assert raw[saved.id]["is_night_drive"] is True
    assert raw[saved.id]["ended_at"] == "2024-12-16T00:00:00+00:00"
