"""Command-line interface for drive_log.

Run:
    python -m drive_log start --driver "Sam"
    python -m drive_log finish
    python -m drive_log stats --tz America/Chicago
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import UTC, datetime

from drive_log.activity import activity_by_date, calendar_data
from drive_log.geo import resolve_coordinates, validate_coordinates
from drive_log.models import ACTIVITY_CALENDAR_DAYS, DEFAULT_TZ, REMINDER_DELAY_MINUTES, DriveSession, UserContext
from drive_log.night import is_night
from drive_log.reminders import due_reminders
from drive_log.sessions import SessionValidationError, elapsed_text, format_duration
from drive_log.stats import statistics_for
from drive_log.store import SessionEvent, SessionNotFoundError, SessionStore, session_to_dict
from drive_log.timeutils import format_local, local_date, parse_dt, tzinfo_from_name

logger = logging.getLogger(__name__)

DEFAULT_STORE = os.environ.get("DRIVE_LOG_STORE", "drive_log.json")
DEFAULT_USER = "me"


class CliError(Exception):
    """User-facing failure; printed without a traceback."""


def _now() -> datetime:
    return datetime.now(UTC)


def _user(args: argparse.Namespace) -> UserContext:
    errors = validate_coordinates(args.lat, args.lon)
    if errors:
        raise CliError("; ".join(str(e) for e in errors))
    tzinfo_from_name(args.tz)
    return UserContext(user_id=args.user, latitude=args.lat, longitude=args.lon, tz_name=args.tz)


def _open_store(args: argparse.Namespace) -> SessionStore:
    store = SessionStore(args.store)
    store.subscribe(_log_event)
    return store


def _log_event(event: SessionEvent) -> None:
    logger.debug("event=%s id=%s", event.kind, event.session.id)


def _require_owned(store: SessionStore, session_id: str, user_id: str) -> DriveSession:
    session = store.require(session_id)
    if session.user_id != user_id:
        raise CliError(f"Drive {session_id} belongs to another user.")
    return session


def _session_line(s: DriveSession, tz_name: str, now: datetime) -> str:
    start = format_local(s.started_at, tz_name)
    if s.is_in_progress:
        return f"{s.id}  {start}  -> (driving, {elapsed_text(s, now)})  {s.driver_name}"
    night = " night" if s.is_night_drive else ""
    return (
        f"{s.id}  {start}  -> {format_local(s.ended_at, tz_name)}  "
        f"{format_duration(s.duration_hours)}{night}  {s.driver_name}"
    )


def _cmd_start(args: argparse.Namespace) -> int:
    user = _user(args)
    store = _open_store(args)
    running = store.in_progress_for(user.user_id)
    if running is not None:
        raise CliError(f"A drive is already in progress ({running.id}). Finish it first.")

    started_at = parse_dt(args.at, args.tz) if args.at else _now()
    saved = store.create(
        DriveSession(id="", user_id=user.user_id, driver_name=args.driver, started_at=started_at, notes=args.notes),
        user,
    )
    store.flush()
    print(f"Drive started: {saved.id} at {format_local(saved.started_at, args.tz)}")
    return 0


def _cmd_finish(args: argparse.Namespace) -> int:
    user = _user(args)
    store = _open_store(args)
    if args.id:
        session_id = _require_owned(store, args.id, user.user_id).id
    else:
        running = store.in_progress_for(user.user_id)
        if running is None:
            raise CliError("No drive in progress.")
        session_id = running.id

    ended_at = parse_dt(args.at, args.tz) if args.at else _now()
    saved = store.complete(session_id, user, ended_at)
    store.flush()
    night = " (night drive)" if saved.is_night_drive else ""
    print(f"Drive completed: {format_duration(saved.duration_hours)}{night}")
    return 0


def _cmd_edit(args: argparse.Namespace) -> int:
    user = _user(args)
    store = _open_store(args)
    changes: dict[str, object] = {}
    if args.driver is not None:
        changes["driver_name"] = args.driver
    if args.start is not None:
        changes["started_at"] = parse_dt(args.start, args.tz)
    if args.end is not None:
        changes["ended_at"] = parse_dt(args.end, args.tz)
    if args.notes is not None:
        changes["notes"] = args.notes
    _require_owned(store, args.id, user.user_id)
    saved = store.update(args.id, user, **changes)
    store.flush()
    print(f"Drive updated: {_session_line(saved, args.tz, _now())}")
    return 0


def _cmd_delete(args: argparse.Namespace) -> int:
    store = _open_store(args)
    _require_owned(store, args.id, args.user)
    removed = store.delete(args.id)
    store.flush()
    print(f"Drive deleted: {removed.id}")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    store = _open_store(args)
    sessions = store.list_for_user(args.user)[: args.limit]
    if args.json:
        print(json.dumps([session_to_dict(s) for s in sessions], ensure_ascii=False, indent=2))
        return 0
    now = _now()
    for s in sessions:
        print(_session_line(s, args.tz, now))
    if not sessions:
        print("No drives yet.")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    store = _open_store(args)
    stats = statistics_for(store.list_for_user(args.user))
    if args.json:
        payload = asdict(stats)
        payload["in_progress"] = session_to_dict(stats.in_progress) if stats.in_progress else None
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print("### Progress")
    print(f"total={format_duration(stats.total_hours)}, remaining={format_duration(stats.hours_needed)}")
    print(f"night={format_duration(stats.night_hours)}, remaining={format_duration(stats.night_hours_needed)}")
    if stats.in_progress is not None:
        print()
        print("### In progress")
        print(_session_line(stats.in_progress, args.tz, _now()))
    return 0


def _cmd_calendar(args: argparse.Namespace) -> int:
    tzinfo_from_name(args.tz)
    store = _open_store(args)
    now = _now()
    activity = activity_by_date(store.list_for_user(args.user), args.days, args.tz, now=now)
    cal = calendar_data(activity, args.days, today=local_date(now, args.tz))
    if args.json:
        payload = {
            "label": cal.label,
            "total_days": cal.total_days,
            "days": [{"date": d.date.isoformat(), "count": d.count, "level": d.level} for d in cal.days],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    shades = " .:*#"
    print(f"### {cal.label}")
    row: list[str] = []
    for d in cal.days:
        row.append(shades[d.level])
        if len(row) == 7:
            print("".join(row))
            row = []
    if row:
        print("".join(row))
    return 0


def _cmd_is_night(args: argparse.Namespace) -> int:
    user = _user(args)
    at = parse_dt(args.at, args.tz) if args.at else _now()
    lat, lon = resolve_coordinates(user.tz_name, user.latitude, user.longitude)
    result = is_night(at, lat, lon)
    print(f"{format_local(at, args.tz)} at ({lat:.4f}, {lon:.4f}): {'night' if result else 'day'}")
    return 0


def _cmd_remind(args: argparse.Namespace) -> int:
    store = _open_store(args)
    notices = due_reminders(store.list_for_user(args.user), _now(), args.delay_minutes)
    for n in notices:
        print(json.dumps({"user_id": n.user_id, **n.as_payload()}, ensure_ascii=False))
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--store", type=str, default=DEFAULT_STORE, help="Session store JSON path (env DRIVE_LOG_STORE)")
    p.add_argument("--user", type=str, default=DEFAULT_USER, help="User id owning the drives")
    p.add_argument("--tz", type=str, default=DEFAULT_TZ, help="Timezone (IANA), default UTC")
    p.add_argument("--lat", type=float, default=None, help="Home latitude (optional)")
    p.add_argument("--lon", type=float, default=None, help="Home longitude (optional)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""

    p = argparse.ArgumentParser(prog="drive_log")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_start = sub.add_parser("start", help="Start a drive")
    _add_common(p_start)
    p_start.add_argument("--driver", type=str, required=True, help="Driver name")
    p_start.add_argument("--at", type=str, default=None, help="Start time (local), default now")
    p_start.add_argument("--notes", type=str, default=None)
    p_start.set_defaults(func=_cmd_start)

    p_fin = sub.add_parser("finish", help="End the drive in progress")
    _add_common(p_fin)
    p_fin.add_argument("--id", type=str, default=None, help="Session id, default the running drive")
    p_fin.add_argument("--at", type=str, default=None, help="End time (local), default now")
    p_fin.set_defaults(func=_cmd_finish)

    p_edit = sub.add_parser("edit", help="Edit a drive")
    _add_common(p_edit)
    p_edit.add_argument("--id", type=str, required=True)
    p_edit.add_argument("--driver", type=str, default=None)
    p_edit.add_argument("--start", type=str, default=None, help="New start time (local)")
    p_edit.add_argument("--end", type=str, default=None, help="New end time (local)")
    p_edit.add_argument("--notes", type=str, default=None)
    p_edit.set_defaults(func=_cmd_edit)

    p_del = sub.add_parser("delete", help="Delete a drive")
    _add_common(p_del)
    p_del.add_argument("--id", type=str, required=True)
    p_del.set_defaults(func=_cmd_delete)

    p_list = sub.add_parser("list", help="List drives, newest first")
    _add_common(p_list)
    p_list.add_argument("--limit", type=int, default=50)
    p_list.add_argument("--json", action="store_true", help="Output JSON")
    p_list.set_defaults(func=_cmd_list)

    p_stats = sub.add_parser("stats", help="Hours driven and hours still needed")
    _add_common(p_stats)
    p_stats.add_argument("--json", action="store_true", help="Output JSON")
    p_stats.set_defaults(func=_cmd_stats)

    p_cal = sub.add_parser("calendar", help="Activity calendar for the last weeks")
    _add_common(p_cal)
    p_cal.add_argument("--days", type=int, default=ACTIVITY_CALENDAR_DAYS)
    p_cal.add_argument("--json", action="store_true", help="Output JSON")
    p_cal.set_defaults(func=_cmd_calendar)

    p_night = sub.add_parser("is-night", help="Check whether a time is night at the user's location")
    _add_common(p_night)
    p_night.add_argument("--at", type=str, default=None, help="Time (local), default now")
    p_night.set_defaults(func=_cmd_is_night)

    p_rem = sub.add_parser("remind", help="Print reminder payloads for drives left running")
    _add_common(p_rem)
    p_rem.add_argument("--delay-minutes", type=int, default=REMINDER_DELAY_MINUTES)
    p_rem.set_defaults(func=_cmd_remind)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        return int(args.func(args))
    except SessionValidationError as exc:
        for err in exc.errors:
            print(f"error: {err}", file=sys.stderr)
        return 1
    except SessionNotFoundError as exc:
        print(f"error: no drive with id {exc.args[0]!r}", file=sys.stderr)
        return 1
    except (CliError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
