from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import streamlit as st

from drive_log.activity import activity_by_date, calendar_data
from drive_log.cli import DEFAULT_STORE, DEFAULT_USER
from drive_log.geo import validate_coordinates
from drive_log.models import ACTIVITY_CALENDAR_DAYS, DEFAULT_TZ, HOURS_NEEDED, NIGHT_HOURS_NEEDED, DriveSession, FieldError, UserContext
from drive_log.sessions import SessionValidationError, elapsed_text, format_duration
from drive_log.stats import progress_percent, recent_completed, statistics_for
from drive_log.store import SessionStore
from drive_log.timeutils import format_local, local_date, tzinfo_from_name

LEVEL_COLORS = ["#ebedf0", "#bfdbfe", "#60a5fa", "#2563eb", "#1d4ed8"]


def _calendar_html(cal_days: list, columns: int = 7) -> str:
    cells = []
    for d in cal_days:
        title = f"{d.date.isoformat()}: {d.count} drive{'s' if d.count != 1 else ''}"
        cells.append(
            f'<div title="{title}" style="width:18px;height:18px;border-radius:3px;'
            f'background:{LEVEL_COLORS[d.level]}"></div>'
        )
    return (
        f'<div style="display:grid;grid-template-columns:repeat({columns}, 18px);gap:4px">'
        + "".join(cells)
        + "</div>"
    )


def end_drive(store: SessionStore, running: DriveSession, user: UserContext, ended_at: datetime) -> list[FieldError]:
    """Complete the running drive; returns field errors instead of raising."""

    try:
        store.complete(running.id, user, ended_at)
    except SessionValidationError as exc:
        return exc.errors
    store.flush()
    return []


def main() -> None:
    st.set_page_config(page_title="Drive log", layout="wide")
    st.title("Drive log: supervised driving hours")

    with st.sidebar:
        st.subheader("Data & location")
        store_path = st.text_input("Store file", value=DEFAULT_STORE)
        user_id = st.text_input("User", value=DEFAULT_USER)
        tz_name = st.text_input("Timezone (IANA)", value=DEFAULT_TZ)
        use_location = st.checkbox("Use my coordinates instead of the timezone's city", value=False)
        lat = lon = None
        if use_location:
            lat = float(st.number_input("Latitude", value=41.8781, format="%.4f"))
            lon = float(st.number_input("Longitude", value=-87.6298, format="%.4f"))
        days = int(st.number_input("Calendar days", value=ACTIVITY_CALENDAR_DAYS, min_value=7, step=7))

    try:
        tzinfo_from_name(tz_name)
    except ValueError as exc:
        st.error(str(exc))
        return
    errors = validate_coordinates(lat, lon)
    if errors:
        st.error("; ".join(str(e) for e in errors))
        return

    user = UserContext(user_id=user_id, latitude=lat, longitude=lon, tz_name=tz_name)
    store = SessionStore(Path(store_path))
    now = datetime.now(UTC)
    sessions = store.list_for_user(user_id)
    stats = statistics_for(sessions)

    st.subheader("Progress")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total", format_duration(stats.total_hours))
    c2.metric("Still needed", format_duration(stats.hours_needed))
    c3.metric("Night", format_duration(stats.night_hours))
    c4.metric("Night still needed", format_duration(stats.night_hours_needed))
    st.progress(progress_percent(stats.total_hours, HOURS_NEEDED) / 100.0, text=f"{HOURS_NEEDED} hour goal")
    st.progress(
        progress_percent(stats.night_hours, NIGHT_HOURS_NEEDED) / 100.0, text=f"{NIGHT_HOURS_NEEDED} night hour goal"
    )

    if stats.in_progress is not None:
        running = stats.in_progress
        st.info(
            f"Driving since {format_local(running.started_at, tz_name)} "
            f"({elapsed_text(running, now)}) - {running.driver_name}"
        )
        if st.button("End drive", type="primary"):
            errors = end_drive(store, running, user, datetime.now(UTC))
            if errors:
                for err in errors:
                    st.error(str(err))
            else:
                st.rerun()
    else:
        with st.form("start_drive"):
            driver = st.text_input("Driver name")
            notes = st.text_area("Notes", value="")
            if st.form_submit_button("Start drive", type="primary"):
                try:
                    store.create(
                        DriveSession(
                            id="",
                            user_id=user_id,
                            driver_name=driver,
                            started_at=datetime.now(UTC),
                            notes=notes or None,
                        ),
                        user,
                    )
                except SessionValidationError as exc:
                    for err in exc.errors:
                        st.error(str(err))
                else:
                    store.flush()
                    st.rerun()

    activity = activity_by_date(sessions, days, tz_name, now=now)
    cal = calendar_data(activity, days, today=local_date(now, tz_name))
    st.subheader(f"Activity ({cal.label})")
    st.markdown(_calendar_html(cal.days), unsafe_allow_html=True)

    st.subheader("Recent drives")
    rows = [
        {
            "started": format_local(s.started_at, tz_name),
            "ended": format_local(s.ended_at, tz_name),
            "duration": format_duration(s.duration_hours),
            "night": "yes" if s.is_night_drive else "",
            "driver": s.driver_name,
            "notes": s.notes or "",
        }
        for s in recent_completed(sessions, limit=50)
    ]
    st.dataframe(rows, use_container_width=True, height=420)


if __name__ == "__main__":
    main()
