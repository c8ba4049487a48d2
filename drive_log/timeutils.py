"""Time parsing and timezone conversion utilities."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, tzinfo

from zoneinfo import ZoneInfo

from drive_log.models import DEFAULT_TZ


def tzinfo_from_name(tz_name: str | None) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "America/Chicago". None or "" means UTC.

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    if not tz_name:
        tz_name = DEFAULT_TZ
    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"Invalid timezone: {tz_name!r}. Example: America/Chicago") from exc


def ensure_utc(dt: datetime) -> datetime:
    """Normalize a datetime to UTC.

    Args:
        dt: Datetime. If naive, will be treated as UTC (discouraged).

    Returns:
        Timezone-aware datetime in UTC.
    """

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_local(dt: datetime, tz_name: str | None) -> datetime:
    """Convert an instant to wall-clock time in tz_name."""

    return ensure_utc(dt).astimezone(tzinfo_from_name(tz_name))


def local_date(dt: datetime, tz_name: str | None) -> date:
    """Calendar date of an instant as seen in tz_name."""

    return to_local(dt, tz_name).date()


def local_midnight_utc(day: date, tz_name: str | None) -> datetime:
    """UTC instant of 00:00 local time on day in tz_name."""

    tz = tzinfo_from_name(tz_name)
    return datetime.combine(day, time.min).replace(tzinfo=tz).astimezone(UTC)


def local_datetime(day: date, at: time, tz_name: str | None) -> datetime:
    """Build an aware UTC instant from a local date and wall-clock time."""

    tz = tzinfo_from_name(tz_name)
    return datetime.combine(day, at).replace(tzinfo=tz).astimezone(UTC)


def parse_dt(text: str, tz_name: str | None) -> datetime:
    """Parse user-provided datetime text to a UTC datetime.

    Supported formats:
      - "YYYY-MM-DD HH:MM[:SS]"
      - "YYYY-MM-DDTHH:MM[:SS]"
      - with optional timezone offset, e.g. "-06:00"

    If timezone is missing, it will be assumed to be tz_name.

    Args:
        text: Datetime string.
        tz_name: IANA timezone name for naive strings.

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        ValueError: If cannot parse.
    """

    s = text.strip().replace("T", " ")
    tz = tzinfo_from_name(tz_name)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError as exc:
        raise ValueError(f"Cannot parse time: {text!r}. Expected e.g. 2025-01-15 17:30:00") from exc

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(UTC)


def format_local(dt: datetime | None, tz_name: str | None) -> str:
    """Readable local timestamp, or "" for None."""

    if dt is None:
        return ""
    return to_local(dt, tz_name).strftime("%Y-%m-%d %H:%M")
