"""Night-time classification based on civil twilight."""

from __future__ import annotations

from datetime import datetime

from drive_log.geo import resolve_coordinates
from drive_log.models import UserContext
from drive_log.solar import civil_sunrise_sunset_utc, solar_date
from drive_log.timeutils import ensure_utc


def is_night(instant: datetime, lat: float, lon: float) -> bool:
    """Return True if instant is outside the civil daylight window at (lat, lon).

    The window [sunrise, sunset] is inclusive day. When the sun does not rise
    or set that day (polar regions) the instant is treated as not night.
    """

    instant = ensure_utc(instant)
    sun = civil_sunrise_sunset_utc(solar_date(instant, lon), lat, lon)
    if sun.sunrise is None or sun.sunset is None:
        return False
    return instant < sun.sunrise or instant > sun.sunset


def is_night_for_user(instant: datetime, user: UserContext) -> bool:
    """is_night at the user's explicit location, else their timezone's fallback city."""

    lat, lon = resolve_coordinates(user.tz_name, user.latitude, user.longitude)
    return is_night(instant, lat, lon)
