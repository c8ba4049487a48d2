"""Civil sunrise/sunset computation (no external dependencies).

Implements the classic sunrise equation from the Almanac for Computers
(U.S. Naval Observatory), accurate to a minute or two for latitudes below the
polar circles. Events are computed for the zenith of civil twilight (96 degrees,
i.e. the sun's center 6 degrees below the horizon).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Final

CIVIL_ZENITH_DEG: Final[float] = 96.0


@dataclass(frozen=True, slots=True)
class SunTimes:
    """Civil sunrise/sunset instants in UTC.

    Either value is None when the sun does not cross the civil twilight
    altitude that day (polar day or polar night).
    """

    sunrise: datetime | None
    sunset: datetime | None

    @property
    def has_both(self) -> bool:
        return self.sunrise is not None and self.sunset is not None


def _sin_deg(x: float) -> float:
    return math.sin(math.radians(x))


def _cos_deg(x: float) -> float:
    return math.cos(math.radians(x))


def _normalize(value: float, period: float) -> float:
    return value % period


def _event_ut_hours(day_of_year: int, lat: float, lon: float, rising: bool, zenith: float) -> float | None:
    """UT hour of one event in [0, 24), or None if it does not occur.

    Args:
        day_of_year: 1..366.
        lat: Latitude in degrees (north positive).
        lon: Longitude in degrees (east positive).
        rising: True for sunrise, False for sunset.
        zenith: Sun zenith angle defining the event, in degrees.
    """

    lng_hour = lon / 15.0
    t = day_of_year + ((6.0 if rising else 18.0) - lng_hour) / 24.0

    # sun's mean anomaly and true longitude
    m = 0.9856 * t - 3.289
    true_lon = _normalize(m + 1.916 * _sin_deg(m) + 0.020 * _sin_deg(2 * m) + 282.634, 360.0)

    # right ascension, moved into the same quadrant as the true longitude
    ra = _normalize(math.degrees(math.atan(0.91764 * math.tan(math.radians(true_lon)))), 360.0)
    ra += math.floor(true_lon / 90.0) * 90.0 - math.floor(ra / 90.0) * 90.0
    ra_hours = ra / 15.0

    # declination
    sin_dec = 0.39782 * _sin_deg(true_lon)
    cos_dec = math.cos(math.asin(sin_dec))

    # local hour angle
    denom = cos_dec * _cos_deg(lat)
    if denom == 0.0:
        return None
    cos_h = (_cos_deg(zenith) - sin_dec * _sin_deg(lat)) / denom
    if cos_h > 1.0 or cos_h < -1.0:
        # > 1: sun never reaches the altitude (polar night); < -1: never drops below it (polar day)
        return None

    h = math.degrees(math.acos(cos_h))
    if rising:
        h = 360.0 - h
    h_hours = h / 15.0

    local_mean_time = h_hours + ra_hours - 0.06571 * t - 6.622
    return _normalize(local_mean_time - lng_hour, 24.0)


def solar_noon_utc(day: date, lon: float) -> datetime:
    """Approximate UTC instant of local mean noon at longitude lon."""

    return datetime.combine(day, time(12, 0), tzinfo=UTC) - timedelta(hours=lon / 15.0)


def solar_date(instant: datetime, lon: float) -> date:
    """Calendar date of instant in local mean solar time at longitude lon."""

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return (instant.astimezone(UTC) + timedelta(hours=lon / 15.0)).date()


def civil_sunrise_sunset_utc(day: date, lat: float, lon: float) -> SunTimes:
    """Compute civil sunrise and sunset for a calendar day at a location.

    Args:
        day: Calendar day (the solar day at lon).
        lat: Latitude in degrees.
        lon: Longitude in degrees.

    Returns:
        SunTimes with UTC instants. Sunrise falls within the 24h before local
        noon and sunset within the 24h after, so [sunrise, sunset] is always
        the contiguous daylight window around that noon.
    """

    n = day.timetuple().tm_yday
    midnight = datetime.combine(day, time.min, tzinfo=UTC)
    noon = solar_noon_utc(day, lon)

    sunrise: datetime | None = None
    rise_ut = _event_ut_hours(n, lat, lon, True, CIVIL_ZENITH_DEG)
    if rise_ut is not None:
        sunrise = midnight + timedelta(hours=rise_ut)
        if sunrise > noon:
            sunrise -= timedelta(days=1)
        elif sunrise <= noon - timedelta(days=1):
            sunrise += timedelta(days=1)

    sunset: datetime | None = None
    set_ut = _event_ut_hours(n, lat, lon, False, CIVIL_ZENITH_DEG)
    if set_ut is not None:
        sunset = midnight + timedelta(hours=set_ut)
        if sunset < noon:
            sunset += timedelta(days=1)
        elif sunset >= noon + timedelta(days=1):
            sunset -= timedelta(days=1)

    return SunTimes(sunrise=sunrise, sunset=sunset)
