from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from drive_log.solar import civil_sunrise_sunset_utc, solar_date, solar_noon_utc
from helpers import CHICAGO


def _near(actual: datetime | None, expected: datetime, minutes: int = 15) -> bool:
    return actual is not None and abs(actual - expected) <= timedelta(minutes=minutes)


def test_chicago_winter_civil_twilight():
    sun = civil_sunrise_sunset_utc(date(2024, 12, 15), *CHICAGO)

    assert sun.has_both
    # civil dawn ~06:43 CST, civil dusk ~16:52 CST
    assert _near(sun.sunrise, datetime(2024, 12, 15, 12, 43, tzinfo=UTC))
    assert _near(sun.sunset, datetime(2024, 12, 15, 22, 52, tzinfo=UTC))


def test_chicago_summer_day_is_longer_than_winter():
    winter = civil_sunrise_sunset_utc(date(2024, 12, 15), *CHICAGO)
    summer = civil_sunrise_sunset_utc(date(2024, 6, 15), *CHICAGO)

    assert summer.sunset - summer.sunrise > winter.sunset - winter.sunrise + timedelta(hours=5)


def test_polar_summer_has_no_sunset():
    sun = civil_sunrise_sunset_utc(date(2024, 6, 15), 89.0, 0.0)

    assert sun.sunrise is None
    assert sun.sunset is None
    assert not sun.has_both


def test_polar_winter_has_no_sunrise():
    sun = civil_sunrise_sunset_utc(date(2024, 12, 15), 89.0, 0.0)

    assert sun.sunrise is None
    assert sun.sunset is None


def test_window_surrounds_local_noon_east_of_greenwich():
    day = date(2025, 1, 2)
    sun = civil_sunrise_sunset_utc(day, 35.6762, 139.6503)  # Tokyo
    noon = solar_noon_utc(day, 139.6503)

    assert sun.sunrise < noon < sun.sunset
    assert timedelta(hours=9) < sun.sunset - sun.sunrise < timedelta(hours=12)


def test_window_surrounds_local_noon_far_west():
    day = date(2024, 6, 15)
    sun = civil_sunrise_sunset_utc(day, 21.3099, -157.8581)  # Honolulu
    noon = solar_noon_utc(day, -157.8581)

    assert sun.sunrise < noon < sun.sunset
    # civil dusk in Honolulu is after midnight UTC
    assert sun.sunset.date() == date(2024, 6, 16)


def test_solar_date_shifts_by_longitude():
    instant = datetime(2024, 6, 16, 2, 0, tzinfo=UTC)

    assert solar_date(instant, 0.0) == date(2024, 6, 16)
    assert solar_date(instant, -157.8581) == date(2024, 6, 15)
    assert solar_date(instant.replace(tzinfo=None), 0.0) == date(2024, 6, 16)
