"""Coordinate validation and timezone-based location fallback (no external dependencies)."""

from __future__ import annotations

import logging
from typing import Final

from drive_log.models import FieldError

logger = logging.getLogger(__name__)


# Representative cities for common US timezones. "UTC" is the catch-all entry.
TIMEZONE_COORDS: Final[dict[str, tuple[float, float]]] = {
    # Eastern
    "America/New_York": (40.7128, -74.0060),
    "America/Detroit": (42.3314, -83.0458),
    "America/Kentucky/Louisville": (38.2527, -85.7585),
    "America/Indiana/Indianapolis": (39.7684, -86.1581),
    # Central
    "America/Chicago": (41.8781, -87.6298),
    "America/Menominee": (45.1077, -87.6140),
    "America/Indiana/Knox": (41.2959, -86.6250),
    "America/North_Dakota/Center": (47.1164, -101.2996),
    # Mountain
    "America/Denver": (39.7392, -104.9903),
    "America/Boise": (43.6150, -116.2023),
    "America/Phoenix": (33.4484, -112.0740),  # no DST
    # Pacific
    "America/Los_Angeles": (34.0522, -118.2437),
    "America/Seattle": (47.6062, -122.3321),
    # Alaska
    "America/Anchorage": (61.2181, -149.9003),
    "America/Juneau": (58.3019, -134.4197),
    # Hawaii
    "Pacific/Honolulu": (21.3099, -157.8581),
    # Default fallback (New York)
    "UTC": (40.7128, -74.0060),
}


def is_valid_coordinate(lat: float | None, lon: float | None) -> bool:
    """Check that both values are present and inside the geographic ranges."""

    if lat is None or lon is None:
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def validate_coordinates(lat: float | None, lon: float | None) -> list[FieldError]:
    """Data-entry validation for a user's home location.

    Both values absent is fine (timezone fallback applies). One without the
    other, or out-of-range values, are reported.
    """

    errors: list[FieldError] = []
    if lat is None and lon is None:
        return errors
    if lat is None:
        errors.append(FieldError("latitude", "can't be blank when longitude is set"))
    elif not -90.0 <= lat <= 90.0:
        errors.append(FieldError("latitude", "must be between -90 and 90"))
    if lon is None:
        errors.append(FieldError("longitude", "can't be blank when latitude is set"))
    elif not -180.0 <= lon <= 180.0:
        errors.append(FieldError("longitude", "must be between -180 and 180"))
    return errors


def coordinates_for_timezone(tz_name: str | None) -> tuple[float, float]:
    """Look up the representative city of a timezone, defaulting to the UTC entry."""

    return TIMEZONE_COORDS.get(tz_name or "UTC", TIMEZONE_COORDS["UTC"])


def resolve_coordinates(
    tz_name: str | None,
    lat: float | None = None,
    lon: float | None = None,
) -> tuple[float, float]:
    """Pick the coordinates used for solar computation.

    Args:
        tz_name: IANA timezone of the user.
        lat: Explicit latitude, if the user set one.
        lon: Explicit longitude, if the user set one.

    Returns:
        (lat, lon). Never fails.

    Notes:
        Out-of-range explicit values are treated as absent, not clamped.
    """

    if is_valid_coordinate(lat, lon):
        return float(lat), float(lon)  # type: ignore[arg-type]
    if lat is not None or lon is not None:
        logger.warning("Ignoring invalid coordinates lat=%r lon=%r; using %s fallback", lat, lon, tz_name)
    return coordinates_for_timezone(tz_name)
