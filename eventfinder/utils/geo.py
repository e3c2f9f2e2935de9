"""Distance, radius and viewport math shared by the server and the client.

Everything here is pure and synchronous:

- **haversine_km** / **format_distance** -- great-circle distance between
  two coordinates and its "N m away" / "N.N km away" label.
- **clamp_radius** / **km_to_miles** -- search radius bounds and the
  km-to-miles conversion the upstream events provider needs.
- **validate_coordinates** -- finite, in-range latitude/longitude check.
- **fit_bounds_zoom** -- the Web-Mercator zoom level at which a bounding box
  fits a viewport of a given pixel size.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from eventfinder.utils.errors import InputValidationError

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371

RADIUS_MIN_KM = 1
RADIUS_MAX_KM = 160
RADIUS_DEFAULT_KM = 40

_TILE_SIZE = 256


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going up (``2.5 -> 3``)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Coordinates & distance
# ---------------------------------------------------------------------------


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    """Return ``(lat, lon)`` as floats or raise :class:`InputValidationError`.

    Accepts numbers or numeric strings (providers often send strings).
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as exc:
        raise InputValidationError(
            f"Coordinates must be numeric, got ({latitude!r}, {longitude!r})"
        ) from exc

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InputValidationError("Coordinates must be finite numbers")
    if abs(lat) > 90 or abs(lon) > 180:
        raise InputValidationError(
            f"Coordinates out of range: lat={lat}, lon={lon}"
        )
    return lat, lon


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance(distance_km: float) -> str:
    """Format a distance for an event card.

    Metres below 1 km, one decimal below 10 km, whole kilometres above.
    """
    if distance_km < 1:
        return f"{round_half_up(distance_km * 1000)} m away"
    if distance_km < 10:
        tenths = Decimal(str(distance_km)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{tenths} km away"
    return f"{round_half_up(distance_km)} km away"


# ---------------------------------------------------------------------------
# Radius
# ---------------------------------------------------------------------------


def clamp_radius(
    value: Any,
    minimum: int = RADIUS_MIN_KM,
    maximum: int = RADIUS_MAX_KM,
    default: int = RADIUS_DEFAULT_KM,
) -> int:
    """Coerce *value* to an integer radius within ``[minimum, maximum]``.

    Non-numeric input resolves to *default* (itself clamped).
    """
    try:
        radius = float(value)
    except (TypeError, ValueError):
        radius = float(default)
    if not math.isfinite(radius):
        radius = float(default)
    return max(minimum, min(maximum, round_half_up(radius)))


def km_to_miles(km: float) -> int:
    """Convert a kilometre radius to whole miles (``round(km * 0.621371)``)."""
    return round_half_up(km * KM_TO_MILES)


def miles_to_km(miles: float) -> float:
    return miles / KM_TO_MILES


# ---------------------------------------------------------------------------
# Viewport fitting
# ---------------------------------------------------------------------------


def _mercator_y(lat: float) -> float:
    """Normalised Web-Mercator y (0 at the top of the world, 1 at the bottom)."""
    lat = max(-85.05112878, min(85.05112878, lat))
    sin_lat = math.sin(math.radians(lat))
    return 0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)


def bounding_box(points: Iterable[tuple[float, float]]) -> tuple[float, float, float, float]:
    """Return ``(south, west, north, east)`` for a set of ``(lat, lon)`` points.

    Raises ``ValueError`` for fewer than two distinct points, since such a
    box has no extent to fit.
    """
    unique = set(points)
    if len(unique) < 2:
        raise ValueError("Bounds need at least two distinct points")
    lats = [p[0] for p in unique]
    lons = [p[1] for p in unique]
    return min(lats), min(lons), max(lats), max(lons)


def fit_bounds_zoom(
    bounds: tuple[float, float, float, float],
    width_px: int,
    height_px: int,
    padding_px: tuple[int, int] = (50, 50),
    max_zoom: int = 14,
    min_zoom: int = 3,
) -> tuple[tuple[float, float], int]:
    """Return ``((center_lat, center_lon), zoom)`` that fits *bounds* in the viewport.

    The zoom is the largest integer level at which the box, plus padding on
    every side, fits into ``width_px`` x ``height_px``; capped at
    ``max_zoom``.  Raises ``ValueError`` when the padded viewport has no
    room left.
    """
    south, west, north, east = bounds
    avail_w = width_px - 2 * padding_px[0]
    avail_h = height_px - 2 * padding_px[1]
    if avail_w <= 0 or avail_h <= 0:
        raise ValueError("Viewport is smaller than its padding")

    dx = (east - west) / 360.0
    dy = abs(_mercator_y(south) - _mercator_y(north))

    candidates = []
    if dx > 0:
        candidates.append(math.log2(avail_w / (_TILE_SIZE * dx)))
    if dy > 0:
        candidates.append(math.log2(avail_h / (_TILE_SIZE * dy)))
    zoom = math.floor(min(candidates)) if candidates else max_zoom
    zoom = max(min_zoom, min(max_zoom, zoom))

    center_y = (_mercator_y(south) + _mercator_y(north)) / 2
    center_lat = math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * center_y))))
    center_lon = (west + east) / 2
    return (center_lat, center_lon), zoom
