"""Great-circle distance and grid snapping helpers."""

import math

EARTH_RADIUS_M = 6_371_000.0

# Snapped coordinates are rounded to this many decimals (~0.1 m)
COORDINATE_PRECISION = 6


def to_coordinate(value: object) -> float:
    """Coerce a stored coordinate to float, returning NaN when non-numeric."""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """True when both coordinates are finite numbers."""
    return math.isfinite(lat) and math.isfinite(lng)


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance in meters between two points.

    Returns NaN if any input is NaN; callers skip such pairs.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Clamp guards against a > 1 from floating point error on antipodal points
    a = min(max(a, 0.0), 1.0)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _cell_index(value: float, grid_size: float) -> float:
    # Strip float noise so an already-snapped value maps back to its own cell
    return round(value / grid_size, 9)


def snap_floor(lat: float, lng: float, grid_size: float) -> tuple[float, float]:
    """Snap a coordinate to the south-west origin of its grid cell."""
    return (
        round(math.floor(_cell_index(lat, grid_size)) * grid_size, COORDINATE_PRECISION),
        round(math.floor(_cell_index(lng, grid_size)) * grid_size, COORDINATE_PRECISION),
    )


def snap_round(lat: float, lng: float, grid_size: float) -> tuple[float, float]:
    """Snap a coordinate to the nearest grid point, halves rounding up."""
    return (
        round(math.floor(_cell_index(lat, grid_size) + 0.5) * grid_size, COORDINATE_PRECISION),
        round(math.floor(_cell_index(lng, grid_size) + 0.5) * grid_size, COORDINATE_PRECISION),
    )
