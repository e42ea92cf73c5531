"""Coordinate parsing and distance helpers"""

import math
from typing import Optional, Tuple

EARTH_RADIUS_KM = 6371.0088

LAT_BOUND = 90.0
LON_BOUND = 180.0

ORIGIN = (0.0, 0.0)


def _parse_bounded(raw: Optional[str], bound: float) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value) or abs(value) > bound:
        return None
    return value


def parse_point(lat: Optional[str], lon: Optional[str]) -> Tuple[float, float]:
    """
    Parse a lat/lon form or query pair.

    If either value is missing, non-numeric, non-finite or out of range the
    whole point falls back to the origin (0, 0) instead of failing the
    request. A half-valid pair is never kept.
    """
    parsed_lat = _parse_bounded(lat, LAT_BOUND)
    parsed_lon = _parse_bounded(lon, LON_BOUND)
    if parsed_lat is None or parsed_lon is None:
        return ORIGIN
    return parsed_lat, parsed_lon


def parse_radius_km(raw: Optional[str], default: float) -> float:
    """Parse the optional search range; the unit is always kilometers."""
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = float(str(raw).strip())
    except ValueError:
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    return value


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometers"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))
