import math
from datetime import datetime, timezone
from typing import Optional, Tuple

EARTH_RADIUS_KM = 6371.0


def utcnow() -> datetime:
    """Timezone-aware current UTC time; the store rejects naive datetimes."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def parse_location(value: Optional[str]) -> Optional[Tuple[float, float]]:
    """
    Parse a "lat,lng" query value. Returns None for an empty value and
    raises ValueError for a malformed one.
    """
    if not value:
        return None
    parts = value.split(",")
    if len(parts) != 2:
        raise ValueError(f"Expected 'lat,lng', got {value!r}")
    return float(parts[0]), float(parts[1])


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like Math.round(x * 10) / 10 rather than banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
