"""
Straight-line geometry helpers and the address → coordinate fallback.
"""
import logging
import math
from typing import Iterable

from app.services.zones import DAKAR_ZONES, DEFAULT_CITY_CENTER, Zone

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine great-circle distance in km."""
    dlat = to_radians(lat2 - lat1)
    dlng = to_radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(to_radians(lat1)) * math.cos(to_radians(lat2)) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def fallback_coordinates(
    address: str | None,
    zones: Iterable[Zone] = DAKAR_ZONES,
    default: tuple[float, float] = DEFAULT_CITY_CENTER,
) -> tuple[float, float]:
    """
    Resolve an address to (lat, lng) by case-insensitive substring match
    against an ordered zone table. The first matching zone wins; no match
    returns `default`.
    """
    address_lower = (address or "").lower()
    for name, lat, lng in zones:
        if name in address_lower:
            logger.info("Zone %r matched for address %r -> (%s, %s)", name, address, lat, lng)
            return lat, lng

    logger.warning("Unrecognised address %r, using default city centre", address)
    return default
