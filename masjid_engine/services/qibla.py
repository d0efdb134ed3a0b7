"""
Qibla direction

Great-circle bearing and haversine distance from a location to the Kaaba.
"""
import math
from dataclasses import dataclass

from masjid_engine.exceptions import ConfigurationError

KAABA_LATITUDE = 21.4225
KAABA_LONGITUDE = 39.8262
EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371

CARDINAL_DIRECTIONS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


@dataclass(frozen=True, slots=True)
class QiblaInfo:
    bearing: float
    distance_km: float
    cardinal: str
    distance_label: str


def qibla_bearing(latitude: float, longitude: float) -> float:
    """Initial great-circle bearing to the Kaaba, degrees clockwise from north in [0, 360)."""
    lat1 = math.radians(latitude)
    lat2 = math.radians(KAABA_LATITUDE)
    delta_lon = math.radians(KAABA_LONGITUDE - longitude)

    x = math.sin(delta_lon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lon)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def distance_to_kaaba(latitude: float, longitude: float) -> float:
    """Haversine distance to the Kaaba in kilometers."""
    lat1 = math.radians(latitude)
    lat2 = math.radians(KAABA_LATITUDE)
    delta_lat = math.radians(KAABA_LATITUDE - latitude)
    delta_lon = math.radians(KAABA_LONGITUDE - longitude)

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def cardinal_direction(bearing: float) -> str:
    return CARDINAL_DIRECTIONS[round(bearing / 22.5) % 16]


def format_distance(distance_km: float) -> str:
    """Miles for anything over a mile, feet below that."""
    miles = distance_km * KM_TO_MILES
    if miles < 1:
        return f"{round(miles * 5280)} ft"
    return f"{round(miles):,} miles"


def qibla_info(latitude: float, longitude: float) -> QiblaInfo:
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        raise ConfigurationError(f"Invalid coordinates: ({latitude}, {longitude})")
    bearing = qibla_bearing(latitude, longitude)
    distance = distance_to_kaaba(latitude, longitude)
    return QiblaInfo(
        bearing=round(bearing, 2),
        distance_km=round(distance, 1),
        cardinal=cardinal_direction(bearing),
        distance_label=format_distance(distance),
    )
