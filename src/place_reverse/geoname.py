"""
Point records indexed by the k-d tree.

A GeoName couples a WGS84 coordinate with the descriptive payload read from
a GeoNames dump. Only the coordinate takes part in indexing; the payload is
carried along for filtering and display.
"""

from __future__ import annotations
from dataclasses import dataclass
import math
from typing import Protocol, Tuple


# Axis numbering used throughout the index
LATITUDE_AXIS = 0
LONGITUDE_AXIS = 1
AXES = (LATITUDE_AXIS, LONGITUDE_AXIS)


class Locatable(Protocol):
    """Anything that can report a coordinate along each of the two axes."""

    def coordinate(self, axis: int) -> float:
        ...


def check_coords(lat: float, lon: float) -> Tuple[float, float]:
    """
    Validate a latitude/longitude pair.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        Tuple of (lat, lon) as floats

    Raises:
        ValueError: if either value is not finite or is out of range
    """
    lat = float(lat)
    lon = float(lon)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError(f"Coordinates must be finite: lat={lat}, lon={lon}")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude out of range [-90, 90]: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude out of range [-180, 180]: {lon}")
    return lat, lon


@dataclass(frozen=True)
class GeoName:
    """
    A named place with a coordinate.

    Attributes beyond latitude/longitude are opaque to the index.
    """
    name: str
    latitude: float
    longitude: float
    major_place: bool = False
    country_code: str = ""
    admin1_code: str = ""
    population: int = 0
    feature_class: str = ""
    feature_code: str = ""
    geoname_id: int = 0

    def __post_init__(self):
        lat, lon = check_coords(self.latitude, self.longitude)
        # Normalise ints and numpy scalars to plain floats
        object.__setattr__(self, "latitude", lat)
        object.__setattr__(self, "longitude", lon)

    def coordinate(self, axis: int) -> float:
        """Return latitude for axis 0 and longitude for axis 1."""
        if axis == LATITUDE_AXIS:
            return self.latitude
        if axis == LONGITUDE_AXIS:
            return self.longitude
        raise ValueError(f"Invalid axis {axis}; expected 0 or 1")

    @property
    def coords(self) -> Tuple[float, float]:
        """(latitude, longitude) pair."""
        return self.latitude, self.longitude

    def __str__(self) -> str:
        return self.name
