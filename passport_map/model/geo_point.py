"""GeoPoint - The fundamental geometry atom for the map.

A GeoPoint is a single (longitude, latitude) coordinate in decimal degrees.
Longitude is not range-restricted: values beyond +/-180 are legal and are
wrapped by the projection, never by the point itself.

Used by:
- Trail (ordered sequence of GeoPoints)
- Anchor (single location)
- MercatorProjection.unproject (result type)
"""

from dataclasses import dataclass
from math import isfinite

from passport_map.core.geo_calculator import GeoCalculator


@dataclass(frozen=True)
class GeoPoint:
    """A geographic coordinate.

    Attributes:
        lon: Longitude in decimal degrees (WGS84), unrestricted range
        lat: Latitude in decimal degrees (WGS84)

    Example:
        point = GeoPoint(lon=-122.4194, lat=37.7749)
    """

    lon: float
    lat: float

    def __post_init__(self) -> None:
        """Validate data after initialization."""
        if not (isfinite(self.lon) and isfinite(self.lat)):
            raise ValueError(f"GeoPoint requires finite coordinates, got ({self.lon}, {self.lat})")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"GeoPoint latitude out of range: {self.lat}")

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)

    @classmethod
    def from_lon_lat(cls, coord: "list[float] | tuple[float, float]") -> "GeoPoint":
        """Build from a GeoJSON-ordered [lon, lat] pair."""
        if len(coord) < 2:
            raise ValueError(f"Coordinate needs [lon, lat], got {coord!r}")
        return cls(lon=float(coord[0]), lat=float(coord[1]))

    def distance_to(self, other: "GeoPoint") -> float:
        """Great-circle distance to another point in meters."""
        return GeoCalculator.haversine_distance_m(lat1=self.lat, lon1=self.lon, lat2=other.lat, lon2=other.lon)
