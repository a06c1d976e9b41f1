"""Trail - A recorded route (run, ride or hike).

Trails are immutable once loaded. Category decides the render color;
there is no ordering constraint between trails.
"""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from passport_map.model.geo_point import GeoPoint


class TrailCategory(str, Enum):
    """Activity type of a trail."""

    RUN = "Run"
    RIDE = "Ride"
    HIKE = "Hike"


@dataclass(frozen=True)
class Trail:
    """An ordered polyline of GeoPoints.

    Attributes:
        id: Unique identifier (e.g., "run-sf-0")
        category: Run, Ride or Hike
        points: Ordered route points
        name: Display name for the detail panel
        date: ISO date string of the activity
        distance_km: Recorded distance, None if unknown
    """

    id: str
    category: TrailCategory
    points: tuple[GeoPoint, ...]
    name: str = ""
    date: str = ""
    distance_km: float | None = None
    _lon_lat: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Cache the point array used by projection and distance scans."""
        coords = np.array([p.lon_lat for p in self.points], dtype=float).reshape(-1, 2)
        coords.setflags(write=False)
        object.__setattr__(self, "_lon_lat", coords)

    @property
    def lon_lat_array(self) -> np.ndarray:
        """(N, 2) read-only array of [lon, lat] rows."""
        return self._lon_lat

    @property
    def num_points(self) -> int:
        return len(self.points)

    @property
    def display_name(self) -> str:
        """Name for UI, falling back to the id."""
        return self.name or self.id

    def path_length_km(self) -> float:
        """Sum of great-circle segment lengths in kilometers."""
        return sum(a.distance_to(b) for a, b in zip(self.points, self.points[1:])) / 1000.0
