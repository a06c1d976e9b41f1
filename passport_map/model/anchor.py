"""Anchor - A user-placed point of interest with narrative metadata."""

from dataclasses import dataclass

from passport_map.model.geo_point import GeoPoint


@dataclass(frozen=True)
class Anchor:
    """A memory anchor on the map.

    Attributes:
        id: Unique identifier within the anchor set
        location: Where the memory happened
        title: Short headline
        timestamp: ISO date string
        note: Free-text narrative
        image_ref: Optional image URL
        location_name: Optional human place name (e.g., "Shinjuku, Tokyo")
    """

    id: str
    location: GeoPoint
    title: str
    timestamp: str
    note: str
    image_ref: str | None = None
    location_name: str | None = None

    @property
    def coordinate_label(self) -> str:
        """'lat, lon' with 4 decimals for display."""
        return f"{self.location.lat:.4f}, {self.location.lon:.4f}"
