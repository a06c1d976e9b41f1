"""BoundaryFeature and GeometrySet - static vector data for the base map.

Rings are plain (lon, lat) tuples converted from the shapely polygons
geopandas reads. A polygon is its list of rings (outer first, then holes);
multipolygons are flattened into several BoundaryFeature polygons sharing one key.
"""

from dataclasses import dataclass, field

LonLat = tuple[float, float]
Ring = tuple[LonLat, ...]


@dataclass(frozen=True)
class BoundaryFeature:
    """One polygon of a country or subdivision.

    Attributes:
        key: Feature identifier from the source data (id, ISO code or row index)
        name: Display name, empty if the source has none
        rings: Outer ring followed by hole rings
    """

    key: str
    name: str
    rings: tuple[Ring, ...]

    @property
    def outer_ring(self) -> Ring:
        return self.rings[0] if self.rings else ()


@dataclass(frozen=True)
class GeometrySet:
    """All boundary layers available to the renderer.

    Any layer may be empty: an empty countries layer is the loading/failed
    state, empty detail layers mean the dataset lacks that detail.
    """

    countries: tuple[BoundaryFeature, ...] = field(default_factory=tuple)
    subdivisions: tuple[BoundaryFeature, ...] = field(default_factory=tuple)
    fine_subdivisions: tuple[BoundaryFeature, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.countries and not self.subdivisions and not self.fine_subdivisions

    @property
    def has_subdivisions(self) -> bool:
        return bool(self.subdivisions)
