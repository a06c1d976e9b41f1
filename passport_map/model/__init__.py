"""Data model classes for the travel map.

- GeoPoint: Geometry atom (lon, lat)
- Trail / TrailCategory: Recorded route polylines
- Anchor: Point of interest with narrative metadata
- ViewState / Viewport: Zoom, pan and world frame
- BoundaryFeature / GeometrySet: Static base-map polygons
"""

from passport_map.model.anchor import Anchor
from passport_map.model.boundary import BoundaryFeature, GeometrySet
from passport_map.model.geo_point import GeoPoint
from passport_map.model.trail import Trail, TrailCategory
from passport_map.model.view_state import ViewState, Viewport

__all__ = [
    "GeoPoint",
    "Trail",
    "TrailCategory",
    "Anchor",
    "ViewState",
    "Viewport",
    "BoundaryFeature",
    "GeometrySet",
]
