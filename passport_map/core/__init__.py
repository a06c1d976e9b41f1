"""Core map math: geodesics, projection, viewport and hit-testing.

This module provides the algorithmic backbone of the map:
- GeoCalculator: Geodesic calculations (distances, point-to-polyline distance)
- projection: derive_projection() and the wrapped Mercator projection
- ViewportController: Single writer of the view state (drag/zoom/resize)
- hit_tester: Anchor and trail lookup under the pointer
- geometry_source: Boundary and journal loading
"""

from passport_map.core.geo_calculator import GeoCalculator

# projection, viewport, hit_tester and geometry_source import from model, and
# model.geo_point imports GeoCalculator from here: import them directly, e.g.
# from passport_map.core.projection import derive_projection

__all__ = [
    # Geo calculator
    "GeoCalculator",
]
