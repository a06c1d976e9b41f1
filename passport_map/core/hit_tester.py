"""HitTester - resolves pointer positions to anchors and trails.

Both lookups start from derive_projection(), the same routine the layer
renderer paints with, so a hit test always sees the last painted frame.

Anchors are matched in screen space: Euclidean pixel distance from the
pointer to each projected anchor, strictly below a radius.

Trails are matched in real-world units: the pointer is unprojected to a
geographic location and compared against each trail polyline with a
great-circle tolerance. Every trail within tolerance is returned.
"""

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

import numpy as np

from passport_map.constants import HitConfig
from passport_map.core.geo_calculator import GeoCalculator
from passport_map.core.projection import ScreenPoint, derive_projection
from passport_map.model.anchor import Anchor
from passport_map.model.geo_point import GeoPoint
from passport_map.model.trail import Trail
from passport_map.model.view_state import ViewState, Viewport

logger = logging.getLogger(__name__)


class AnchorMatch(str, Enum):
    """Tie-break policy when several anchors are within the radius."""

    NEAREST = "nearest"  # Minimum pixel distance, order-independent
    FIRST = "first"  # First anchor in iteration order


def anchor_screen_distances(
    screen_point: ScreenPoint,
    view_state: ViewState,
    viewport: Viewport,
    anchors: Sequence[Anchor],
) -> np.ndarray:
    """Pixel distance from the pointer to every anchor (NaN if not projectable)."""
    if not anchors:
        return np.empty(0)
    projection = derive_projection(view_state=view_state, viewport=viewport)
    lons = np.array([a.location.lon for a in anchors], dtype=float)
    lats = np.array([a.location.lat for a in anchors], dtype=float)
    xs, ys = projection.project_many(lons, lats)
    return np.hypot(xs - screen_point[0], ys - screen_point[1])


def hit_test(
    screen_point: ScreenPoint,
    view_state: ViewState,
    viewport: Viewport,
    anchors: Sequence[Anchor],
    radius_px: float = HitConfig.ANCHOR_RADIUS_PX,
    strategy: AnchorMatch = AnchorMatch.NEAREST,
) -> str | None:
    """Find the anchor under the pointer.

    Args:
        screen_point: Pointer (x, y) in viewport pixels
        view_state: View the last frame was painted with
        viewport: Viewport the last frame was painted with
        anchors: Candidate anchors
        radius_px: Anchors strictly closer than this are hits
        strategy: NEAREST picks the closest hit, FIRST the first in order

    Returns:
        Anchor id, or None if nothing is within the radius.
    """
    distances = anchor_screen_distances(
        screen_point=screen_point, view_state=view_state, viewport=viewport, anchors=anchors
    )
    within = np.flatnonzero(np.nan_to_num(distances, nan=np.inf) < radius_px)
    if within.size == 0:
        return None

    if strategy == AnchorMatch.FIRST:
        index = int(within[0])
    else:
        # argmin returns the first minimum, so exact ties still follow iteration order
        index = int(within[np.argmin(distances[within])])

    logger.debug(f"Anchor hit {anchors[index].id} at {distances[index]:.1f}px")
    return anchors[index].id


def trails_near_point(
    location: GeoPoint,
    trails: Iterable[Trail],
    tolerance_km: float,
) -> list[Trail]:
    """Trails whose polyline passes strictly within tolerance of a location."""
    tolerance_m = tolerance_km * 1000.0
    hits: list[Trail] = []
    for trail in trails:
        if trail.num_points == 0:
            continue
        distance_m = GeoCalculator.point_to_polyline_distance_m(
            lon=location.lon,
            lat=location.lat,
            line=trail.lon_lat_array,
        )
        if distance_m < tolerance_m:
            hits.append(trail)
    return hits


def hit_test_trails(
    screen_point: ScreenPoint,
    view_state: ViewState,
    viewport: Viewport,
    trails: Iterable[Trail],
    tolerance_km: float = HitConfig.TRAIL_TOLERANCE_KM,
) -> list[str]:
    """Find every trail passing under the pointer.

    Args:
        screen_point: Pointer (x, y) in viewport pixels
        view_state: View the last frame was painted with
        viewport: Viewport the last frame was painted with
        trails: Candidate trails
        tolerance_km: Real-world distance that still counts as "on" a trail

    Returns:
        Ids of matching trails in input order; empty when the pointer is
        outside the projection domain.
    """
    location = unproject_pointer(screen_point=screen_point, view_state=view_state, viewport=viewport)
    if location is None:
        return []
    return [t.id for t in trails_near_point(location=location, trails=trails, tolerance_km=tolerance_km)]


def unproject_pointer(screen_point: ScreenPoint, view_state: ViewState, viewport: Viewport) -> GeoPoint | None:
    """Geographic location under the pointer using the render projection."""
    return derive_projection(view_state=view_state, viewport=viewport).unproject(screen_point)


def trails_near_anchor(
    anchor: Anchor,
    trails: Iterable[Trail],
    radius_km: float = HitConfig.ANCHOR_TRAIL_RADIUS_KM,
) -> list[Trail]:
    """Trails passing near an anchor, for the anchor's 'view activity' action."""
    return trails_near_point(location=anchor.location, trails=trails, tolerance_km=radius_km)
