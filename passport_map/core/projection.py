"""Projection engine - Mercator with central-meridian wrap.

Horizontal panning is never applied as a pixel translation. The pixel pan is
converted into a rotation of the projection's central meridian, which
re-centers the world continuously and makes panning infinite:

1. world_x = pan_x / k
   Dividing out zoom keeps the wrap period the same at every zoom level.
2. wrapped = ((world_x % W) + W) % W,  W = base_world_width
   Always in [0, W) whatever the sign of world_x.
3. rotation = wrapped / W * 360 degrees

Vertical pan is an ordinary translation of the projection center; Mercator
is not periodic in latitude.

derive_projection() is the single routine that turns a ViewState into a
projection. The layer renderer and the hit tester both call it, so what is
hit-tested is exactly what was painted.
"""

import logging
from functools import lru_cache
from math import atan, degrees, exp, isfinite, pi

import numpy as np

from passport_map.constants import MapConfig
from passport_map.model.geo_point import GeoPoint
from passport_map.model.view_state import ViewState, Viewport

logger = logging.getLogger(__name__)

ScreenPoint = tuple[float, float]

# Slack on the strip edge so a projected seam point always unprojects
_LAMBDA_EPS = 1e-9


def wrapped_world_x(pan_x: float, k: float, base_world_width: float) -> float:
    """Horizontal world offset normalized into [0, base_world_width).

    Args:
        pan_x: Horizontal pixel pan
        k: Zoom factor
        base_world_width: Wrap period in world units

    Returns:
        Non-negative offset strictly below base_world_width.
    """
    world_x = pan_x / k
    return ((world_x % base_world_width) + base_world_width) % base_world_width


def rotation_deg(view_state: ViewState, viewport: Viewport) -> float:
    """Central-meridian rotation in [0, 360) degrees for a view."""
    width = viewport.base_world_width
    return wrapped_world_x(pan_x=view_state.pan_x, k=view_state.k, base_world_width=width) / width * 360.0


class MercatorProjection:
    """Rotated, scaled and translated spherical Mercator.

    Instances are immutable; obtain them from derive_projection().

    Attributes:
        scale: Pixels per radian (base_scale * k)
        rotation: Central-meridian shift in degrees, added to longitude
        center_x: Screen x of the rotated prime meridian
        center_y: Screen y of the equator
    """

    __slots__ = ("_scale", "_rotation", "_center_x", "_center_y")

    def __init__(self, scale: float, rotation: float, center_x: float, center_y: float) -> None:
        self._scale = scale
        self._rotation = rotation
        self._center_x = center_x
        self._center_y = center_y

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def rotation(self) -> float:
        return self._rotation

    @property
    def center(self) -> ScreenPoint:
        return (self._center_x, self._center_y)

    @property
    def world_width_px(self) -> float:
        """On-screen width of one full turn of longitude."""
        return 2 * pi * self._scale

    def __repr__(self) -> str:
        return (
            f"MercatorProjection(scale={self._scale:.3f}, rotation={self._rotation:.4f}, "
            f"center=({self._center_x:.1f}, {self._center_y:.1f}))"
        )

    def project_many(self, lons: np.ndarray, lats: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Project arrays of coordinates to screen pixels.

        Rotated longitudes are wrapped into [-180, 180) before projecting.

        Args:
            lons: Longitudes in degrees (any range)
            lats: Latitudes in degrees

        Returns:
            (xs, ys) float arrays; NaN where a point is outside the
            Mercator domain or not finite.
        """
        lons = np.asarray(lons, dtype=float)
        lats = np.asarray(lats, dtype=float)

        valid = np.isfinite(lons) & np.isfinite(lats) & (np.abs(lats) <= MapConfig.MAX_LATITUDE)
        safe_lats = np.where(valid, lats, 0.0)
        safe_lons = np.where(valid, lons, 0.0)

        rotated = ((safe_lons + self._rotation + 180.0) % 360.0 + 360.0) % 360.0 - 180.0
        lam = np.radians(rotated)
        phi = np.radians(safe_lats)

        xs = self._center_x + self._scale * lam
        ys = self._center_y - self._scale * np.log(np.tan(pi / 4 + phi / 2))
        return np.where(valid, xs, np.nan), np.where(valid, ys, np.nan)

    def project(self, point: GeoPoint) -> ScreenPoint | None:
        """Project one point; None outside the projection domain.

        Delegates to project_many so single points and polylines land on
        identical pixels.
        """
        xs, ys = self.project_many(np.array([point.lon]), np.array([point.lat]))
        x, y = float(xs[0]), float(ys[0])
        if not (isfinite(x) and isfinite(y)):
            return None
        return (x, y)

    def unproject(self, screen: ScreenPoint) -> GeoPoint | None:
        """Invert project(): un-rotate, then invert Mercator.

        Returns:
            GeoPoint with longitude in [-180, 180), or None when the pixel is
            outside the world strip or beyond the valid latitude domain.
        """
        x, y = float(screen[0]), float(screen[1])
        if not (isfinite(x) and isfinite(y)):
            return None

        lam = (x - self._center_x) / self._scale
        if abs(lam) > pi + _LAMBDA_EPS:
            return None

        lon = ((degrees(lam) - self._rotation + 180.0) % 360.0 + 360.0) % 360.0 - 180.0
        lat = degrees(2 * atan(exp((self._center_y - y) / self._scale)) - pi / 2)
        if abs(lat) > MapConfig.MAX_LATITUDE:
            return None
        return GeoPoint(lon=lon, lat=lat)


@lru_cache(maxsize=64)
def derive_projection(view_state: ViewState, viewport: Viewport) -> MercatorProjection:
    """Build the projection for a view. Shared by rendering and hit-testing.

    Args:
        view_state: Current zoom and pan
        viewport: Pixel size and world frame

    Returns:
        MercatorProjection; equal inputs return the same cached instance.
    """
    projection = MercatorProjection(
        scale=viewport.base_scale * view_state.k,
        rotation=rotation_deg(view_state=view_state, viewport=viewport),
        center_x=viewport.width / 2,
        center_y=viewport.height / 2 + view_state.pan_y,
    )
    logger.debug(f"Derived {projection} for {view_state}")
    return projection


def project(point: GeoPoint, view_state: ViewState, viewport: Viewport) -> ScreenPoint | None:
    """Screen position of a geographic point, None if not visible in the projection."""
    return derive_projection(view_state=view_state, viewport=viewport).project(point)


def unproject(screen: ScreenPoint, view_state: ViewState, viewport: Viewport) -> GeoPoint | None:
    """Geographic position under a screen pixel, None outside the domain."""
    return derive_projection(view_state=view_state, viewport=viewport).unproject(screen)
