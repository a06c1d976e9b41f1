"""Geodesic calculations on Earth's surface.

Provides geographic helper functions for trail hit-testing:
- Distance calculation (Haversine formula)
- Point-to-polyline distance (vectorized over all segments of a trail)

All calculations use WGS84 spherical Earth approximation (R = 6,371 km).
"""

from math import atan2, cos, radians, sin, sqrt

import numpy as np

# Earth's radius in meters (WGS84 spherical approximation)
EARTH_RADIUS_M = 6_371_000


class GeoCalculator:
    """Static methods for geodesic calculations on Earth's surface.

    All methods use WGS84 spherical Earth model (R = 6,371 km).
    Coordinates are in decimal degrees (WGS84).
    Distances are in meters.
    """

    EARTH_RADIUS_M = EARTH_RADIUS_M

    @staticmethod
    def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate great-circle distance between two points using Haversine formula.

        Args:
            lat1: Latitude of first point (decimal degrees)
            lon1: Longitude of first point (decimal degrees)
            lat2: Latitude of second point (decimal degrees)
            lon2: Longitude of second point (decimal degrees)

        Returns:
            Distance in meters.
        """
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)
        a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
        return EARTH_RADIUS_M * 2 * atan2(sqrt(a), sqrt(1 - a))

    @staticmethod
    def haversine_distance_m_array(
        lat1: float,
        lon1: float,
        lats: np.ndarray,
        lons: np.ndarray,
    ) -> np.ndarray:
        """Vectorized haversine from one point to many points.

        Args:
            lat1: Latitude of the reference point (decimal degrees)
            lon1: Longitude of the reference point (decimal degrees)
            lats: Latitudes of the other points
            lons: Longitudes of the other points

        Returns:
            Array of distances in meters, same shape as lats.
        """
        dlat = np.radians(lats - lat1)
        dlon = np.radians(lons - lon1)
        a = np.sin(dlat / 2) ** 2 + np.cos(np.radians(lat1)) * np.cos(np.radians(lats)) * np.sin(dlon / 2) ** 2
        a = np.clip(a, 0.0, 1.0)
        return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    @staticmethod
    def point_to_polyline_distance_m(lon: float, lat: float, line: np.ndarray) -> float:
        """Shortest distance from a point to a polyline in meters.

        Each segment is flattened onto a local equirectangular plane centered
        on the query point to find the closest point on it, then the distance
        to that closest point is measured with haversine. Longitude deltas are
        wrapped so segments near the antimeridian are measured the short way.

        Args:
            lon: Longitude of the query point (decimal degrees)
            lat: Latitude of the query point (decimal degrees)
            line: (N, 2) array of [lon, lat] rows

        Returns:
            Distance in meters; inf for an empty line.
        """
        if line.size == 0:
            return float("inf")

        dlon = ((line[:, 0] - lon + 180.0) % 360.0) - 180.0
        dlat = line[:, 1] - lat
        if len(line) == 1:
            return float(
                GeoCalculator.haversine_distance_m_array(
                    lat1=lat, lon1=lon, lats=lat + dlat, lons=lon + dlon
                )[0]
            )

        # Local plane in degrees of latitude; query point at the origin
        x = dlon * cos(radians(lat))
        y = dlat
        ax, ay = x[:-1], y[:-1]
        bx, by = x[1:], y[1:]
        seg_x = bx - ax
        seg_y = by - ay
        seg_len_sq = seg_x * seg_x + seg_y * seg_y

        with np.errstate(invalid="ignore", divide="ignore"):
            t = np.where(seg_len_sq > 0, -(ax * seg_x + ay * seg_y) / seg_len_sq, 0.0)
        t = np.clip(t, 0.0, 1.0)

        closest_dlon = dlon[:-1] + t * (dlon[1:] - dlon[:-1])
        closest_dlat = dlat[:-1] + t * (dlat[1:] - dlat[:-1])
        distances = GeoCalculator.haversine_distance_m_array(
            lat1=lat,
            lon1=lon,
            lats=lat + closest_dlat,
            lons=lon + closest_dlon,
        )
        return float(distances.min())
