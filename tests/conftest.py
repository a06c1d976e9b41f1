"""Shared pytest fixtures for passport_map tests.

Provides a fixed viewport, sample anchors/trails and small boundary documents.
All fixtures use explicit values with documented rationale.

COORDINATE SYSTEM:
    The reference viewport is 1000x800 pixels at k=1 with no pan, so the
    world strip is exactly 1000 px wide, the prime meridian sits at x=500
    and the equator at y=400.
"""

import json
from math import asin, atan2, cos, degrees, radians, sin
from pathlib import Path

import pytest

from passport_map.core.geo_calculator import EARTH_RADIUS_M
from passport_map.model.anchor import Anchor
from passport_map.model.boundary import BoundaryFeature, GeometrySet
from passport_map.model.geo_point import GeoPoint
from passport_map.model.trail import Trail, TrailCategory
from passport_map.model.view_state import ViewState, Viewport
from passport_map.ui.selection_machine import SelectionContext, SelectionStateMachine

SF_LON, SF_LAT = -122.4194, 37.7749


# =============================================================================
# VIEW
# =============================================================================


@pytest.fixture
def viewport() -> Viewport:
    """Reference 1000x800 viewport; world frame derived from its width."""
    return Viewport.of_size(width=1000, height=800)


@pytest.fixture
def identity_view() -> ViewState:
    """k=1, no pan: the whole world fits the viewport width once."""
    return ViewState(k=1.0, pan_x=0.0, pan_y=0.0)


# =============================================================================
# ANCHORS
# =============================================================================


def make_anchor(anchor_id: str, lon: float, lat: float, title: str = "") -> Anchor:
    return Anchor(
        id=anchor_id,
        location=GeoPoint(lon=lon, lat=lat),
        title=title or anchor_id,
        timestamp="2023-10-15",
        note="",
    )


@pytest.fixture
def sf_anchor() -> Anchor:
    """Anchor in downtown San Francisco."""
    return make_anchor("sf", SF_LON, SF_LAT, title="San Francisco")


@pytest.fixture
def anchors(sf_anchor: Anchor) -> list[Anchor]:
    """Three anchors far apart: San Francisco, Tokyo, London (navigation order)."""
    return [
        sf_anchor,
        make_anchor("tokyo", 139.6917, 35.6895, title="Neon Nights"),
        make_anchor("london", -0.1276, 51.5074, title="Thames Path"),
    ]


# =============================================================================
# TRAILS
# =============================================================================


def destination_point(lon: float, lat: float, bearing_deg: float, distance_m: float) -> tuple[float, float]:
    """(lon, lat) reached from a start point along a great circle bearing."""
    brng = radians(bearing_deg)
    lat1 = radians(lat)
    lon1 = radians(lon)
    d_r = distance_m / EARTH_RADIUS_M

    lat2 = asin(sin(lat1) * cos(d_r) + cos(lat1) * sin(d_r) * cos(brng))
    lon2 = lon1 + atan2(sin(brng) * sin(d_r) * cos(lat1), cos(d_r) - sin(lat1) * sin(lat2))
    return degrees(lon2), degrees(lat2)


@pytest.fixture
def destination():
    """destination_point(lon, lat, bearing_deg, distance_m) for placing points at known distances."""
    return destination_point


def straight_trail(trail_id: str, start: tuple[float, float], bearing_deg: float, length_m: float, steps: int = 10,
                   category: TrailCategory = TrailCategory.RUN) -> Trail:
    """Trail of evenly spaced points along a bearing."""
    points = [
        GeoPoint.from_lon_lat(
            destination_point(lon=start[0], lat=start[1], bearing_deg=bearing_deg, distance_m=length_m * i / steps)
        )
        for i in range(steps + 1)
    ]
    return Trail(id=trail_id, category=category, points=tuple(points), name=trail_id)


@pytest.fixture
def sf_trail() -> Trail:
    """2 km run heading east from the SF anchor."""
    return straight_trail("run-sf", start=(SF_LON, SF_LAT), bearing_deg=90.0, length_m=2000.0)


@pytest.fixture
def trails(sf_trail: Trail) -> list[Trail]:
    """SF run plus a Tokyo ride and a trail crossing the antimeridian."""
    return [
        sf_trail,
        straight_trail("ride-tokyo", start=(139.6917, 35.6895), bearing_deg=45.0, length_m=8000.0,
                       category=TrailCategory.RIDE),
        Trail(
            id="ride-fiji",
            category=TrailCategory.RIDE,
            points=tuple(GeoPoint(lon=lon, lat=-16.8) for lon in (179.9, 179.95, -179.95, -179.9)),
            name="Date Line Ride",
        ),
    ]


# =============================================================================
# BOUNDARIES
# =============================================================================


def square(key: str, lon: float, lat: float, size: float, name: str = "") -> BoundaryFeature:
    ring = ((lon, lat), (lon + size, lat), (lon + size, lat + size), (lon, lat + size), (lon, lat))
    return BoundaryFeature(key=key, name=name or key, rings=(ring,))


@pytest.fixture
def geometry() -> GeometrySet:
    """Two country squares (one straddling the antimeridian), one subdivision and one fine subdivision."""
    return GeometrySet(
        countries=(
            square("A", lon=-10.0, lat=-10.0, size=20.0, name="Squareland"),
            BoundaryFeature(
                key="F",
                name="Seamland",
                rings=(((175.0, -20.0), (-175.0, -20.0), (-175.0, -10.0), (175.0, -10.0), (175.0, -20.0)),),
            ),
        ),
        subdivisions=(square("A-1", lon=-5.0, lat=-5.0, size=5.0, name="Quarter"),),
        fine_subdivisions=(square("A-1a", lon=-2.0, lat=-2.0, size=1.0, name="Block"),),
    )


@pytest.fixture
def quantized_topology() -> dict:
    """TopoJSON with one quantized square made of two arcs (second one reversed).

    Arc 0 runs (0,0) -> (10,0) -> (10,10); arc 1 runs (0,0) -> (0,10) -> (10,10).
    The polygon ring [0, ~1] walks arc 0 then arc 1 backwards.
    """
    return {
        "type": "Topology",
        "transform": {"scale": [1.0, 1.0], "translate": [0.0, 0.0]},
        "arcs": [
            [[0, 0], [10, 0], [0, 10]],
            [[0, 0], [0, 10], [10, 0]],
        ],
        "objects": {
            "countries": {
                "type": "GeometryCollection",
                "geometries": [
                    {"type": "Polygon", "id": "SQ", "arcs": [[0, -2]], "properties": {"name": "Square"}},
                ],
            }
        },
    }


@pytest.fixture
def write_json(tmp_path: Path):
    """Write a JSON-serializable object to a temp file and return its path."""

    def _write(name: str, payload: object) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write


# =============================================================================
# SELECTION MACHINE
# =============================================================================


@pytest.fixture
def selection(anchors: list[Anchor], trails: list[Trail]) -> tuple[SelectionStateMachine, SelectionContext]:
    """Selection machine without the Streamlit listener."""
    return SelectionStateMachine.create(anchors=anchors, trails=trails, add_ui_listener=False)


# =============================================================================
# FACTORIES
# =============================================================================


@pytest.fixture
def anchor_factory():
    """make_anchor(anchor_id, lon, lat, title="") for tests needing custom anchors."""
    return make_anchor


@pytest.fixture
def trail_factory():
    """straight_trail(trail_id, start, bearing_deg, length_m, ...) for custom trails."""
    return straight_trail
