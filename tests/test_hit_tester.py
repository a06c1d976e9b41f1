"""Tests for HitTester and PointerHandler.

Tests: hit_test (anchors), hit_test_trails, trails_near_anchor, PointerHandler,
       click modes (gesture_for_click, dispatch_click)
Focus: Hit tests agree with what was painted; strict thresholds

Note: Fixtures are defined in conftest.py (viewport, anchors, trails).
"""

import pytest
from hypothesis import given, settings, strategies as st

from passport_map.core.hit_tester import (
    AnchorMatch,
    hit_test,
    hit_test_trails,
    trails_near_anchor,
    trails_near_point,
    unproject_pointer,
)
from passport_map.core.projection import derive_projection, project
from passport_map.model.anchor import Anchor
from passport_map.model.geo_point import GeoPoint
from passport_map.model.trail import Trail, TrailCategory
from passport_map.model.view_state import ViewState, Viewport
from passport_map.core.viewport import DragGesture, ViewportController, ZoomGesture
from passport_map.ui.pointer_handler import ClickMode, ClickOutcome, PointerHandler, dispatch_click, gesture_for_click

VIEWPORT = Viewport.of_size(width=1000, height=800)


class TestAnchorHitTest:
    """Screen-space anchor lookup."""

    def test_sf_anchor_projects_deterministically(self, sf_anchor: Anchor, identity_view: ViewState, viewport: Viewport) -> None:
        """1000x800 at k=1: SF sits left of center and north of the equator."""
        x, y = project(sf_anchor.location, identity_view, viewport)
        assert x == pytest.approx(500 + 1000 * (-122.4194 / 360))
        assert 0 < y < 400
        assert project(sf_anchor.location, identity_view, viewport) == (x, y)

    def test_click_within_radius_selects(self, sf_anchor: Anchor, identity_view: ViewState, viewport: Viewport) -> None:
        x, y = project(sf_anchor.location, identity_view, viewport)
        assert hit_test((x, y), identity_view, viewport, [sf_anchor]) == "sf"
        assert hit_test((x + 19.9, y), identity_view, viewport, [sf_anchor]) == "sf"
        assert hit_test((x, y - 12.0), identity_view, viewport, [sf_anchor]) == "sf"

    def test_click_21px_away_misses(self, sf_anchor: Anchor, identity_view: ViewState, viewport: Viewport) -> None:
        x, y = project(sf_anchor.location, identity_view, viewport)
        assert hit_test((x + 21.0, y), identity_view, viewport, [sf_anchor]) is None

    def test_radius_is_strict(self, sf_anchor: Anchor, identity_view: ViewState, viewport: Viewport) -> None:
        x, y = project(sf_anchor.location, identity_view, viewport)
        assert hit_test((x + 12.0, y + 16.0), identity_view, viewport, [sf_anchor]) is None  # exactly 20 px

    def test_no_anchors(self, identity_view: ViewState, viewport: Viewport) -> None:
        assert hit_test((500.0, 400.0), identity_view, viewport, []) is None

    def test_nearest_vs_first_tie_break(self, anchor_factory, identity_view: ViewState, viewport: Viewport) -> None:
        """Two anchors inside the radius: NEAREST picks the closer, FIRST the earlier."""
        far = anchor_factory("far", 0.0, 0.0)
        near = anchor_factory("near", 3.0, 0.0)  # ~8.3 px east of null island
        x, y = project(near.location, identity_view, viewport)
        click = (x + 1.0, y)
        assert hit_test(click, identity_view, viewport, [far, near]) == "near"
        assert hit_test(click, identity_view, viewport, [far, near], strategy=AnchorMatch.FIRST) == "far"

    def test_wrapped_view_hits_same_anchor(self, sf_anchor: Anchor, viewport: Viewport) -> None:
        """After panning across the seam the anchor is hit where it is painted."""
        view = ViewState(k=4.0, pan_x=-1_234_567.0, pan_y=-300.0)
        screen = project(sf_anchor.location, view, viewport)
        assert hit_test(screen, view, viewport, [sf_anchor]) == "sf"

    @given(
        lon=st.floats(min_value=-180.0, max_value=180.0),
        lat=st.floats(min_value=-85.0, max_value=85.0),
        k=st.floats(min_value=1.0, max_value=1000.0),
        pan_x=st.floats(min_value=-1e6, max_value=1e6),
        pan_y=st.floats(min_value=-2000.0, max_value=2000.0),
    )
    @settings(max_examples=200)
    def test_projected_point_always_hits(self, lon: float, lat: float, k: float, pan_x: float, pan_y: float) -> None:
        """project() then hit_test() at that exact pixel returns the anchor."""
        anchor = Anchor(id="a", location=GeoPoint(lon=lon, lat=lat), title="", timestamp="", note="")
        view = ViewState(k=k, pan_x=pan_x, pan_y=pan_y)
        screen = project(anchor.location, view, VIEWPORT)
        assert hit_test(screen, view, VIEWPORT, [anchor]) == "a"


class TestTrailHitTest:
    """Geographic trail lookup under the pointer."""

    @pytest.fixture
    def east_west_trail(self) -> Trail:
        """A 2 km east-west line at the equator, centered on lon 0.01."""
        return Trail(
            id="eq",
            category=TrailCategory.RUN,
            points=(GeoPoint(lon=0.0, lat=0.0), GeoPoint(lon=0.02, lat=0.0)),
        )

    def _click_at(self, lon: float, lat: float, view: ViewState) -> tuple[float, float]:
        return derive_projection(view, VIEWPORT).project(GeoPoint(lon=lon, lat=lat))

    def test_100m_away_is_hit_200m_is_not(self, east_west_trail: Trail, destination) -> None:
        """Tolerance is 150 m in real-world distance, whatever the zoom."""
        view = ViewState(k=1000.0, pan_y=0.0)
        lon100, lat100 = destination(lon=0.01, lat=0.0, bearing_deg=0.0, distance_m=100.0)
        lon200, lat200 = destination(lon=0.01, lat=0.0, bearing_deg=0.0, distance_m=200.0)

        hits = hit_test_trails(self._click_at(lon100, lat100, view), view, VIEWPORT, [east_west_trail])
        assert hits == ["eq"]
        misses = hit_test_trails(self._click_at(lon200, lat200, view), view, VIEWPORT, [east_west_trail])
        assert misses == []

    def test_returns_every_trail_within_tolerance(self, east_west_trail: Trail, trail_factory) -> None:
        crossing = trail_factory("cross", start=(0.01, -0.005), bearing_deg=0.0, length_m=1000.0)
        far = trail_factory("far", start=(1.0, 1.0), bearing_deg=0.0, length_m=1000.0)
        view = ViewState(k=1000.0)
        hits = hit_test_trails(self._click_at(0.01, 0.0, view), view, VIEWPORT, [east_west_trail, far, crossing])
        assert hits == ["eq", "cross"]

    def test_click_outside_projection_domain(self, east_west_trail: Trail, identity_view: ViewState) -> None:
        assert hit_test_trails((500.0, -5000.0), identity_view, VIEWPORT, [east_west_trail]) == []

    def test_trails_near_point_skips_empty_trails(self) -> None:
        empty = Trail(id="empty", category=TrailCategory.HIKE, points=())
        assert trails_near_point(GeoPoint(lon=0.0, lat=0.0), [empty], tolerance_km=1.0) == []

    def test_trail_across_antimeridian(self, trails: list[Trail]) -> None:
        hits = trails_near_point(GeoPoint(lon=180.0, lat=-16.8), trails, tolerance_km=0.15)
        assert [t.id for t in hits] == ["ride-fiji"]

    def test_trails_near_anchor(self, sf_anchor: Anchor, trails: list[Trail]) -> None:
        nearby = trails_near_anchor(sf_anchor, trails)
        assert [t.id for t in nearby] == ["run-sf"]


class RecordingListener:
    """Collects selection events."""

    def __init__(self) -> None:
        self.anchors: list[Anchor] = []
        self.trail_events: list[tuple[list[str], float, float]] = []

    def on_anchor_selected(self, anchor: Anchor) -> None:
        self.anchors.append(anchor)

    def on_trails_selected(self, trails: list[Trail], lat: float, lon: float) -> None:
        self.trail_events.append(([t.id for t in trails], lat, lon))


class TestPointerHandler:
    """Click resolution order: anchors first, then trails."""

    def test_anchor_wins_over_trail(self, anchors: list[Anchor], trails: list[Trail], identity_view: ViewState) -> None:
        listener = RecordingListener()
        handler = PointerHandler(anchors=anchors, trails=trails, listener=listener)
        screen = project(anchors[0].location, identity_view, VIEWPORT)

        assert handler.click(screen, identity_view, VIEWPORT) == ClickOutcome.ANCHOR
        assert [a.id for a in listener.anchors] == ["sf"]
        assert listener.trail_events == []

    def test_trail_click_reports_location(self, sf_trail: Trail) -> None:
        listener = RecordingListener()
        handler = PointerHandler(anchors=[], trails=[sf_trail], listener=listener)
        view = ViewState(k=500.0)
        point = sf_trail.points[5]
        screen = derive_projection(view, VIEWPORT).project(point)

        assert handler.click(screen, view, VIEWPORT) == ClickOutcome.TRAILS
        (ids, lat, lon), = listener.trail_events
        assert ids == ["run-sf"]
        assert (lat, lon) == pytest.approx((point.lat, point.lon), abs=1e-6)

    def test_empty_click(self, anchors: list[Anchor], trails: list[Trail], identity_view: ViewState) -> None:
        listener = RecordingListener()
        handler = PointerHandler(anchors=anchors, trails=trails, listener=listener)
        # Mid-Atlantic
        screen = project(GeoPoint(lon=-35.0, lat=10.0), identity_view, VIEWPORT)
        assert handler.click(screen, identity_view, VIEWPORT) == ClickOutcome.NOTHING
        assert listener.anchors == [] and listener.trail_events == []

    def test_hover(self, anchors: list[Anchor], identity_view: ViewState) -> None:
        handler = PointerHandler(anchors=anchors, trails=[])
        screen = project(anchors[1].location, identity_view, VIEWPORT)
        assert handler.hover(screen, identity_view, VIEWPORT) == "tokyo"
        assert handler.hover((0.0, 0.0), identity_view, VIEWPORT) is None


class TestClickModes:
    """Clicks as zoom/center gestures about the clicked point."""

    CLICK = (700.0, 300.0)

    @pytest.fixture
    def controller(self) -> ViewportController:
        return ViewportController(width=1000, height=800, initial=ViewState(k=2.0))

    def test_gestures_per_mode(self) -> None:
        assert gesture_for_click(ClickMode.SELECT, self.CLICK, VIEWPORT) is None
        assert gesture_for_click(ClickMode.ZOOM_IN, self.CLICK, VIEWPORT) == ZoomGesture(1.5, 700.0, 300.0)
        zoom_out = gesture_for_click(ClickMode.ZOOM_OUT, self.CLICK, VIEWPORT)
        assert zoom_out.factor == pytest.approx(1 / 1.5)
        assert gesture_for_click(ClickMode.CENTER, self.CLICK, VIEWPORT) == DragGesture(dx=-200.0, dy=100.0)

    @pytest.mark.parametrize("mode", [ClickMode.ZOOM_IN, ClickMode.ZOOM_OUT])
    def test_zoom_keeps_clicked_point_fixed(self, controller: ViewportController, mode: ClickMode) -> None:
        before = controller.view_state
        clicked = unproject_pointer(screen_point=self.CLICK, view_state=before, viewport=VIEWPORT)
        handler = PointerHandler(anchors=[], trails=[])

        changed = dispatch_click(mode, self.CLICK, controller=controller, handler=handler, view_state=before)

        assert changed is True
        assert controller.view_state.k != before.k
        assert project(clicked, controller.view_state, VIEWPORT) == pytest.approx(self.CLICK, abs=1e-6)

    def test_center_moves_clicked_point_to_middle(self, controller: ViewportController) -> None:
        before = controller.view_state
        clicked = unproject_pointer(screen_point=self.CLICK, view_state=before, viewport=VIEWPORT)

        dispatch_click(ClickMode.CENTER, self.CLICK, controller=controller, handler=PointerHandler([], []), view_state=before)

        assert controller.view_state.k == before.k
        assert project(clicked, controller.view_state, VIEWPORT) == pytest.approx((500.0, 400.0), abs=1e-6)

    def test_zoom_out_at_minimum_changes_nothing(self) -> None:
        controller = ViewportController(width=1000, height=800)
        changed = dispatch_click(
            ClickMode.ZOOM_OUT, self.CLICK, controller=controller, handler=PointerHandler([], []),
            view_state=controller.view_state,
        )
        assert changed is False
        assert controller.view_state == ViewState(k=1.0)

    def test_select_mode_resolves_through_handler(self, anchors: list[Anchor], identity_view: ViewState) -> None:
        controller = ViewportController(width=1000, height=800)
        listener = RecordingListener()
        handler = PointerHandler(anchors=anchors, trails=[], listener=listener)
        screen = project(anchors[1].location, identity_view, VIEWPORT)

        changed = dispatch_click(ClickMode.SELECT, screen, controller=controller, handler=handler, view_state=identity_view)

        assert changed is False
        assert [a.id for a in listener.anchors] == ["tokyo"]
        assert controller.view_state == identity_view
