"""Tests for ViewportController.

Tests: on_gesture (drag/zoom), convenience gestures, resize, zoom limits
Focus: Zoom-about-point keeps the geographic point under the cursor fixed
"""

import pytest
from hypothesis import assume, given, settings, strategies as st

from passport_map.constants import ViewConfig
from passport_map.core.projection import rotation_deg, unproject, wrapped_world_x
from passport_map.core.viewport import DragGesture, ViewportController, ZoomGesture
from passport_map.model.view_state import ViewState


def lon_delta(a: float, b: float) -> float:
    return (a - b + 180.0) % 360.0 - 180.0


class TestGestures:
    """on_gesture is the only mutation point of the view."""

    def test_drag_shifts_pan(self) -> None:
        controller = ViewportController(width=1000, height=800)
        state = controller.on_gesture(DragGesture(dx=30.0, dy=-12.0))
        assert state == ViewState(k=1.0, pan_x=30.0, pan_y=-12.0)
        assert controller.view_state is state

    def test_full_wrap_drag_is_visually_identical(self) -> None:
        """Dragging by base_world_width * k returns wrapped_world_x to its start."""
        controller = ViewportController(width=1000, height=800, initial=ViewState(k=2.0, pan_x=120.0))
        before = controller.view_state
        W = controller.viewport.base_world_width
        after = controller.on_gesture(DragGesture(dx=W * before.k, dy=0.0))
        assert wrapped_world_x(after.pan_x, after.k, W) == pytest.approx(wrapped_world_x(before.pan_x, before.k, W))
        assert rotation_deg(after, controller.viewport) == pytest.approx(rotation_deg(before, controller.viewport))

    def test_zoom_about_center_keeps_zero_pan(self) -> None:
        controller = ViewportController(width=1000, height=800)
        state = controller.on_gesture(ZoomGesture(factor=2.0, focal_x=500.0, focal_y=400.0))
        assert state == ViewState(k=2.0, pan_x=0.0, pan_y=0.0)

    def test_zoom_about_corner_moves_pan(self) -> None:
        """pan' = c + (pan - c) * k'/k with c measured from the viewport center."""
        controller = ViewportController(width=1000, height=800)
        state = controller.on_gesture(ZoomGesture(factor=2.0, focal_x=700.0, focal_y=300.0))
        # c = (200, -100): pan' = c + (0 - c) * 2 = -c
        assert state.pan_x == pytest.approx(-200.0)
        assert state.pan_y == pytest.approx(100.0)

    def test_zoom_clamps_to_limits(self) -> None:
        controller = ViewportController(width=1000, height=800)
        assert controller.on_gesture(ZoomGesture(factor=100.0, focal_x=500, focal_y=400)).k == ViewConfig.K_MAX
        assert controller.on_gesture(ZoomGesture(factor=0.001, focal_x=500, focal_y=400)).k == ViewConfig.K_MIN

    def test_zoom_at_limit_leaves_state_untouched(self) -> None:
        controller = ViewportController(width=1000, height=800, initial=ViewState(k=1.0, pan_x=40.0))
        before = controller.view_state
        after = controller.on_gesture(ZoomGesture(factor=0.5, focal_x=10.0, focal_y=10.0))
        assert after is before

    def test_zoom_factor_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ZoomGesture(factor=0.0, focal_x=0.0, focal_y=0.0)

    def test_unknown_gesture_raises(self) -> None:
        controller = ViewportController()
        with pytest.raises(TypeError):
            controller.on_gesture("pinch")  # type: ignore[arg-type]

    def test_invalid_zoom_range_raises(self) -> None:
        with pytest.raises(ValueError):
            ViewportController(k_min=5.0, k_max=2.0)

    @given(
        k=st.floats(min_value=1.0, max_value=10.0),
        factor=st.floats(min_value=0.5, max_value=2.0),
        pan_x=st.floats(min_value=-5000.0, max_value=5000.0),
        pan_y=st.floats(min_value=-100.0, max_value=100.0),
        focal_x=st.floats(min_value=0.0, max_value=1000.0),
        focal_y=st.floats(min_value=100.0, max_value=700.0),
    )
    @settings(max_examples=300)
    def test_zoom_keeps_point_under_cursor(
        self, k: float, factor: float, pan_x: float, pan_y: float, focal_x: float, focal_y: float
    ) -> None:
        """unproject(focal) before and after a zoom gesture is the same place."""
        assume(ViewConfig.K_MIN <= k * factor <= ViewConfig.K_MAX)
        controller = ViewportController(width=1000, height=800, initial=ViewState(k=k, pan_x=pan_x, pan_y=pan_y))
        focal = (focal_x, focal_y)
        before = unproject(focal, controller.view_state, controller.viewport)
        assert before is not None

        controller.on_gesture(ZoomGesture(factor=factor, focal_x=focal_x, focal_y=focal_y))
        after = unproject(focal, controller.view_state, controller.viewport)
        assert after is not None
        assert abs(lon_delta(after.lon, before.lon)) < 1e-6
        assert after.lat == pytest.approx(before.lat, abs=1e-6)


class TestConvenienceGestures:
    """Button-driven zoom, pan and reset."""

    def test_zoom_in_and_out_use_step_factor(self) -> None:
        controller = ViewportController(width=1000, height=800)
        assert controller.zoom_in().k == pytest.approx(ViewConfig.ZOOM_STEP_FACTOR)
        assert controller.zoom_out().k == pytest.approx(1.0)

    def test_pan_by_fraction_uses_viewport_size(self) -> None:
        controller = ViewportController(width=1000, height=800)
        state = controller.pan_by_fraction(fx=0.25, fy=-0.5)
        assert (state.pan_x, state.pan_y) == pytest.approx((250.0, -400.0))

    def test_reset_restores_initial_view(self) -> None:
        initial = ViewState(k=3.0, pan_x=10.0, pan_y=5.0)
        controller = ViewportController(initial=initial)
        controller.on_gesture(DragGesture(dx=500.0, dy=50.0))
        controller.zoom_in()
        assert controller.reset() == initial

    def test_deep_zoom_ceiling(self) -> None:
        controller = ViewportController(width=1000, height=800)
        controller.set_k_max(ViewConfig.DEEP_K_MAX)
        assert controller.on_gesture(ZoomGesture(factor=100.0, focal_x=500, focal_y=400)).k == pytest.approx(100.0)

        state = controller.set_k_max(ViewConfig.K_MAX)
        assert state.k == pytest.approx(ViewConfig.K_MAX)
        assert controller.view_state.k <= ViewConfig.K_MAX


class TestResize:
    """External resize keeps the map in place."""

    def test_resize_rescales_world_frame(self) -> None:
        controller = ViewportController(width=1000, height=800)
        controller.resize(width=500, height=400)
        assert controller.viewport.base_width == 500
        assert controller.viewport.base_world_width == 500

    def test_resize_preserves_rotation_and_center(self) -> None:
        controller = ViewportController(width=1000, height=800, initial=ViewState(k=2.5, pan_x=-730.0, pan_y=60.0))
        rotation_before = rotation_deg(controller.view_state, controller.viewport)
        center_before = unproject(controller.viewport.center, controller.view_state, controller.viewport)

        controller.resize(width=1400, height=600)

        assert rotation_deg(controller.view_state, controller.viewport) == pytest.approx(rotation_before)
        center_after = unproject(controller.viewport.center, controller.view_state, controller.viewport)
        assert abs(lon_delta(center_after.lon, center_before.lon)) < 1e-9
        assert center_after.lat == pytest.approx(center_before.lat, abs=1e-9)

    def test_reset_after_resize_uses_new_frame(self) -> None:
        controller = ViewportController(width=1000, height=800, initial=ViewState(k=1.0, pan_x=100.0))
        controller.resize(width=500, height=800)
        assert controller.reset().pan_x == pytest.approx(50.0)
