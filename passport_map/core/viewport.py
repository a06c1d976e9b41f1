"""ViewportController - owns the view state and applies gestures.

The controller is a one-state machine: its only state is the current
ViewState and its only transition is on_gesture(). Every gesture sample
produces an immediate, synchronous update; there is no animation or inertia.

Gestures:
    DragGesture(dx, dy): shift the pan by the drag delta in pixels
    ZoomGesture(factor, focal_x, focal_y): multiply k by factor, clamped,
        keeping the geographic point under the focal pixel fixed

Zoom about a point:
    The projection center sits at the middle of the viewport, so pixel
    offsets are measured from there. With c = focal - center:
        pan' = c + (pan - c) * k' / k
    Horizontally this keeps the rotated longitude under the focal pixel,
    vertically it keeps the Mercator y under it.

Resize is an external event, not a gesture: the world frame is re-derived
from the new width and the pan is rescaled so the wrapped world position
and the center latitude do not jump.
"""

import logging
from dataclasses import dataclass

from passport_map.constants import MapConfig, ViewConfig
from passport_map.model.view_state import ViewState, Viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DragGesture:
    """Pointer drag delta in screen pixels."""

    dx: float
    dy: float


@dataclass(frozen=True)
class ZoomGesture:
    """Scroll/pinch zoom sample.

    Attributes:
        factor: Multiplicative zoom change (>1 zooms in)
        focal_x: Screen x of the cursor/pinch center
        focal_y: Screen y of the cursor/pinch center
    """

    factor: float
    focal_x: float
    focal_y: float

    def __post_init__(self) -> None:
        if not self.factor > 0:
            raise ValueError(f"Zoom factor must be positive, got {self.factor}")


Gesture = DragGesture | ZoomGesture


class ViewportController:
    """Single writer of the map's ViewState.

    Example:
        controller = ViewportController(width=1000, height=800)
        controller.on_gesture(DragGesture(dx=50, dy=0))
        view = controller.view_state
    """

    def __init__(
        self,
        width: float = MapConfig.DEFAULT_WIDTH_PX,
        height: float = MapConfig.DEFAULT_HEIGHT_PX,
        k_min: float = ViewConfig.K_MIN,
        k_max: float = ViewConfig.K_MAX,
        initial: ViewState | None = None,
    ) -> None:
        """Initialize controller for a freshly mounted map.

        Args:
            width: Viewport width in pixels; fixes the world frame
            height: Viewport height in pixels
            k_min: Lowest zoom factor
            k_max: Highest zoom factor
            initial: Starting view (defaults to k=1, no pan)
        """
        if not 0 < k_min < k_max:
            raise ValueError(f"Invalid zoom range [{k_min}, {k_max}]")
        self.k_min = k_min
        self.k_max = k_max
        self._viewport = Viewport.of_size(width=width, height=height)
        start = initial or ViewState(k=k_min)
        self._initial = ViewState(k=self._clamp_k(start.k), pan_x=start.pan_x, pan_y=start.pan_y)
        self._view_state = self._initial

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    def _clamp_k(self, k: float) -> float:
        return max(self.k_min, min(self.k_max, k))

    # ==========================================================================
    # Transition
    # ==========================================================================

    def on_gesture(self, gesture: Gesture) -> ViewState:
        """Apply one gesture sample and return the new view state."""
        if isinstance(gesture, DragGesture):
            new_state = self._apply_drag(gesture)
        elif isinstance(gesture, ZoomGesture):
            new_state = self._apply_zoom(gesture)
        else:
            raise TypeError(f"Unsupported gesture: {gesture!r}")

        logger.debug(f"[MAP] {gesture} -> {new_state}")
        self._view_state = new_state
        return new_state

    def _apply_drag(self, gesture: DragGesture) -> ViewState:
        vs = self._view_state
        return ViewState(k=vs.k, pan_x=vs.pan_x + gesture.dx, pan_y=vs.pan_y + gesture.dy)

    def _apply_zoom(self, gesture: ZoomGesture) -> ViewState:
        vs = self._view_state
        new_k = self._clamp_k(vs.k * gesture.factor)
        if new_k == vs.k:
            return vs

        ratio = new_k / vs.k
        center_x, center_y = self._viewport.center
        cx = gesture.focal_x - center_x
        cy = gesture.focal_y - center_y
        return ViewState(
            k=new_k,
            pan_x=cx + (vs.pan_x - cx) * ratio,
            pan_y=cy + (vs.pan_y - cy) * ratio,
        )

    # ==========================================================================
    # Convenience gestures (buttons / keyboard)
    # ==========================================================================

    def zoom_in(self) -> ViewState:
        """Zoom in one step about the viewport center."""
        x, y = self._viewport.center
        return self.on_gesture(ZoomGesture(factor=ViewConfig.ZOOM_STEP_FACTOR, focal_x=x, focal_y=y))

    def zoom_out(self) -> ViewState:
        """Zoom out one step about the viewport center."""
        x, y = self._viewport.center
        return self.on_gesture(ZoomGesture(factor=1 / ViewConfig.ZOOM_STEP_FACTOR, focal_x=x, focal_y=y))

    def pan_by_fraction(self, fx: float, fy: float) -> ViewState:
        """Drag by a fraction of the viewport size (positive moves the map right/down)."""
        return self.on_gesture(DragGesture(dx=fx * self._viewport.width, dy=fy * self._viewport.height))

    def reset(self) -> ViewState:
        """Return to the view the controller was created with."""
        self._view_state = self._initial
        logger.info("[MAP] View reset")
        return self._view_state

    # ==========================================================================
    # External events
    # ==========================================================================

    def set_k_max(self, k_max: float) -> ViewState:
        """Change the zoom ceiling, zooming out about the center if above it."""
        if not k_max > self.k_min:
            raise ValueError(f"k_max must exceed k_min={self.k_min}, got {k_max}")
        self.k_max = k_max
        vs = self._view_state
        if vs.k > k_max:
            x, y = self._viewport.center
            return self.on_gesture(ZoomGesture(factor=k_max / vs.k, focal_x=x, focal_y=y))
        return vs

    def resize(self, width: float, height: float) -> ViewState:
        """Adopt a new viewport size without a visual jump.

        The world frame is re-derived from the new width. Scaling both pans
        by the frame ratio keeps pan_x / (k * W) (the rotation) and
        pan_y / (k * base_scale) (the center latitude) unchanged.
        """
        old = self._viewport
        new = Viewport.of_size(width=width, height=height)
        ratio = new.base_world_width / old.base_world_width

        vs = self._view_state
        self._viewport = new
        self._view_state = ViewState(k=vs.k, pan_x=vs.pan_x * ratio, pan_y=vs.pan_y * ratio)
        self._initial = ViewState(
            k=self._initial.k,
            pan_x=self._initial.pan_x * ratio,
            pan_y=self._initial.pan_y * ratio,
        )
        logger.info(f"[MAP] Resized {old.width:.0f}x{old.height:.0f} -> {width:.0f}x{height:.0f}")
        return self._view_state
