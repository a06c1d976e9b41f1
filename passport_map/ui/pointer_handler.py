"""Pointer handler - turns map clicks into selection events or view gestures.

In select mode a click is resolved against the frame that was last painted:
anchors win over trails, and only when no anchor is under the pointer are
the trails checked. Results go to a SelectionListener.

The other click modes stand in for scroll and drag input, which the map
component does not report: the click point becomes the focal point of a
ZoomGesture, or the target of a DragGesture that centers it.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from typing import Protocol

from passport_map.constants import HitConfig, ViewConfig
from passport_map.core.hit_tester import AnchorMatch, hit_test, trails_near_point, unproject_pointer
from passport_map.core.projection import ScreenPoint
from passport_map.core.viewport import DragGesture, Gesture, ViewportController, ZoomGesture
from passport_map.model.anchor import Anchor
from passport_map.model.trail import Trail
from passport_map.model.view_state import ViewState, Viewport

logger = logging.getLogger(__name__)


class SelectionListener(Protocol):
    """Receiver of resolved clicks."""

    def on_anchor_selected(self, anchor: Anchor) -> None: ...

    def on_trails_selected(self, trails: list[Trail], lat: float, lon: float) -> None: ...


class ClickOutcome(str, Enum):
    """What a click resolved to."""

    ANCHOR = "anchor"
    TRAILS = "trails"
    NOTHING = "nothing"


class ClickMode(str, Enum):
    """What a click on the map does."""

    SELECT = "select"
    ZOOM_IN = "zoom_in"
    ZOOM_OUT = "zoom_out"
    CENTER = "center"

    @property
    def label(self) -> str:
        return CLICK_MODE_LABELS[self]


CLICK_MODE_LABELS = {
    ClickMode.SELECT: "👆 Select",
    ClickMode.ZOOM_IN: "🔍 Zoom in here",
    ClickMode.ZOOM_OUT: "🔭 Zoom out here",
    ClickMode.CENTER: "🎯 Center here",
}


def gesture_for_click(mode: ClickMode, screen_point: ScreenPoint, viewport: Viewport) -> Gesture | None:
    """Gesture a click produces in the given mode; None in select mode.

    Zooming keeps the clicked point fixed on screen. Centering drags the
    clicked point to the middle of the viewport.
    """
    x, y = screen_point
    if mode == ClickMode.ZOOM_IN:
        return ZoomGesture(factor=ViewConfig.ZOOM_STEP_FACTOR, focal_x=x, focal_y=y)
    if mode == ClickMode.ZOOM_OUT:
        return ZoomGesture(factor=1 / ViewConfig.ZOOM_STEP_FACTOR, focal_x=x, focal_y=y)
    if mode == ClickMode.CENTER:
        cx, cy = viewport.center
        return DragGesture(dx=cx - x, dy=cy - y)
    return None


class PointerHandler:
    """Resolves pointer positions against anchors and trails.

    Example:
        handler = PointerHandler(anchors=anchors, trails=trails, listener=sm)
        handler.click(screen_point=(412.0, 233.5), view_state=vs, viewport=vp)
    """

    def __init__(
        self,
        anchors: Sequence[Anchor],
        trails: Sequence[Trail],
        listener: SelectionListener | None = None,
        radius_px: float = HitConfig.ANCHOR_RADIUS_PX,
        tolerance_km: float = HitConfig.TRAIL_TOLERANCE_KM,
        strategy: AnchorMatch = AnchorMatch.NEAREST,
    ) -> None:
        self.anchors = list(anchors)
        self.trails = list(trails)
        self.listener = listener
        self.radius_px = radius_px
        self.tolerance_km = tolerance_km
        self.strategy = strategy
        self._anchors_by_id = {a.id: a for a in self.anchors}

    def anchor_at(self, screen_point: ScreenPoint, view_state: ViewState, viewport: Viewport) -> Anchor | None:
        anchor_id = hit_test(
            screen_point=screen_point,
            view_state=view_state,
            viewport=viewport,
            anchors=self.anchors,
            radius_px=self.radius_px,
            strategy=self.strategy,
        )
        return self._anchors_by_id.get(anchor_id) if anchor_id is not None else None

    def hover(self, screen_point: ScreenPoint, view_state: ViewState, viewport: Viewport) -> str | None:
        """Id of the anchor under the pointer, for the hover highlight."""
        anchor = self.anchor_at(screen_point=screen_point, view_state=view_state, viewport=viewport)
        return anchor.id if anchor else None

    def click(self, screen_point: ScreenPoint, view_state: ViewState, viewport: Viewport) -> ClickOutcome:
        """Resolve a click and notify the listener.

        Args:
            screen_point: Pointer (x, y) in viewport pixels
            view_state: View the last frame was painted with
            viewport: Viewport the last frame was painted with

        Returns:
            Which kind of selection (if any) was emitted.
        """
        anchor = self.anchor_at(screen_point=screen_point, view_state=view_state, viewport=viewport)
        if anchor is not None:
            logger.info(f"[MAP] Anchor clicked: {anchor.id} ({anchor.title})")
            if self.listener is not None:
                self.listener.on_anchor_selected(anchor)
            return ClickOutcome.ANCHOR

        location = unproject_pointer(screen_point=screen_point, view_state=view_state, viewport=viewport)
        if location is None:
            logger.debug(f"[MAP] Click at {screen_point} is outside the map")
            return ClickOutcome.NOTHING

        trails = trails_near_point(location=location, trails=self.trails, tolerance_km=self.tolerance_km)
        if not trails:
            logger.debug(f"[MAP] Empty click at lat={location.lat:.4f}, lon={location.lon:.4f}")
            return ClickOutcome.NOTHING

        logger.info(f"[MAP] {len(trails)} trail(s) clicked at lat={location.lat:.4f}, lon={location.lon:.4f}")
        if self.listener is not None:
            self.listener.on_trails_selected(trails, location.lat, location.lon)
        return ClickOutcome.TRAILS


def dispatch_click(
    mode: ClickMode,
    screen_point: ScreenPoint,
    controller: ViewportController,
    handler: PointerHandler,
    view_state: ViewState,
) -> bool:
    """Route a map click by mode.

    Args:
        mode: Current click mode
        screen_point: Click (x, y) in viewport pixels
        controller: Receives the gesture in zoom/center modes
        handler: Resolves the click in select mode
        view_state: View the clicked frame was painted with

    Returns:
        True when the view changed and the map needs a refresh.
    """
    viewport = controller.viewport
    gesture = gesture_for_click(mode=mode, screen_point=screen_point, viewport=viewport)
    if gesture is None:
        handler.click(screen_point=screen_point, view_state=view_state, viewport=viewport)
        return False

    before = controller.view_state
    after = controller.on_gesture(gesture)
    logger.info(f"[MAP] {mode.value} click at {screen_point}: {before} -> {after}")
    return after != before
