"""LayerRenderer - builds the painted frame as a retained scene.

The renderer projects every layer into screen pixels with the projection from
derive_projection(), the same one the hit tester uses. The result is an
immutable MapScene that deck_builder turns into a pydeck Deck.

Z-order (back to front): background -> countries -> subdivisions
-> fine subdivisions -> trails -> anchor halos -> anchors

Styling rules:
- Boundary stroke is 1/k world units capped at BOUNDARY_MAX_STROKE, i.e. a
  constant on-screen hairline once zoomed in.
- Subdivisions are hidden below LODConfig.SUBDIVISION_MIN_K and fade in at
  or above it.
- Fine subdivisions switch on at LODConfig.FINE_SUBDIVISION_MIN_K.
- Trails are stroked at low opacity with a darkening blend so repeated
  routes accumulate like a heatmap. Width follows 1/sqrt(k).
- Anchors keep a constant pixel size at every zoom.

Wrapping: polygon rings are unwrapped across the seam and drawn again one
world width to the left/right when they spill over the world strip; rings
that circle a pole are closed along the top or bottom edge. Trails are split
at the seam instead.

Failures: a malformed feature is skipped; a layer that fails as a whole is
replaced by an empty hidden layer. Neither aborts the frame.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from math import sqrt

import numpy as np

from passport_map.constants import LODConfig, MapConfig, StyleConfig
from passport_map.core.geometry_source import MalformedGeometryError
from passport_map.core.projection import MercatorProjection, derive_projection
from passport_map.model.anchor import Anchor
from passport_map.model.boundary import BoundaryFeature, GeometrySet
from passport_map.model.trail import Trail
from passport_map.model.view_state import ViewState, Viewport
from passport_map.ui.theme_store import Theme

logger = logging.getLogger(__name__)

ScreenPath = list[list[float]]  # [[x, y], ...]


# =============================================================================
# SCENE PRIMITIVES
# =============================================================================


@dataclass(frozen=True)
class PolygonPrimitive:
    """A projected polygon: outer ring followed by holes, in pixels."""

    key: str
    name: str
    rings: tuple[ScreenPath, ...]


@dataclass(frozen=True)
class PathPrimitive:
    """A projected polyline piece (one trail may yield several)."""

    id: str
    path: ScreenPath
    color: str
    category: str
    label: str = ""


@dataclass(frozen=True)
class CirclePrimitive:
    """A screen-space circle marker."""

    id: str
    x: float
    y: float
    radius_px: float
    hovered: bool = False
    label: str = ""


@dataclass(frozen=True)
class LayerStyle:
    """Paint settings shared by all primitives of a layer."""

    fill_color: str | None = None
    stroke_color: str | None = None
    stroke_width_px: float = 0.0
    opacity: float = 1.0
    blend: str | None = None  # None = normal source-over


@dataclass(frozen=True)
class SceneLayer:
    """One ordered layer of the frame."""

    name: str
    kind: str  # "polygon" | "path" | "circle"
    primitives: tuple = ()
    style: LayerStyle = field(default_factory=LayerStyle)
    visible: bool = True

    @property
    def is_drawn(self) -> bool:
        return self.visible and self.style.opacity > 0 and bool(self.primitives)


@dataclass(frozen=True)
class MapScene:
    """A complete frame, ready for deck_builder."""

    width: float
    height: float
    background: str
    layers: tuple[SceneLayer, ...]
    view_state: ViewState
    is_loading: bool = False

    def layer(self, name: str) -> SceneLayer | None:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    @property
    def layer_names(self) -> list[str]:
        return [layer.name for layer in self.layers]


class LayerNames:
    """Layer identifiers in paint order."""

    COUNTRIES = "countries"
    SUBDIVISIONS = "subdivisions"
    FINE_SUBDIVISIONS = "fine_subdivisions"
    TRAILS = "trails"
    ANCHOR_HALOS = "anchor_halos"
    ANCHORS = "anchors"

    ORDER = [COUNTRIES, SUBDIVISIONS, FINE_SUBDIVISIONS, TRAILS, ANCHOR_HALOS, ANCHORS]


# =============================================================================
# ZOOM-DEPENDENT STYLE RULES
# =============================================================================


def boundary_stroke_px(k: float) -> float:
    """On-screen boundary stroke: world width min(max, 1/k) scaled by k."""
    return min(StyleConfig.BOUNDARY_MAX_STROKE, 1.0 / k) * k


def trail_width_px(k: float) -> float:
    """Trail stroke thins with sqrt(k) so dense areas stay readable."""
    return max(StyleConfig.TRAIL_MIN_WIDTH_PX, StyleConfig.TRAIL_BASE_WIDTH_PX / sqrt(k))


def is_subdivision_visible(k: float) -> bool:
    """LOD gate: visible at or above the threshold."""
    return k >= LODConfig.SUBDIVISION_MIN_K


def subdivision_opacity(k: float) -> float:
    """0 below the LOD threshold, then a linear fade up to 1."""
    if not is_subdivision_visible(k):
        return 0.0
    start = LODConfig.SUBDIVISION_FADE_START_OPACITY
    progress = (k - LODConfig.SUBDIVISION_MIN_K) / LODConfig.SUBDIVISION_FADE_SPAN_K
    return min(1.0, start + (1.0 - start) * progress)


def is_fine_subdivision_visible(k: float) -> bool:
    return k >= LODConfig.FINE_SUBDIVISION_MIN_K


def anchor_radius_px(hovered: bool) -> float:
    return StyleConfig.ANCHOR_HOVER_RADIUS_PX if hovered else StyleConfig.ANCHOR_RADIUS_PX


# =============================================================================
# GEOMETRY HELPERS
# =============================================================================


def unwrap_xs(xs: np.ndarray, world_width: float) -> np.ndarray:
    """Remove seam jumps so a ring's x coordinates are continuous."""
    if len(xs) < 2:
        return xs.copy()
    steps = np.diff(xs)
    half = world_width * MapConfig.SEAM_JUMP_FRACTION
    corrections = np.where(steps > half, -world_width, np.where(steps < -half, world_width, 0.0))
    return np.concatenate(([xs[0]], xs[0] + np.cumsum(steps + corrections)))


def split_at_seam(xs: np.ndarray, ys: np.ndarray, world_width: float) -> list[ScreenPath]:
    """Split a projected polyline at seam jumps and unprojectable points."""
    pieces: list[ScreenPath] = []
    current: ScreenPath = []
    half = world_width * MapConfig.SEAM_JUMP_FRACTION
    prev_x: float | None = None
    for x, y in zip(xs.tolist(), ys.tolist()):
        if x != x or y != y:  # NaN
            if len(current) >= 2:
                pieces.append(current)
            current, prev_x = [], None
            continue
        if prev_x is not None and abs(x - prev_x) > half:
            if len(current) >= 2:
                pieces.append(current)
            current = []
        current.append([x, y])
        prev_x = x
    if len(current) >= 2:
        pieces.append(current)
    return pieces


def _bbox_intersects(xs: np.ndarray, ys: np.ndarray, width: float, height: float, margin: float) -> bool:
    return not (
        np.nanmax(xs) < -margin or np.nanmin(xs) > width + margin or np.nanmax(ys) < -margin or np.nanmin(ys) > height + margin
    )


# =============================================================================
# RENDERER
# =============================================================================


class LayerRenderer:
    """Builds MapScenes for the current data set.

    Example:
        renderer = LayerRenderer(geometry=geometry, trails=trails, anchors=anchors)
        scene = renderer.render(view_state=controller.view_state, viewport=controller.viewport)
        deck = build_deck(scene)
    """

    def __init__(
        self,
        geometry: GeometrySet | None = None,
        trails: Sequence[Trail] = (),
        anchors: Sequence[Anchor] = (),
    ) -> None:
        """Initialize renderer.

        Args:
            geometry: Boundary data; None while it is still loading
            trails: Trails to draw
            anchors: Anchors to draw
        """
        self.geometry = geometry
        self.trails = list(trails)
        self.anchors = list(anchors)

    def render(
        self,
        view_state: ViewState,
        viewport: Viewport,
        theme: Theme | None = None,
        hovered_anchor_id: str | None = None,
    ) -> MapScene:
        """Paint all layers back to front.

        Args:
            view_state: Current zoom and pan
            viewport: Pixel size and world frame
            theme: Palette (light theme if None)
            hovered_anchor_id: Anchor to draw enlarged

        Returns:
            MapScene; while geometry is None it holds only the background.
        """
        theme = theme or Theme.light()
        if self.geometry is None:
            return MapScene(
                width=viewport.width,
                height=viewport.height,
                background=theme.background,
                layers=(),
                view_state=view_state,
                is_loading=True,
            )

        projection = derive_projection(view_state=view_state, viewport=viewport)
        k = view_state.k
        geometry = self.geometry

        builders: list[tuple[str, str, Callable[[], SceneLayer]]] = [
            (LayerNames.COUNTRIES, "polygon", lambda: self._country_layer(geometry, projection, viewport, theme, k)),
            (
                LayerNames.SUBDIVISIONS,
                "polygon",
                lambda: self._subdivision_layer(geometry, projection, viewport, theme, k),
            ),
            (
                LayerNames.FINE_SUBDIVISIONS,
                "polygon",
                lambda: self._fine_subdivision_layer(geometry, projection, viewport, theme, k),
            ),
            (LayerNames.TRAILS, "path", lambda: self._trail_layer(projection, viewport, theme, k)),
            (LayerNames.ANCHOR_HALOS, "circle", lambda: self._anchor_halo_layer(projection, hovered_anchor_id)),
            (LayerNames.ANCHORS, "circle", lambda: self._anchor_layer(projection, hovered_anchor_id)),
        ]

        layers = tuple(self._build_safely(name=name, kind=kind, builder=builder) for name, kind, builder in builders)
        return MapScene(
            width=viewport.width,
            height=viewport.height,
            background=theme.background,
            layers=layers,
            view_state=view_state,
        )

    @staticmethod
    def _build_safely(name: str, kind: str, builder: Callable[[], SceneLayer]) -> SceneLayer:
        """Run a layer builder; a failing layer becomes an empty hidden layer."""
        try:
            return builder()
        except (MalformedGeometryError, ValueError, TypeError, IndexError, KeyError, AttributeError) as e:
            logger.warning(f"Layer '{name}' skipped this frame: {e}")
            return SceneLayer(name=name, kind=kind, visible=False)

    # =========================================================================
    # BOUNDARY LAYERS
    # =========================================================================

    def _country_layer(
        self,
        geometry: GeometrySet,
        projection: MercatorProjection,
        viewport: Viewport,
        theme: Theme,
        k: float,
    ) -> SceneLayer:
        return SceneLayer(
            name=LayerNames.COUNTRIES,
            kind="polygon",
            primitives=tuple(self._project_features(geometry.countries, projection, viewport)),
            style=LayerStyle(
                fill_color=theme.land,
                stroke_color=theme.boundary,
                stroke_width_px=boundary_stroke_px(k),
            ),
        )

    def _subdivision_layer(
        self,
        geometry: GeometrySet,
        projection: MercatorProjection,
        viewport: Viewport,
        theme: Theme,
        k: float,
    ) -> SceneLayer:
        visible = is_subdivision_visible(k)
        # Below the threshold nothing is projected at all
        primitives = tuple(self._project_features(geometry.subdivisions, projection, viewport)) if visible else ()
        return SceneLayer(
            name=LayerNames.SUBDIVISIONS,
            kind="polygon",
            primitives=primitives,
            style=LayerStyle(
                fill_color=None,
                stroke_color=theme.subdivision,
                stroke_width_px=boundary_stroke_px(k),
                opacity=subdivision_opacity(k),
            ),
            visible=visible,
        )

    def _fine_subdivision_layer(
        self,
        geometry: GeometrySet,
        projection: MercatorProjection,
        viewport: Viewport,
        theme: Theme,
        k: float,
    ) -> SceneLayer:
        visible = is_fine_subdivision_visible(k)
        primitives = tuple(self._project_features(geometry.fine_subdivisions, projection, viewport)) if visible else ()
        return SceneLayer(
            name=LayerNames.FINE_SUBDIVISIONS,
            kind="polygon",
            primitives=primitives,
            style=LayerStyle(
                fill_color=None,
                stroke_color=theme.subdivision,
                stroke_width_px=boundary_stroke_px(k),
            ),
            visible=visible,
        )

    def _project_features(
        self,
        features: Sequence[BoundaryFeature],
        projection: MercatorProjection,
        viewport: Viewport,
    ) -> list[PolygonPrimitive]:
        primitives: list[PolygonPrimitive] = []
        for feature in features:
            try:
                primitives.extend(self._project_feature(feature, projection, viewport))
            except (MalformedGeometryError, ValueError, TypeError, IndexError) as e:
                logger.warning(f"Skipping boundary '{feature.key}': {e}")
        return primitives

    def _project_feature(
        self,
        feature: BoundaryFeature,
        projection: MercatorProjection,
        viewport: Viewport,
    ) -> list[PolygonPrimitive]:
        """Project one polygon, adding shifted copies where it crosses the seam."""
        if not feature.rings or len(feature.rings[0]) < 3:
            raise MalformedGeometryError("outer ring needs at least 3 points")

        world_width = projection.world_width_px
        projected_rings: list[np.ndarray] = []
        for ring in feature.rings:
            coords = np.asarray(ring, dtype=float).reshape(-1, 2)
            lats = np.clip(coords[:, 1], -MapConfig.MAX_LATITUDE, MapConfig.MAX_LATITUDE)
            xs, ys = projection.project_many(coords[:, 0], lats)
            if np.isnan(xs).any():
                raise MalformedGeometryError("ring has non-finite coordinates")
            xs = unwrap_xs(xs, world_width)
            if len(projected_rings) == 0:
                xs, ys = self._close_polar_ring(xs, ys, lats, world_width, projection)
            projected_rings.append(np.column_stack([xs, ys]))

        outer = projected_rings[0]
        if not _bbox_intersects(
            np.concatenate([outer[:, 0] - world_width, outer[:, 0] + world_width, outer[:, 0]]),
            np.tile(outer[:, 1], 3),
            viewport.width,
            viewport.height,
            margin=0.0,
        ):
            return []

        left_edge = projection.center[0] - world_width / 2
        right_edge = projection.center[0] + world_width / 2
        offsets = [0.0]
        if outer[:, 0].min() < left_edge:
            offsets.append(world_width)
        if outer[:, 0].max() > right_edge:
            offsets.append(-world_width)

        primitives = []
        for offset in offsets:
            rings = tuple([[float(x) + offset, float(y)] for x, y in ring] for ring in projected_rings)
            primitives.append(PolygonPrimitive(key=feature.key, name=feature.name, rings=rings))
        return primitives

    @staticmethod
    def _close_polar_ring(
        xs: np.ndarray,
        ys: np.ndarray,
        lats: np.ndarray,
        world_width: float,
        projection: MercatorProjection,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Close a ring that wraps the whole globe along the nearest pole edge."""
        net = xs[-1] - xs[0]
        if abs(net) < world_width * MapConfig.SEAM_JUMP_FRACTION:
            return xs, ys
        pole_lat = MapConfig.MAX_LATITUDE if float(np.mean(lats)) > 0 else -MapConfig.MAX_LATITUDE
        _, pole_ys = projection.project_many(np.array([0.0]), np.array([pole_lat]))
        pole_y = float(pole_ys[0])
        return (
            np.concatenate([xs, [xs[-1], xs[0]]]),
            np.concatenate([ys, [pole_y, pole_y]]),
        )

    # =========================================================================
    # TRAILS
    # =========================================================================

    def _trail_layer(self, projection: MercatorProjection, viewport: Viewport, theme: Theme, k: float) -> SceneLayer:
        primitives: list[PathPrimitive] = []
        world_width = projection.world_width_px
        margin = trail_width_px(k)
        for trail in self.trails:
            if trail.num_points < 2:
                continue
            coords = trail.lon_lat_array
            xs, ys = projection.project_many(coords[:, 0], coords[:, 1])
            if np.isnan(xs).all() or not _bbox_intersects(xs, ys, viewport.width, viewport.height, margin):
                continue
            color = StyleConfig.TRAIL_COLORS.get(trail.category.value, StyleConfig.TRAIL_FALLBACK_COLOR)
            for piece in split_at_seam(xs, ys, world_width):
                primitives.append(
                    PathPrimitive(
                        id=trail.id,
                        path=piece,
                        color=color,
                        category=trail.category.value,
                        label=trail.display_name,
                    )
                )

        return SceneLayer(
            name=LayerNames.TRAILS,
            kind="path",
            primitives=tuple(primitives),
            style=LayerStyle(
                stroke_width_px=trail_width_px(k),
                opacity=StyleConfig.TRAIL_OPACITY,
                blend=theme.trail_blend,
            ),
        )

    # =========================================================================
    # ANCHORS
    # =========================================================================

    def _anchor_circles(
        self,
        projection: MercatorProjection,
        hovered_anchor_id: str | None,
        extra_radius: float,
    ) -> tuple[CirclePrimitive, ...]:
        if not self.anchors:
            return ()
        lons = np.array([a.location.lon for a in self.anchors], dtype=float)
        lats = np.array([a.location.lat for a in self.anchors], dtype=float)
        xs, ys = projection.project_many(lons, lats)

        circles = []
        for anchor, x, y in zip(self.anchors, xs.tolist(), ys.tolist()):
            if x != x or y != y:  # Outside the projection domain this frame
                continue
            hovered = anchor.id == hovered_anchor_id
            circles.append(
                CirclePrimitive(
                    id=anchor.id,
                    x=x,
                    y=y,
                    radius_px=anchor_radius_px(hovered) + extra_radius,
                    hovered=hovered,
                    label=anchor.title,
                )
            )
        return tuple(circles)

    def _anchor_halo_layer(self, projection: MercatorProjection, hovered_anchor_id: str | None) -> SceneLayer:
        return SceneLayer(
            name=LayerNames.ANCHOR_HALOS,
            kind="circle",
            primitives=self._anchor_circles(projection, hovered_anchor_id, StyleConfig.ANCHOR_HALO_OFFSET_PX),
            style=LayerStyle(
                stroke_color=StyleConfig.ANCHOR_COLOR,
                stroke_width_px=StyleConfig.ANCHOR_OUTLINE_WIDTH_PX,
                opacity=StyleConfig.ANCHOR_HALO_OPACITY,
            ),
        )

    def _anchor_layer(self, projection: MercatorProjection, hovered_anchor_id: str | None) -> SceneLayer:
        return SceneLayer(
            name=LayerNames.ANCHORS,
            kind="circle",
            primitives=self._anchor_circles(projection, hovered_anchor_id, 0.0),
            style=LayerStyle(
                fill_color=StyleConfig.ANCHOR_COLOR,
                stroke_color=StyleConfig.ANCHOR_OUTLINE_COLOR,
                stroke_width_px=StyleConfig.ANCHOR_OUTLINE_WIDTH_PX,
            ),
        )
