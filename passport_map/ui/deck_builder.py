"""Deck builder - converts a MapScene into a pydeck Deck.

The scene is already projected, so the deck uses an OrthographicView whose
world units are screen pixels: target at the viewport center, zoom 0, y
pointing down. A click coordinate reported by deck.gl is therefore the
screen point the hit tester expects, with no second projection in between.

Key differences from a geographic deck:
- Coordinates are [x, y] pixels, not [lon, lat]
- No basemap; the background is a full-viewport polygon
- deck.gl's own controller is off; gestures go through ViewportController
- Colors as RGBA lists [R, G, B, A] (0-255)
"""

import logging

import pydeck as pdk

from passport_map.ui.layer_renderer import (
    CirclePrimitive,
    LayerNames,
    MapScene,
    PathPrimitive,
    PolygonPrimitive,
    SceneLayer,
)

logger = logging.getLogger(__name__)

# Blend settings per LayerStyle.blend (luma.gl parameter names)
BLEND_PARAMETERS: dict[str, dict[str, object]] = {
    # Darkens where strokes overlap: result = src * dst + dst * (1 - a)
    "multiply": {
        "blend": True,
        "blendColorOperation": "add",
        "blendColorSrcFactor": "dst",
        "blendColorDstFactor": "one-minus-src-alpha",
        "blendAlphaOperation": "add",
        "blendAlphaSrcFactor": "one",
        "blendAlphaDstFactor": "one-minus-src-alpha",
    },
    # Brightens where strokes overlap (dark theme counterpart of multiply)
    "additive": {
        "blend": True,
        "blendColorOperation": "add",
        "blendColorSrcFactor": "src-alpha",
        "blendColorDstFactor": "one",
        "blendAlphaOperation": "add",
        "blendAlphaSrcFactor": "one",
        "blendAlphaDstFactor": "one",
    },
}

# Object type tags spread into st_deckgl click events
TYPE_ANCHOR = "anchor"
TYPE_TRAIL = "trail"


def hex_to_rgba(hex_color: str, alpha: float = 1.0) -> list[int]:
    """Convert '#RRGGBB' to [R, G, B, A] with alpha in 0-1."""
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB color, got {hex_color!r}")
    return [int(value[i : i + 2], 16) for i in (0, 2, 4)] + [round(max(0.0, min(1.0, alpha)) * 255)]


def _background_layer(scene: MapScene) -> pdk.Layer:
    w, h = scene.width, scene.height
    return pdk.Layer(
        "SolidPolygonLayer",
        [{"polygon": [[0, 0], [w, 0], [w, h], [0, h]]}],
        get_polygon="polygon",
        get_fill_color=hex_to_rgba(scene.background),
        pickable=False,
        id="background",
    )


def _polygon_layer(layer: SceneLayer) -> pdk.Layer:
    style = layer.style
    data = [
        {"polygon": prim.rings, "name": prim.name, "key": prim.key}
        for prim in layer.primitives
        if isinstance(prim, PolygonPrimitive)
    ]
    return pdk.Layer(
        "PolygonLayer",
        data,
        get_polygon="polygon",
        filled=style.fill_color is not None,
        stroked=style.stroke_color is not None,
        get_fill_color=hex_to_rgba(style.fill_color) if style.fill_color else [0, 0, 0, 0],
        get_line_color=hex_to_rgba(style.stroke_color) if style.stroke_color else [0, 0, 0, 0],
        get_line_width=style.stroke_width_px,
        line_width_units="pixels",
        opacity=style.opacity,
        pickable=False,
        id=layer.name,
    )


def _path_layer(layer: SceneLayer) -> pdk.Layer:
    style = layer.style
    data = [
        {
            "type": TYPE_TRAIL,
            "id": prim.id,
            "path": prim.path,
            "color": hex_to_rgba(prim.color),
            "category": prim.category,
            "name": prim.label,
        }
        for prim in layer.primitives
        if isinstance(prim, PathPrimitive)
    ]
    kwargs: dict[str, object] = {}
    if style.blend:
        kwargs["parameters"] = BLEND_PARAMETERS[style.blend]
    return pdk.Layer(
        "PathLayer",
        data,
        get_path="path",
        get_color="color",
        get_width=style.stroke_width_px,
        width_units="pixels",
        cap_rounded=True,
        joint_rounded=True,
        opacity=style.opacity,
        pickable=False,
        id=layer.name,
        **kwargs,
    )


def _circle_layer(layer: SceneLayer) -> pdk.Layer:
    style = layer.style
    data = [
        {
            "type": TYPE_ANCHOR,
            "id": prim.id,
            "position": [prim.x, prim.y],
            "radius": prim.radius_px,
            "name": prim.label,
        }
        for prim in layer.primitives
        if isinstance(prim, CirclePrimitive)
    ]
    is_anchor_layer = layer.name == LayerNames.ANCHORS
    return pdk.Layer(
        "ScatterplotLayer",
        data,
        get_position="position",
        get_radius="radius",
        radius_units="pixels",
        filled=style.fill_color is not None,
        stroked=style.stroke_color is not None,
        get_fill_color=hex_to_rgba(style.fill_color) if style.fill_color else [0, 0, 0, 0],
        get_line_color=hex_to_rgba(style.stroke_color) if style.stroke_color else [0, 0, 0, 0],
        get_line_width=style.stroke_width_px,
        line_width_units="pixels",
        opacity=style.opacity,
        # Only the anchor dots carry a tooltip; selection itself is done by the hit tester
        pickable=is_anchor_layer,
        id=layer.name,
    )


_LAYER_FACTORIES = {
    "polygon": _polygon_layer,
    "path": _path_layer,
    "circle": _circle_layer,
}


def build_layers(scene: MapScene) -> list[pdk.Layer]:
    """Convert drawn scene layers in order; the background always comes first."""
    layers = [_background_layer(scene)]
    for layer in scene.layers:
        if not layer.is_drawn:
            continue
        layers.append(_LAYER_FACTORIES[layer.kind](layer))
    return layers


def build_deck(scene: MapScene, height: int | None = None) -> pdk.Deck:
    """Build a pydeck Deck showing the scene pixel-for-pixel.

    Args:
        scene: Frame produced by LayerRenderer.render()
        height: Component height in pixels (defaults to the scene height)

    Returns:
        pdk.Deck object ready for display.
    """
    view = pdk.View(type="OrthographicView", controller=False)
    view_state = pdk.ViewState(target=[scene.width / 2, scene.height / 2, 0], zoom=0)
    layers = build_layers(scene)
    logger.debug(f"Deck built with layers {[layer.id for layer in layers]}")
    return pdk.Deck(
        layers=layers,
        views=[view],
        initial_view_state=view_state,
        map_style=None,
        height=height or int(scene.height),
        tooltip={
            "html": "<b>{name}</b>",
            "style": {
                "backgroundColor": "rgba(255, 255, 255, 0.95)",
                "color": "#333",
                "padding": "6px 10px",
                "borderRadius": "4px",
            },
        },
    )
