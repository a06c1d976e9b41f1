"""Passport Map - A pannable world map of travel trails and memories.

An interactive, infinitely wrapping world map featuring:
- Mercator projection whose central meridian follows the horizontal pan
- Continuous zoom/pan with zoom-about-point semantics
- Level-of-detail switching for state/province boundaries
- Heatmap-like trail rendering through low-opacity darkening blends
- Pixel-consistent hit-testing for anchors and trails

Modules:
    core: Projection, viewport controller, hit tester, data loading
    model: Data structures (GeoPoint, Trail, Anchor, ViewState, boundaries)
    ui: Streamlit interface (layer renderer, pydeck deck, selection state machine)

Example:
    from passport_map.core.viewport import ViewportController
    from passport_map.core.hit_tester import hit_test
    from passport_map.ui.layer_renderer import LayerRenderer
"""
