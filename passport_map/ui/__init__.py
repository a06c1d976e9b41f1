"""User interface components for Passport Map.

File Structure (layout-based naming):
- left_panel.py: Sidebar with zoom/pan/reset buttons and theme toggle
- layer_renderer.py + deck_builder.py: MapScene and its pydeck Deck
- detail_panels.py: Anchor and trail panels next to the map

Core Components:
- selection_machine.py: SelectionStateMachine (3 states) + SelectionContext
- pointer_handler.py: Click -> anchor/trail selection events or zoom/center gestures
- pydeck_click_handler.py: st_deckgl wrapper returning screen-pixel clicks
- theme_store.py: Light/dark palettes and the persisted preference
"""

from passport_map.ui.deck_builder import build_deck
from passport_map.ui.detail_panels import AnchorPanel, TrailsPanel, render_detail_panel
from passport_map.ui.layer_renderer import LayerNames, LayerRenderer, MapScene
from passport_map.ui.left_panel import SidebarRenderer
from passport_map.ui.pointer_handler import ClickMode, ClickOutcome, PointerHandler, SelectionListener
from passport_map.ui.pydeck_click_handler import MapClickResult, render_map
from passport_map.ui.selection_machine import (
    SelectionContext,
    SelectionStateMachine,
    StreamlitSelectionListener,
)
from passport_map.ui.theme_store import Theme, ThemeStore

__all__ = [
    "AnchorPanel",
    "ClickMode",
    "ClickOutcome",
    "LayerNames",
    "LayerRenderer",
    "MapClickResult",
    "MapScene",
    "PointerHandler",
    "SelectionContext",
    "SelectionListener",
    "SelectionStateMachine",
    "SidebarRenderer",
    "StreamlitSelectionListener",
    "Theme",
    "ThemeStore",
    "TrailsPanel",
    "build_deck",
    "render_detail_panel",
    "render_map",
]
