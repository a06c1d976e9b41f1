"""Sidebar with view controls.

The map component has deck.gl's own controller switched off, so panning and
zooming go through these buttons and ViewportController. Every button maps
to one gesture (or convenience gesture) followed by a map refresh. The click
mode picks what a click on the map itself does.
"""

import logging

import streamlit as st

from passport_map.constants import ViewConfig
from passport_map.core.viewport import ViewportController
from passport_map.ui import infra
from passport_map.ui.pointer_handler import ClickMode
from passport_map.ui.theme_store import ThemeStore

logger = logging.getLogger(__name__)


class SidebarRenderer:
    """Renders the sidebar and applies the chosen view change."""

    def __init__(self, controller: ViewportController, theme_store: ThemeStore) -> None:
        self.controller = controller
        self.theme_store = theme_store

    def render(self, trail_count: int, anchor_count: int) -> None:
        with st.sidebar:
            st.markdown("### 🧭 View")
            self._render_zoom_buttons()
            self._render_pan_buttons()
            self._render_reset_button()
            self._render_click_mode()
            st.divider()
            self._render_theme_toggle()
            self._render_deep_zoom_toggle()
            st.divider()
            vs = self.controller.view_state
            st.caption(f"Zoom ×{vs.k:.2f} • pan ({vs.pan_x:.0f}, {vs.pan_y:.0f})")
            st.caption(f"{trail_count} trails • {anchor_count} memories")

    def _render_zoom_buttons(self) -> None:
        col_in, col_out = st.columns(2)
        with col_in:
            if st.button("➕ Zoom In", width="stretch", disabled=self.controller.view_state.k >= self.controller.k_max):
                self.controller.zoom_in()
                infra.refresh_map()
        with col_out:
            if st.button("➖ Zoom Out", width="stretch", disabled=self.controller.view_state.k <= self.controller.k_min):
                self.controller.zoom_out()
                infra.refresh_map()

    def _render_pan_buttons(self) -> None:
        step = ViewConfig.PAN_STEP_FRACTION
        # Dragging the map right reveals what lies to the west
        _, col_up, _ = st.columns(3)
        with col_up:
            if st.button("⬆️", key="pan_up", width="stretch", help="Pan north"):
                self._pan(0.0, step)
        col_left, _, col_right = st.columns(3)
        with col_left:
            if st.button("⬅️", key="pan_left", width="stretch", help="Pan west"):
                self._pan(step, 0.0)
        with col_right:
            if st.button("➡️", key="pan_right", width="stretch", help="Pan east"):
                self._pan(-step, 0.0)
        _, col_down, _ = st.columns(3)
        with col_down:
            if st.button("⬇️", key="pan_down", width="stretch", help="Pan south"):
                self._pan(0.0, -step)

    def _pan(self, fx: float, fy: float) -> None:
        self.controller.pan_by_fraction(fx=fx, fy=fy)
        infra.refresh_map()

    def _render_reset_button(self) -> None:
        if st.button("🎯 Reset View", width="stretch", help="Whole world at zoom ×1"):
            self.controller.reset()
            infra.refresh_map()

    def _render_click_mode(self) -> None:
        st.radio(
            "Map click",
            options=list(ClickMode),
            format_func=lambda mode: mode.label,
            key=infra.CLICK_MODE_KEY,
            help="Select anchors and trails, or zoom/center on the clicked point",
        )

    def _render_theme_toggle(self) -> None:
        dark_mode = self.theme_store.load()
        toggled = st.toggle("🌙 Dark mode", value=dark_mode, key="dark_mode_toggle")
        if toggled != dark_mode:
            self.theme_store.save(toggled)
            infra.refresh_map()

    def _render_deep_zoom_toggle(self) -> None:
        deep = self.controller.k_max > ViewConfig.K_MAX
        toggled = st.toggle(
            "🔬 Deep zoom",
            value=deep,
            key="deep_zoom_toggle",
            help=f"Allow zooming up to ×{ViewConfig.DEEP_K_MAX:g} for street-level trails",
        )
        if toggled != deep:
            self.controller.set_k_max(ViewConfig.DEEP_K_MAX if toggled else ViewConfig.K_MAX)
            infra.refresh_map()
