"""Detail panels shown next to the map.

- AnchorPanel: one memory with prev/next navigation
- TrailsPanel: trails under a click or around an anchor

Buttons fire selection machine events; the StreamlitSelectionListener
reruns the app after each transition.
"""

import logging

import streamlit as st

from passport_map.constants import HitConfig, StyleConfig
from passport_map.model.anchor import Anchor
from passport_map.model.trail import Trail
from passport_map.ui.selection_machine import SelectionStateMachine

logger = logging.getLogger(__name__)

TRAIL_ICONS = {"Run": "🏃", "Ride": "🚴", "Hike": "🥾"}


def format_distance_km(trail: Trail) -> str:
    """Recorded distance if known, else the measured polyline length."""
    distance = trail.distance_km if trail.distance_km is not None else trail.path_length_km()
    return f"{distance:.1f} km"


class AnchorPanel:
    """Anchor detail card."""

    def __init__(self, sm: SelectionStateMachine) -> None:
        self.sm = sm

    def render(self, anchor: Anchor) -> None:
        position, total = self.sm.anchor_position()

        st.markdown(f"### 📍 {anchor.title}")
        st.caption(f"{anchor.timestamp} • {anchor.location_name or anchor.coordinate_label}")
        if anchor.image_ref:
            st.image(anchor.image_ref)
        if anchor.note:
            st.write(anchor.note)
        st.caption(f"Memory {position} of {total}")

        col_prev, col_next = st.columns(2)
        with col_prev:
            if st.button("◀ Previous", key="anchor_prev", width="stretch", disabled=total < 2):
                self.sm.prev_anchor()
        with col_next:
            if st.button("Next ▶", key="anchor_next", width="stretch", disabled=total < 2):
                self.sm.next_anchor()

        if st.button(
            "🗺️ View Activities Nearby",
            key="anchor_trails",
            width="stretch",
            help=f"Trails passing within {HitConfig.ANCHOR_TRAIL_RADIUS_KM:g} km",
        ):
            self.sm.view_anchor_trails()

        if st.button("✖️ Close", key="close_anchor", width="stretch"):
            logger.info(f"Closing anchor panel for {anchor.id}")
            self.sm.close()


class TrailsPanel:
    """List of selected trails."""

    def __init__(self, sm: SelectionStateMachine) -> None:
        self.sm = sm

    def render(self, trails: list[Trail]) -> None:
        selection = self.sm.context.trail_selection
        if selection.source_anchor_id is not None:
            st.markdown("### 🗺️ Activities Nearby")
        else:
            st.markdown(f"### 🗺️ {len(trails)} Trail{'s' if len(trails) != 1 else ''}")
        if selection.lat is not None and selection.lon is not None:
            st.caption(f"{selection.lat:.4f}, {selection.lon:.4f}")

        if not trails:
            st.info("No recorded activities here.")

        for trail in trails:
            color = StyleConfig.TRAIL_COLORS.get(trail.category.value, StyleConfig.TRAIL_FALLBACK_COLOR)
            icon = TRAIL_ICONS.get(trail.category.value, "•")
            st.markdown(
                f"{icon} **{trail.display_name}**  \n"
                f"<span style='color:{color}'>{trail.category.value}</span> • "
                f"{format_distance_km(trail)}{' • ' + trail.date if trail.date else ''}",
                unsafe_allow_html=True,
            )

        if st.button("✖️ Close", key="close_trails", width="stretch"):
            logger.info("Closing trails panel")
            self.sm.close()


def render_detail_panel(sm: SelectionStateMachine) -> None:
    """Render the panel for the current selection state."""
    if sm.is_anchor_open:
        anchor = sm.context.selected_anchor
        if anchor is None:
            raise ValueError("AnchorOpen state without an anchor selected")
        AnchorPanel(sm=sm).render(anchor=anchor)
    elif sm.is_trails_open:
        TrailsPanel(sm=sm).render(trails=sm.context.selected_trails)
    else:
        st.markdown("### 🧭 Explore")
        st.markdown("- 📍 Click a dot to open a memory\n- 🗺️ Click a trail to list activities")
